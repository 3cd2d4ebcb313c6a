from quantum_playground.Classes.Simulation_Class import Simulation_Class
from quantum_playground.Classes.Scribe_Class import Scribe
from quantum_playground.Errors.Errors import DegenerateMeasurementError


sim = Simulation_Class(
    grid_size=64,                      # Grid resolution (power of 2)
    dx=0.1,                            # Spatial step, domain is 6.4 x 6.4
    dt=0.005,                          # Time step
    h_bar=1.0,
    mass=1.0,
    boundary_condition="periodic",
    time_scale=1.0,
    seed=1,
)

sim.set_potential_type("single")
sim.initialize(momentum_x=5.0, momentum_y=2.0)

scribe = Scribe(sim)
scribe.record()
scribe.take_snapshot()

L = sim.domain_size
detector_positions = [(L / 2, L / 2), (0.7 * L, 0.6 * L), (0.3 * L, 0.5 * L)]

for step in range(1, 301):
    sim.step()

    if step % 25 == 0:
        scribe.record()

    if step % 100 == 0:
        x, y = detector_positions[step // 100 - 1]
        try:
            result = sim.measure(x, y)
        except DegenerateMeasurementError as e:
            print(e)
            continue
        scribe.record_measurement(x, y, result)
        scribe.take_snapshot()
        print(f"Measured at ({x:.2f}, {y:.2f}): found = {result['found']} "
              f"(p = {result['probability']:.4f}), total probability {sim.get_total_probability():.8f}")

print(scribe.probability_frame())
scribe.save()
