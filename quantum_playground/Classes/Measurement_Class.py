import numpy as np

from quantum_playground.Errors.Errors import DegenerateMeasurementError
from quantum_playground.Functions.Schrodinger_eq_functions import (
    gaussian_envelope,
    periodic_distance_squared,
)


class Measurement_Class:
    """
    Born-rule position measurement and wave function collapse.

    The detector has a Gaussian sensitivity exp(-r^2 / 2 R^2) around the queried
    point, R being the simulation's measurement radius and r the minimum-image
    distance on the periodic lattice.
    """

    # Width of the bump left behind by a positive collapse, in grid spacings
    COLLAPSE_WIDTH_CELLS = 1.5
    # Below this remaining probability a negative collapse is refused
    DEGENERATE_FLOOR = 1e-12

    def __init__(self, simulation, rng):
        """
        Parameters:
            simulation: Simulation_Class instance owning the field
            rng (np.random.Generator): Source of the measurement draws
        """
        self.simulation = simulation
        self.rng = rng

    def detector_response(self, x, y, radius=None):
        sim = self.simulation
        radius = sim.measurement_radius if radius is None else radius
        r_squared = periodic_distance_squared(sim.grids, x, y, sim.domain_size)
        return gaussian_envelope(r_squared, radius)

    def integrated_probability(self, x, y):
        """
        Probability that the detector at (x, y) finds the particle.

        Returns:
            float: sum(weight * |psi|^2) dx^2, clamped to [0, 1]
        """
        sim = self.simulation
        weighted = np.sum(self.detector_response(x, y) * sim.psi.density()) * sim.dx ** 2
        return float(min(1.0, max(0.0, weighted)))

    def measure(self, x, y):
        """
        Perform a measurement at physical coordinates (x, y) and collapse the field.

        Returns:
            dict: {"found": bool, "probability": float}

        Raises:
            DegenerateMeasurementError: If the outcome is "not found" but the
                                        detector footprint holds all the probability
        """
        probability = self.integrated_probability(x, y)
        found = bool(self.rng.random() < probability)

        if found:
            self.collapse_positive(x, y)
        else:
            self.collapse_negative(x, y)

        return {"found": found, "probability": probability}

    def nearest_cell(self, x, y):
        sim = self.simulation
        ix = int(np.rint(x / sim.dx)) % sim.N
        iy = int(np.rint(y / sim.dx)) % sim.N
        return ix, iy

    def collapse_positive(self, x, y):
        """
        "Particle found at (x, y)": replace the field by a narrow Gaussian bump.

        The bump is 1.5 grid spacings wide, which keeps its spectrum well below
        the Nyquist wave number. It carries the phase the field had at the
        nearest cell as a constant factor, so no momentum is imparted.
        """
        sim = self.simulation
        ix, iy = self.nearest_cell(x, y)
        local = sim.psi.data[iy, ix]
        phase = local / abs(local) if abs(local) > 0 else 1.0

        width = self.COLLAPSE_WIDTH_CELLS * sim.dx
        bump = self.detector_response(x, y, radius=width) * phase

        np.copyto(sim.psi.data, bump)
        sim.psi.normalize(sim.dx)

    def collapse_negative(self, x, y):
        """
        "Particle not found at (x, y)": suppress the field inside the detector
        footprint with 1 - exp(-r^2 / 2 R^2) and renormalize the remainder.

        Raises:
            DegenerateMeasurementError: If less than DEGENERATE_FLOOR of the
                                        probability would remain; the field is
                                        not modified in that case
        """
        sim = self.simulation
        suppressed = sim.psi.data * (1.0 - self.detector_response(x, y))
        remaining = float(np.sum(np.abs(suppressed) ** 2) * sim.dx ** 2)

        if remaining < self.DEGENERATE_FLOOR:
            raise DegenerateMeasurementError(
                message=f"negative outcome at ({x}, {y}) leaves no probability to renormalize",
                remaining_probability=remaining,
            )

        np.copyto(sim.psi.data, suppressed)
        sim.psi.normalize(sim.dx)
