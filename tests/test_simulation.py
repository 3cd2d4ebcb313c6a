import numpy as np
import pytest

from quantum_playground.Classes.Simulation_Class import Simulation_Class
from quantum_playground.Errors.Errors import (
    BoundaryConditionError,
    ConfigurationError,
    GridSizeError,
    IncorrectPotentialTypeError,
    MissingArgumentError,
    PhysicalParameterError,
    TypeMismatchError,
)


def mean_position(simulation):
    density = simulation.get_probability_density() * simulation.dx ** 2
    return (float(np.sum(simulation.grids[0] * density)), float(np.sum(simulation.grids[1] * density)))


# Configuration

def test_construction_parameters(simulation):
    params = simulation.get_parameters()
    assert params["grid_size"] == 64
    assert params["dx"] == 0.1
    assert params["dt"] == 0.005
    assert params["domain_size"] == pytest.approx(6.4)
    assert params["boundary_condition"] == "periodic"
    assert params["measurement_radius"] == 0.2
    assert params["filter_enabled"] is False
    assert simulation.get_time() == 0


@pytest.mark.parametrize("grid_size", [0, 1, 3, 48, 100])
def test_rejects_bad_grid_size(grid_size):
    with pytest.raises(GridSizeError):
        Simulation_Class(grid_size, 0.1, 0.005)


@pytest.mark.parametrize("name", ["dx", "dt", "h_bar", "mass", "time_scale"])
@pytest.mark.parametrize("value", [0.0, -1.0, float("nan"), float("inf")])
def test_rejects_non_positive_constants(name, value):
    kwargs = {"grid_size": 16, "dx": 0.1, "dt": 0.005, name: value}
    with pytest.raises(PhysicalParameterError):
        Simulation_Class(**kwargs)


def test_rejects_non_periodic_boundaries():
    with pytest.raises(BoundaryConditionError):
        Simulation_Class(16, 0.1, 0.005, boundary_condition="dirichlet")


def test_configuration_errors_share_a_base_class():
    for kwargs in ({"grid_size": 12}, {"dx": -0.1}, {"boundary_condition": "absorbing"}):
        arguments = dict({"grid_size": 16, "dx": 0.1, "dt": 0.005}, **kwargs)
        with pytest.raises(ConfigurationError):
            Simulation_Class(**arguments)


def test_argument_types_are_checked():
    with pytest.raises(TypeMismatchError):
        Simulation_Class(64.0, 0.1, 0.005)
    with pytest.raises(TypeMismatchError):
        Simulation_Class(64, "0.1", 0.005)
    with pytest.raises(TypeMismatchError):
        Simulation_Class(64, 0.1, True)


def test_missing_argument():
    with pytest.raises(MissingArgumentError):
        Simulation_Class(64, 0.1)


def test_stability_warning(capsys):
    simulation = Simulation_Class(16, 0.1, 1.0)
    assert "WARNING" in capsys.readouterr().out
    assert simulation.check_time_step_restriction() is False


def test_stable_time_step_is_quiet(capsys):
    simulation = Simulation_Class(16, 0.1, 0.005)
    assert capsys.readouterr().out == ""
    assert simulation.check_time_step_restriction() is True


# Initialization

@pytest.mark.parametrize("kwargs", [
    {},
    {"center_x": 1.0, "center_y": 5.5, "width": 0.4},
    {"momentum_x": 8.0, "momentum_y": -3.0},
    {"center_x": 0.05, "center_y": 6.35, "width": 0.25, "momentum_x": -4.0},
])
def test_initialize_is_normalized(simulation, kwargs):
    simulation.initialize(**kwargs)
    assert abs(simulation.get_total_probability() - 1) < 1e-6


def test_default_packet_is_centred(initialized_simulation):
    density = initialized_simulation.get_probability_density()
    iy, ix = np.unravel_index(np.argmax(density), density.shape)
    assert (ix, iy) == (32, 32)


def test_packet_carries_momentum_phase(simulation):
    simulation.initialize(momentum_x=5.0)
    psi = simulation.get_wavefunction()
    ratio = psi[32, 33] / psi[32, 32]
    assert np.angle(ratio) == pytest.approx(5.0 * simulation.dx)


def test_initialize_rejects_non_positive_width(simulation):
    with pytest.raises(PhysicalParameterError):
        simulation.initialize(width=0.0)


def test_initialize_zeroes_the_clock(initialized_simulation):
    initialized_simulation.evolve(3)
    initialized_simulation.initialize()
    assert initialized_simulation.get_time() == 0


# Evolution

def test_concrete_scenario(initialized_simulation):
    assert initialized_simulation.get_total_probability() == pytest.approx(1.0, abs=1e-6)
    initialized_simulation.evolve(100)
    assert abs(initialized_simulation.get_total_probability() - 1) < 1e-4
    assert initialized_simulation.get_time() == pytest.approx(0.5)


def test_unitarity_free_particle(simulation):
    simulation.initialize(momentum_x=6.0, momentum_y=-4.0, width=0.4)
    for _ in range(5):
        simulation.evolve(50)
        assert abs(simulation.get_total_probability() - 1) < 1e-4


@pytest.mark.parametrize("potential_type", ["single", "double", "harmonic", "sinusoidal"])
def test_unitarity_with_potential(simulation, potential_type):
    simulation.set_potential_type(potential_type)
    simulation.initialize(momentum_x=3.0)
    simulation.evolve(100)
    assert abs(simulation.get_total_probability() - 1) < 1e-4


def test_time_scale_linearity(initialized_simulation):
    initialized_simulation.step()
    single = initialized_simulation.get_time()

    initialized_simulation.set_time_scale(2.0)
    initialized_simulation.step()
    double = initialized_simulation.get_time() - single

    assert single == pytest.approx(0.005)
    assert double == pytest.approx(2 * single)


def test_time_scale_must_be_positive(simulation):
    with pytest.raises(PhysicalParameterError):
        simulation.set_time_scale(0.0)
    assert simulation.time_scale == 1.0


def test_free_packet_moves_with_group_velocity(simulation):
    simulation.initialize(momentum_x=10.0)
    simulation.evolve(20)
    x, y = mean_position(simulation)
    assert x == pytest.approx(3.2 + 10.0 * 0.1, abs=0.05)
    assert y == pytest.approx(3.2, abs=0.05)


def test_periodic_wrap():
    simulation = Simulation_Class(64, 0.1, 0.005, seed=0)
    L = simulation.domain_size
    simulation.initialize(center_x=5.6, center_y=3.2, width=0.3, momentum_x=10.0)

    def left_half_probability():
        density = simulation.get_probability_density()
        return float(np.sum(density[:, :32]) * simulation.dx ** 2)

    assert left_half_probability() < 0.01

    for _ in range(40):
        simulation.step()
        assert abs(simulation.get_total_probability() - 1) < 1e-4

    # 5.6 + 10 * 0.2 = 7.6, i.e. 1.2 after wrapping
    assert left_half_probability() > 0.95
    density = simulation.get_probability_density()
    iy, ix = np.unravel_index(np.argmax(density), density.shape)
    assert abs(ix * simulation.dx - (7.6 - L)) < 0.3
    assert iy == 32


def test_reset_reapplies_initial_parameters(simulation):
    simulation.set_potential_type("single")
    simulation.set_measurement_radius(0.5)
    simulation.initialize(center_x=2.0, center_y=4.0, width=0.5, momentum_x=1.0)
    initial = simulation.get_wavefunction()

    simulation.evolve(10)
    simulation.reset()

    assert simulation.get_time() == 0
    assert np.allclose(simulation.get_wavefunction(), initial)
    assert simulation.get_potential_type() == "single"
    assert simulation.measurement_radius == 0.5


def test_reset_without_initialize_uses_defaults(simulation):
    simulation.reset()
    assert abs(simulation.get_total_probability() - 1) < 1e-6


def test_step_on_empty_field_is_harmless(simulation):
    simulation.step()
    assert simulation.get_total_probability() == 0.0
    assert simulation.get_time() == pytest.approx(0.005)


# Operator cache

def test_kinetic_table_uses_fft_bin_convention(simulation):
    kinetic = simulation.propagator.get_kinetic_propagator()
    L = simulation.domain_size
    k = 2 * np.pi / L
    factor = -1 * simulation.dt_effective / 2

    assert kinetic[0, 0] == pytest.approx(1.0)
    assert kinetic[0, 1] == pytest.approx(np.exp(1j * factor * k ** 2))
    assert kinetic[0, 63] == pytest.approx(np.exp(1j * factor * k ** 2))
    assert kinetic[0, 31] == pytest.approx(np.exp(1j * factor * (31 * k) ** 2))
    assert kinetic[0, 32] == pytest.approx(np.exp(1j * factor * (32 * k) ** 2))
    assert np.allclose(np.abs(kinetic), 1.0)


def test_kinetic_table_is_cached_until_time_scale_changes(initialized_simulation):
    propagator = initialized_simulation.propagator
    first = propagator.get_kinetic_propagator()
    assert propagator.get_kinetic_propagator() is first

    initialized_simulation.set_time_scale(2.0)
    initialized_simulation.step()
    second = propagator.get_kinetic_propagator()

    assert second is not first
    assert np.allclose(second, first ** 2)


def test_potential_table_follows_potential_changes(simulation):
    propagator = simulation.propagator
    simulation.set_potential_type("single")
    first = propagator.get_potential_propagator()
    assert propagator.get_potential_propagator() is first

    simulation.set_potential_strength_scale(2.0)
    second = propagator.get_potential_propagator()
    assert second is not first
    assert np.allclose(second, first ** 2)


def test_potential_change_keeps_kinetic_table(simulation):
    first = simulation.propagator.get_kinetic_propagator()
    simulation.set_potential_type("harmonic")
    assert simulation.propagator.get_kinetic_propagator() is first


def test_dealiasing_filter(simulation):
    simulation.set_filter_enabled(True)
    assert simulation.is_filter_enabled()
    kinetic = simulation.propagator.get_kinetic_propagator()
    assert abs(kinetic[0, 0]) == pytest.approx(1.0)
    assert abs(kinetic[0, 5]) == pytest.approx(1.0)
    assert abs(kinetic[32, 32]) < 1e-3
    assert np.all(np.abs(kinetic) <= 1.0 + 1e-12)

    simulation.set_filter_enabled(False)
    assert np.allclose(np.abs(simulation.propagator.get_kinetic_propagator()), 1.0)


# Potentials

def test_potential_defaults_to_none(simulation):
    assert simulation.get_potential_type() == "none"
    assert not np.any(simulation.get_potential())


def test_single_well(simulation):
    simulation.set_potential_type("single")
    V = simulation.get_potential()
    assert V.min() == pytest.approx(-1.0)
    assert V[32, 32] == pytest.approx(-1.0)
    assert np.all(V <= 0)


def test_double_well(simulation):
    simulation.set_potential_type("double")
    V = simulation.get_potential()
    L = simulation.domain_size
    iy, ix = np.unravel_index(np.argmin(V), V.shape)
    assert ix == 32
    assert min(abs(iy * 0.1 - L / 3), abs(iy * 0.1 - 2 * L / 3)) < 0.1
    assert V[32, 32] > V.min()


def test_harmonic_potential(simulation):
    simulation.set_potential_type("harmonic")
    V = simulation.get_potential()
    assert V[32, 32] == pytest.approx(0.0)
    assert V[32, 42] == pytest.approx(1.0 / (2 * 2.0 ** 2) * 1.0 ** 2)
    assert np.all(V >= 0)


def test_sinusoidal_potential(simulation):
    simulation.set_potential_type("sinusoidal")
    V = simulation.get_potential()
    assert V[0, 10] == pytest.approx(-1.0)
    assert np.allclose(V[:, 0], V[:, 17])


def test_potential_aliases(simulation):
    simulation.set_potential_type("quadratic")
    assert simulation.get_potential_type() == "harmonic"
    simulation.set_potential_type("sinusoid")
    assert simulation.get_potential_type() == "sinusoidal"


def test_unknown_potential_type(simulation):
    with pytest.raises(IncorrectPotentialTypeError):
        simulation.set_potential_type("triple")
    assert simulation.get_potential_type() == "none"


def test_strength_scale_is_applied_and_clamped(simulation):
    simulation.set_potential_type("single")
    simulation.set_potential_strength_scale(2.5)
    assert simulation.get_potential().min() == pytest.approx(-2.5)

    simulation.set_potential_strength_scale(100.0)
    assert simulation.get_potential().min() == pytest.approx(-10.0)

    simulation.set_potential_strength_scale(0.0)
    assert simulation.get_potential().min() == pytest.approx(-0.1)


def test_potential_is_read_only(simulation):
    V = simulation.get_potential()
    with pytest.raises(ValueError):
        V[0, 0] = 1.0


def test_freehand_potential(simulation):
    simulation.set_potential_type("single")
    simulation.set_potential_type("freehand")
    assert not np.any(simulation.get_potential())

    revision = simulation.potential.revision
    simulation.add_potential_at(10, 20, 5.0, 0.3)
    simulation.finalize_potential_changes()
    V = simulation.get_potential()

    assert simulation.potential.revision > revision
    assert V[20, 10] == pytest.approx(5.0)
    assert V[20, 11] == pytest.approx(5.0 * np.exp(-0.01 / (2 * 0.09)))
    assert V[20, 30] == 0.0

    # Strength changes do not wipe the drawing
    simulation.set_potential_strength_scale(3.0)
    assert simulation.get_potential()[20, 10] == pytest.approx(5.0)

    simulation.clear_freehand_potential()
    assert not np.any(simulation.get_potential())


def test_freehand_brush_wraps_around_edges(simulation):
    simulation.set_potential_type("freehand")
    simulation.add_potential_at(0, 0, 1.0, 0.2)
    V = simulation.get_potential()
    assert V[0, 63] == pytest.approx(V[0, 1])
    assert V[63, 0] > 0


def test_freehand_walls_attenuate_the_packet(simulation):
    simulation.set_potential_type("freehand")
    simulation.add_potential_at(32, 32, 2.0, 0.3)
    simulation.finalize_potential_changes()
    simulation.initialize(width=0.6)

    assert abs(simulation.get_total_probability() - 1) < 1e-6
    density = simulation.get_probability_density()
    assert density[32, 32] < 1e-6 * density.max()


def test_base_potential(simulation):
    simulation.set_potential_type("freehand")
    simulation.set_base_potential(0.5)
    assert np.allclose(simulation.get_potential(), 0.5)

    simulation.initialize()
    simulation.evolve(10)
    assert abs(simulation.get_total_probability() - 1) < 1e-4


# Accessors

def test_accessors_return_copies(initialized_simulation):
    psi = initialized_simulation.get_wavefunction()
    psi[:] = 0
    assert initialized_simulation.get_total_probability() == pytest.approx(1.0)

    density = initialized_simulation.get_probability_density()
    assert density[32, 32] == pytest.approx(initialized_simulation.get_probability_at(32, 32))
    assert initialized_simulation.get_phase().shape == (64, 64)


def test_get_probability_at_out_of_range(initialized_simulation):
    with pytest.raises(IndexError):
        initialized_simulation.get_probability_at(64, 0)


def test_independent_simulations_do_not_interfere():
    a = Simulation_Class(32, 0.1, 0.005)
    b = Simulation_Class(64, 0.2, 0.01)
    a.initialize()
    b.initialize(momentum_x=2.0)
    a.evolve(10)
    b.evolve(10)
    assert a.propagator.get_kinetic_propagator().shape == (32, 32)
    assert b.propagator.get_kinetic_propagator().shape == (64, 64)
    assert abs(a.get_total_probability() - 1) < 1e-4
    assert abs(b.get_total_probability() - 1) < 1e-4


# Physical units

def test_from_physical_units_electron():
    simulation = Simulation_Class.from_physical_units(
        64, 0.1, 0.01, m_s=510998.95,
        sim_units={"dUnits": "nm", "tUnits": "fs", "mUnits": "kg", "eUnits": "eV"},
    )
    assert simulation.h_bar == pytest.approx(1.054571817e-31, rel=1e-6)
    assert simulation.mass == pytest.approx(9.1093837e-31, rel=1e-5)
    assert simulation.sim_units["dUnits"] == "nm"

    simulation.initialize(momentum_x=5 * simulation.h_bar)
    simulation.evolve(20)
    assert abs(simulation.get_total_probability() - 1) < 1e-4
