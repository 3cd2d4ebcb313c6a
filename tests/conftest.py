import pytest

from quantum_playground.Classes.Simulation_Class import Simulation_Class


@pytest.fixture
def simulation():
    """64 x 64 periodic lattice, dx = 0.1, dt = 0.005, natural units."""
    return Simulation_Class(64, 0.1, 0.005, h_bar=1.0, mass=1.0, boundary_condition="periodic",
                            time_scale=1.0, seed=1234)


@pytest.fixture
def initialized_simulation(simulation):
    simulation.initialize()
    return simulation
