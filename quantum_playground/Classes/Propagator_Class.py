import numpy as np

from quantum_playground.Functions.Schrodinger_eq_functions import wave_numbers


class Propagator_Class:
    """
    Class to handle the creation and caching of the propagators used in the
    split-step Fourier evolution.

    Two tables are kept:
        - the kinetic propagator exp(-i h_bar k^2 dt_eff / 2m), one entry per
          frequency bin, keyed by (N, L, dt_eff, h_bar, mass, filter flag)
        - the potential half-step propagator exp(-i V dt_eff / 2 h_bar), one
          entry per lattice cell, keyed by (potential revision, dt_eff, h_bar)

    A table is rebuilt only when its key no longer matches the simulation.
    """

    # De-aliasing filter starts at this fraction of the Nyquist wave number
    FILTER_ONSET = 0.9

    def __init__(self, simulation):
        """
        Initialize the propagator with references to the simulation parameters.

        Parameters:
            simulation: Simulation_Class instance containing necessary parameters
        """
        self.simulation = simulation

        # Placeholders for propagators
        self.kinetic_propagator = None
        self.potential_propagator_half = None
        self._kinetic_key = None
        self._potential_key = None

    def kinetic_key(self):
        sim = self.simulation
        return (sim.N, sim.domain_size, sim.dt_effective, sim.h_bar, sim.mass, sim.filter_enabled)

    def potential_key(self):
        sim = self.simulation
        return (sim.potential.revision, sim.dt_effective, sim.h_bar)

    def invalidate(self):
        """Forget both tables so they are rebuilt before the next step."""
        self._kinetic_key = None
        self._potential_key = None

    def get_kinetic_propagator(self):
        key = self.kinetic_key()
        if key != self._kinetic_key:
            self.kinetic_propagator = self.compute_kinetic_propagator()
            self._kinetic_key = key
        return self.kinetic_propagator

    def get_potential_propagator(self):
        key = self.potential_key()
        if key != self._potential_key:
            self.potential_propagator_half = self.compute_potential_propagator()
            self._potential_key = key
        return self.potential_propagator_half

    def compute_kinetic_propagator(self):
        """
        Compute the kinetic propagator based on Fourier space components.

        Returns:
            np.ndarray: The kinetic propagator in k-space, indexed [ky, kx]
        """
        sim = self.simulation
        k = wave_numbers(sim.N, sim.domain_size)
        k_squared_sum = k[np.newaxis, :] ** 2 + k[:, np.newaxis] ** 2

        propagator = np.exp(-1j * sim.h_bar * k_squared_sum * sim.dt_effective / (2 * sim.mass))

        if sim.filter_enabled:
            propagator *= self.compute_dealiasing_filter(np.sqrt(k_squared_sum))

        return propagator

    def compute_dealiasing_filter(self, k_magnitude):
        """
        Smooth damping of the bins closest to the Nyquist wave number pi/dx.

        Bins with |k| below FILTER_ONSET * k_max are untouched; above it the
        amplitude decays as exp(-((|k| - k_filter) / (k_max - k_filter))^2).
        """
        k_max = np.pi / self.simulation.dx
        k_filter = self.FILTER_ONSET * k_max
        filter_width = k_max - k_filter

        excess = np.clip(k_magnitude - k_filter, 0, None)
        return np.exp(-(excess / filter_width) ** 2)

    def compute_potential_propagator(self):
        """
        Compute the potential half-step propagator exp(-i V dt_eff / 2 h_bar).

        Returns:
            np.ndarray: The potential propagator in real space
        """
        sim = self.simulation
        return np.exp(-1j * sim.potential.values * sim.dt_effective / (2 * sim.h_bar))
