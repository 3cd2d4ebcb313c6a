import numpy as np

from quantum_playground.Functions.Schrodinger_eq_functions import (
    gaussian_envelope,
    minimum_image,
    normalize_wavefunction,
)


class Packet:
    """
    A class for wave packet initialization. Builds the normalized Gaussian
    wave packet written into the simulation field by `initialize()`.
    """

    def __init__(self, grids, dx, domain_size, h_bar=1.0, center=(0.0, 0.0), width=1.0, momenta=(0.0, 0.0)):
        """
        Initialize a Packet instance.

        Parameters:
            grids (list[np.ndarray]): [x, y] coordinate meshes of the lattice
            dx (float): Grid spacing
            domain_size (float): Periodic box length L
            h_bar (float): Reduced Planck constant
            center (tuple): Physical centre (x0, y0) of the packet
            width (float): Gaussian width of the amplitude
            momenta (tuple): Momentum (px, py) carried by the packet
        """
        self.grids = grids
        self.dx = dx
        self.domain_size = domain_size
        self.h_bar = h_bar
        self.center = center
        self.width = width
        self.momenta = momenta

    def displacements(self):
        """Minimum-image displacement of every lattice point from the packet centre."""
        return [
            minimum_image(grid - mean, self.domain_size)
            for grid, mean in zip(self.grids, self.center)
        ]

    def compute_momentum_propagator(self, displacements):
        """Plane-wave factor exp(i p.r / h_bar), with r measured from the centre."""
        phase = np.zeros_like(displacements[0])
        for momentum, delta in zip(self.momenta, displacements):
            phase += momentum * delta / self.h_bar
        return np.exp(1j * phase)

    def create_psi_0(self):
        """
        Creates the normalized initial wavefunction psi_0.

        Returns:
            np.ndarray: complex128 field with sum |psi|^2 dx^2 = 1
        """
        displacements = self.displacements()
        r_squared = sum(delta ** 2 for delta in displacements)

        psi_0 = gaussian_envelope(r_squared, self.width) * self.compute_momentum_propagator(displacements)
        psi_0 = psi_0.astype(np.complex128)
        normalize_wavefunction(psi_0, self.dx)
        return psi_0
