import numpy as np

from quantum_playground.Functions.Schrodinger_eq_functions import normalize_wavefunction


class Complex_Field:
    """
    Dense N x N lattice of complex amplitudes.

    The values are kept in a single complex128 array indexed [iy, ix], so every
    lattice point occupies two consecutive float64 slots (real, imaginary) and
    rows are contiguous in memory.
    """

    def __init__(self, N):
        self.N = N
        self.data = np.zeros((N, N), dtype=np.complex128)

    def _check_index(self, ix, iy):
        if not (0 <= ix < self.N and 0 <= iy < self.N):
            raise IndexError(f"Lattice index ({ix}, {iy}) is outside the {self.N}x{self.N} field")

    def get(self, ix, iy):
        """Complex amplitude at lattice coordinates (ix, iy)."""
        self._check_index(ix, iy)
        return complex(self.data[iy, ix])

    def set(self, ix, iy, value):
        self._check_index(ix, iy)
        self.data[iy, ix] = value

    def copy_from(self, other):
        """
        Overwrite this field with the amplitudes of another field of the same size.

        Raises:
            ValueError: If the sizes differ
        """
        if other.N != self.N:
            raise ValueError(f"Cannot copy a {other.N}x{other.N} field into a {self.N}x{self.N} field")
        np.copyto(self.data, other.data)

    def clone(self):
        field = Complex_Field(self.N)
        field.copy_from(self)
        return field

    def probability_at(self, ix, iy):
        """Point probability density re^2 + im^2 at (ix, iy)."""
        self._check_index(ix, iy)
        value = self.data[iy, ix]
        return float(value.real ** 2 + value.imag ** 2)

    def density(self):
        return self.data.real ** 2 + self.data.imag ** 2

    def phase(self):
        return np.angle(self.data)

    def total_probability(self, dx):
        """Total probability sum |psi|^2 dx^2."""
        return float(np.sum(self.density()) * dx ** 2)

    def scale(self, factor):
        self.data *= factor

    def zero(self):
        self.data.fill(0)

    def normalize(self, dx):
        """Rescale to unit total probability. Returns the norm found before rescaling."""
        return float(normalize_wavefunction(self.data, dx))
