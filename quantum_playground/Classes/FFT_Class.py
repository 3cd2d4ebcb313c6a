import numpy as np

from quantum_playground.Errors.Errors import GridSizeError
from quantum_playground.Functions.Schrodinger_eq_functions import is_power_of_two


class FFT:
    """
    Radix-2 Cooley-Tukey Fast Fourier Transform for a fixed power-of-two length.

    The bit-reversal permutation and the twiddle factors W^k = exp(-2 pi i k / size)
    are computed once per instance. Transforms act on the last axis of a
    complex array, so a whole stack of rows is transformed in one pass.
    """

    def __init__(self, size):
        """
        Parameters:
            size (int): Transform length, a power of two of at least 2

        Raises:
            GridSizeError: If size is not a power of two or is smaller than 2
        """
        if not is_power_of_two(size) or size < 2:
            raise GridSizeError(size)

        self.size = int(size)
        self.log2_size = self.size.bit_length() - 1

        # e.g. for size 8: [0, 4, 2, 6, 1, 5, 3, 7]
        self.bit_reversal = np.array(
            [self._reverse_bits(i, self.log2_size) for i in range(self.size)], dtype=np.intp
        )

        angles = -2 * np.pi * np.arange(self.size // 2) / self.size
        self.cos_table = np.cos(angles)
        self.sin_table = np.sin(angles)

    @staticmethod
    def _reverse_bits(n, bits):
        reversed_n = 0
        for _ in range(bits):
            reversed_n = (reversed_n << 1) | (n & 1)
            n >>= 1
        return reversed_n

    def _twiddles(self, length):
        """Twiddle factors W_length^j, j < length/2, read from the size-wide tables."""
        step = self.size // length
        return self.cos_table[::step] + 1j * self.sin_table[::step]

    def forward(self, values):
        """
        Unnormalized forward DFT along the last axis (decimation in time).

        Parameters:
            values (np.ndarray): Complex input whose last axis has length `size`

        Returns:
            np.ndarray: New complex128 array holding the frequency bins
        """
        values = np.asarray(values)
        if values.shape[-1] != self.size:
            raise ValueError(f"Expected last axis of length {self.size}, got {values.shape[-1]}")

        # Reorder by bit-reversed index (fancy indexing copies)
        output = np.ascontiguousarray(values[..., self.bit_reversal], dtype=np.complex128)
        leading = output.shape[:-1]

        length = 2
        while length <= self.size:
            half = length // 2
            twiddle = self._twiddles(length)

            blocks = output.reshape(leading + (self.size // length, length))
            even = blocks[..., :half].copy()
            odd = blocks[..., half:] * twiddle

            # Butterfly
            blocks[..., :half] = even + odd
            blocks[..., half:] = even - odd

            length <<= 1

        return output

    def inverse(self, values):
        """Inverse DFT: conjugate, forward transform, conjugate and divide by size."""
        output = self.forward(np.conj(values))
        np.conjugate(output, out=output)
        output /= self.size
        return output


class FFT2D:
    """
    Two-dimensional transform of an N x N field by row-column decomposition.

    Forward: every row, then every column. Inverse: columns first, then rows.
    """

    def __init__(self, size):
        self.size = size
        self.fft = FFT(size)

    def forward(self, values):
        rows = self.fft.forward(values)
        return np.ascontiguousarray(self.fft.forward(rows.T).T)

    def inverse(self, values):
        columns = self.fft.inverse(np.asarray(values).T).T
        return self.fft.inverse(columns)
