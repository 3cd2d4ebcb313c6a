import numpy as np

from quantum_playground.Errors.Errors import IncorrectPotentialTypeError
from quantum_playground.Functions.Schrodinger_eq_functions import (
    gaussian_envelope,
    minimum_image,
    periodic_distance_squared,
)


class Potential_Class:
    """
    Static potential V(x, y) on the simulation lattice.

    The field is generated from a type selector and a strength scale and is
    regenerated whenever either changes. The "freehand" type is painted
    by the caller with `add_at` and survives regeneration.

    Every change bumps `revision`, which the propagator uses as its cache key.
    """

    POTENTIAL_TYPES = ("none", "single", "double", "harmonic", "sinusoidal", "freehand")
    ALIASES = {"quadratic": "harmonic", "sinusoid": "sinusoidal"}

    STRENGTH = 1.0  # Depth of the wells before scaling
    WIDTH = 2.0  # Physical width of the wells, independent of the grid
    MIN_STRENGTH_SCALE = 0.1
    MAX_STRENGTH_SCALE = 10.0

    def __init__(self, N, dx, grids, potential_type="none", strength_scale=1.0):
        self.N = N
        self.dx = dx
        self.domain_size = N * dx
        self.grids = grids
        self.values = np.zeros((N, N), dtype=np.float64)
        self.revision = 0
        self.potential_type = self.resolve_type(potential_type)
        self.strength_scale = self._clamp_scale(strength_scale)
        self.regenerate()

    def resolve_type(self, potential_type):
        """
        Map a potential type (or one of its aliases) onto its canonical name.

        Raises:
            IncorrectPotentialTypeError: If the type is not recognized
        """
        potential_type = self.ALIASES.get(potential_type, potential_type)
        if potential_type not in self.POTENTIAL_TYPES:
            raise IncorrectPotentialTypeError(potential_type, self.POTENTIAL_TYPES)
        return potential_type

    def _clamp_scale(self, scale):
        return float(min(self.MAX_STRENGTH_SCALE, max(self.MIN_STRENGTH_SCALE, scale)))

    @property
    def is_zero(self):
        return not np.any(self.values)

    def set_type(self, potential_type):
        potential_type = self.resolve_type(potential_type)
        self.potential_type = potential_type
        if potential_type == "freehand":
            # Start from a clean canvas
            self.values.fill(0)
            self._touch()
        else:
            self.regenerate()

    def set_strength_scale(self, scale):
        self.strength_scale = self._clamp_scale(scale)
        self.regenerate()

    def regenerate(self):
        """Recompute the potential for the current type and strength scale."""
        if self.potential_type == "freehand":
            # Preserve the painted potential
            return

        generators = {
            "none": self._none,
            "single": self._single_well,
            "double": self._double_well,
            "harmonic": self._harmonic,
            "sinusoidal": self._sinusoidal,
        }
        self.values = generators[self.potential_type]() * self.strength_scale
        self._touch()

    def _touch(self):
        self.revision += 1

    def _none(self):
        return np.zeros((self.N, self.N), dtype=np.float64)

    def _single_well(self):
        L = self.domain_size
        r_squared = periodic_distance_squared(self.grids, L / 2, L / 2, L)
        return -self.STRENGTH * gaussian_envelope(r_squared, self.WIDTH)

    def _double_well(self):
        # Two narrow wells stacked along y
        L = self.domain_size
        sigma_narrow = self.WIDTH / 3
        r2_1 = periodic_distance_squared(self.grids, L / 2, L / 3, L)
        r2_2 = periodic_distance_squared(self.grids, L / 2, 2 * L / 3, L)
        return -self.STRENGTH * (gaussian_envelope(r2_1, sigma_narrow) + gaussian_envelope(r2_2, sigma_narrow))

    def _harmonic(self):
        L = self.domain_size
        r_squared = periodic_distance_squared(self.grids, L / 2, L / 2, L)
        k = self.STRENGTH / (2 * self.WIDTH ** 2)
        return k * r_squared

    def _sinusoidal(self):
        # Three full periods across y keep V periodic: V(0) = V(L)
        return -self.STRENGTH * np.cos(6 * np.pi * self.grids[1] / self.domain_size)

    def add_at(self, ix, iy, strength, radius):
        """
        Paint a Gaussian brush stroke of the given strength centred on cell (ix, iy).

        Only cells within 3 radius of the centre are touched; distances wrap
        around the periodic edges.
        """
        N = self.N
        x0 = ix * self.dx
        y0 = iy * self.dx
        cell_radius = int(np.ceil(3 * radius / self.dx))

        offsets = np.arange(-cell_radius, cell_radius + 1)
        xs = np.unique((ix + offsets) % N)
        ys = np.unique((iy + offsets) % N)
        delta_x = minimum_image(xs * self.dx - x0, self.domain_size)
        delta_y = minimum_image(ys * self.dx - y0, self.domain_size)
        r_squared = delta_y[:, np.newaxis] ** 2 + delta_x[np.newaxis, :] ** 2

        self.values[np.ix_(ys, xs)] += strength * gaussian_envelope(r_squared, radius)

    def fill(self, value):
        self.values.fill(value)
        self._touch()

    def commit(self):
        """Mark painted changes as final so dependent propagators are rebuilt."""
        self._touch()
