import numpy as np


def is_power_of_two(n):
    """Return True if n is an integer power of two (1, 2, 4, 8, ...)."""
    return isinstance(n, (int, np.integer)) and not isinstance(n, bool) and n > 0 and (n & (n - 1)) == 0


def gaussian_envelope(r_squared, width):
    """Function which returns the gaussian amplitude exp(-r^2 / 2 width^2).
    params are r_squared - squared distance from the centre, width - standard deviation"""
    return np.exp(-r_squared / (2 * width ** 2))


def normalize_wavefunction(psi, dx):
    """Normalize the 2D wavefunction so that sum |psi|^2 dx^2 = 1.
    intakes psi and dx, returns the norm before normalization"""
    norm = np.sqrt(np.sum(np.abs(psi) ** 2) * dx ** 2)
    if norm > 0:
        psi /= norm
    return norm


def minimum_image(delta, domain_size):
    """
    Fold displacements onto the nearest periodic image.

    Each axis is treated independently: a displacement longer than half the
    domain is replaced by the shorter way round.

    Parameters:
        delta (np.ndarray or float): Raw displacement(s) along one axis
        domain_size (float): Period L of that axis

    Returns:
        np.ndarray: Signed displacement(s) in (-L/2, L/2]
    """
    delta = np.remainder(delta, domain_size)
    return delta - domain_size * (delta > domain_size / 2)


def periodic_distance_squared(grids, center_x, center_y, domain_size):
    """
    Squared minimum-image distance from (center_x, center_y) to every lattice point.

    Parameters:
        grids (list[np.ndarray]): [x, y] coordinate meshes indexed [iy, ix]
        center_x, center_y (float): Physical position
        domain_size (float): Side length L of the periodic box

    Returns:
        np.ndarray: r^2 on the lattice
    """
    delta_x = minimum_image(grids[0] - center_x, domain_size)
    delta_y = minimum_image(grids[1] - center_y, domain_size)
    return delta_x ** 2 + delta_y ** 2


def wave_numbers(N, domain_size):
    """
    Wave numbers of the FFT frequency bins.

    Bin n < N/2 holds k = 2*pi*n/L, bin n >= N/2 holds the wrapped negative
    frequency k = 2*pi*(n - N)/L.
    """
    n = np.arange(N)
    return 2 * np.pi * np.where(n < N // 2, n, n - N) / domain_size


def create_grids(N, dx):
    """Return the [x, y] meshes (indexed [iy, ix]) with cell (ix, iy) at (ix*dx, iy*dx)."""
    axis = np.arange(N) * dx
    grid_y, grid_x = np.meshgrid(axis, axis, indexing="ij")
    return [grid_x, grid_y]


def free_particle_time_step_limit(dx, h_bar, mass):
    """Largest stable time step for the kinetic term, 2 m dx^2 / h_bar."""
    return 2 * mass * dx ** 2 / h_bar


def potential_time_step_limit(potential_values, h_bar):
    """Largest time step for which the potential phase stays below 2 pi per step."""
    phi_max = float(np.abs(potential_values).max()) if np.size(potential_values) else 0.0

    # Avoid division by zero
    if phi_max < 1e-10:
        return np.inf

    return 2 * np.pi * h_bar / phi_max
