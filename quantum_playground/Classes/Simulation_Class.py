import functools
import inspect
import math

import numpy as np

from quantum_playground.Errors.Errors import (
    BoundaryConditionError,
    GridSizeError,
    MissingArgumentError,
    PhysicalParameterError,
    TypeMismatchError,
)
from quantum_playground.Functions.Schrodinger_eq_functions import (
    create_grids,
    free_particle_time_step_limit,
    is_power_of_two,
    potential_time_step_limit,
)
from quantum_playground.Functions.units_functions import physical_constants
from quantum_playground.Classes.Complex_Field_Class import Complex_Field
from quantum_playground.Classes.FFT_Class import FFT2D
from quantum_playground.Classes.Measurement_Class import Measurement_Class
from quantum_playground.Classes.Potential_Class import Potential_Class
from quantum_playground.Classes.Propagator_Class import Propagator_Class
from quantum_playground.Classes.Wave_Packet_Class import Packet


def parameter_check(*types):
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            sig = inspect.signature(func)
            parameters = list(sig.parameters.keys())

            # Check if it's a method by looking for 'self'
            is_method = parameters[0] == "self"

            # Get parameter names to check (excluding 'self' if it's a method)
            params_to_check = parameters[1:] if is_method else parameters

            # Make sure we don't try to check more parameters than types provided
            params_to_check = params_to_check[:len(types)]

            try:
                bound_args = sig.bind(*args, **kwargs)
                bound_args.apply_defaults()
                arg_dict = bound_args.arguments
            except TypeError as e:
                error_msg = str(e)
                if "missing a required argument" in error_msg:
                    # Extract the argument name from the error message
                    arg_name = error_msg.split("'")[1]
                    raise MissingArgumentError(arg_name, func.__name__) from e
                raise

            # Check each parameter against its expected type
            for i, param_name in enumerate(params_to_check):
                param_value = arg_dict[param_name]
                expected_type = types[i]

                # bool is an int subclass but never a valid number here
                is_bool = isinstance(param_value, bool) and bool not in (
                    expected_type if isinstance(expected_type, tuple) else (expected_type,)
                )
                if is_bool or not isinstance(param_value, expected_type):
                    raise TypeMismatchError(param_name, expected_type, type(param_value), func.__name__)

            return func(*args, **kwargs)

        return wrapper

    return decorator


class Simulation_Class:
    """
    Two-dimensional Schrodinger simulation on a periodic N x N lattice.

    Owns the wave function, the potential, the propagator tables and the
    measurement apparatus. Callers drive it with `initialize()`, `step()` and
    `measure()` and read derived quantities through the accessors.
    """

    NUMBER = (int, float)

    @parameter_check((int, np.integer), NUMBER, NUMBER, NUMBER, NUMBER, str, NUMBER, NUMBER, bool)
    def __init__(self, grid_size, dx, dt, h_bar=1.0, mass=1.0, boundary_condition="periodic", time_scale=1.0,
                 measurement_radius=0.2, filter_enabled=False, seed=None):
        """
        Initialize the simulation parameters and setup.

        Parameters:
            grid_size (int): Number of lattice points per axis, a power of two >= 2
            dx (float): Spatial step; the domain side is L = grid_size * dx
            dt (float): Time step
            h_bar (float): Reduced Planck constant
            mass (float): Particle mass
            boundary_condition (str): Only "periodic" is supported
            time_scale (float): Multiplier on dt for each step
            measurement_radius (float): Width of the detector sensitivity
            filter_enabled (bool): Damp the wave numbers closest to Nyquist
            seed (int, np.random.Generator or None): Source for measurement draws

        Raises:
            GridSizeError: If grid_size is not a power of two >= 2
            PhysicalParameterError: If a physical constant is not positive and finite
            BoundaryConditionError: If boundary_condition is not "periodic"
        """
        if not is_power_of_two(grid_size) or grid_size < 2:
            raise GridSizeError(grid_size)
        for name, value in (("dx", dx), ("dt", dt), ("h_bar", h_bar), ("mass", mass), ("time_scale", time_scale)):
            self._check_positive(name, value)
        if boundary_condition != "periodic":
            raise BoundaryConditionError(boundary_condition)

        # Setup parameters
        self.N = int(grid_size)
        self.dx = float(dx)
        self.dt = float(dt)
        self.h_bar = float(h_bar)
        self.mass = float(mass)
        self.boundary_condition = boundary_condition
        self.time_scale = float(time_scale)
        self.dt_effective = self.dt * self.time_scale
        self.domain_size = self.N * self.dx
        self.filter_enabled = filter_enabled
        self.measurement_radius = self._clamp_radius(measurement_radius)

        self.grids = create_grids(self.N, self.dx)

        # Wave function (position space)
        self.psi = Complex_Field(self.N)
        self.fft = FFT2D(self.N)

        self.potential = Potential_Class(self.N, self.dx, self.grids)
        self.propagator = Propagator_Class(self)
        self.measurement = Measurement_Class(self, np.random.default_rng(seed))

        self.time = 0.0
        self.initial_parameters = None

        self.check_time_step_restriction()

    @classmethod
    def from_physical_units(cls, grid_size, dx, dt, m_s, sim_units=None, **kwargs):
        """
        Build a simulation whose h_bar and mass are expressed in a physical unit system.

        Parameters:
            grid_size (int): Lattice points per axis
            dx, dt (float): Steps in sim_units["dUnits"] and sim_units["tUnits"]
            m_s (float): Particle rest energy in sim_units["eUnits"]
            sim_units (dict): Unit names, see units_functions.DEFAULT_SIM_UNITS
            **kwargs: Any other Simulation_Class keyword argument

        Returns:
            Simulation_Class
        """
        constants = physical_constants(m_s, sim_units)
        simulation = cls(grid_size, dx, dt, h_bar=constants["h_bar"], mass=constants["mass"], **kwargs)
        simulation.sim_units = constants["units"]
        return simulation

    @staticmethod
    def _check_positive(name, value):
        if not (math.isfinite(value) and value > 0):
            raise PhysicalParameterError(name, value)

    @staticmethod
    def _clamp_radius(radius):
        return float(min(2.0, max(0.05, radius)))

    def check_time_step_restriction(self):
        """
        Check if the time step satisfies the stability criteria.

        Returns:
            bool: True if the effective time step is below both limits
        """
        first_constraint = free_particle_time_step_limit(self.dx, self.h_bar, self.mass)
        second_constraint = potential_time_step_limit(self.potential.values, self.h_bar)

        if self.dt_effective >= min(first_constraint, second_constraint):
            print(f"WARNING: Effective time step dt*time_scale = {self.dt_effective} exceeds the stability criterion.")
            print(f"  - From dispersion relation: {first_constraint}")
            print(f"  - From potential term: {second_constraint}")
            print("Consider reducing dt or time_scale.")
            return False

        return True

    def initialize(self, center_x=None, center_y=None, width=None, momentum_x=0.0, momentum_y=0.0):
        """
        Write a normalized Gaussian wave packet into the field and reset the clock.

        Parameters:
            center_x, center_y (float): Physical centre, default the middle of the domain
            width (float): Gaussian width of the amplitude, default L/20
            momentum_x, momentum_y (float): Momentum carried by the packet
        """
        L = self.domain_size
        center_x = L / 2 if center_x is None else center_x
        center_y = L / 2 if center_y is None else center_y
        width = L / 20 if width is None else width
        self._check_positive("width", width)

        self.initial_parameters = {
            "center_x": center_x,
            "center_y": center_y,
            "width": width,
            "momentum_x": momentum_x,
            "momentum_y": momentum_y,
        }

        packet = Packet(
            grids=self.grids,
            dx=self.dx,
            domain_size=L,
            h_bar=self.h_bar,
            center=(center_x, center_y),
            width=width,
            momenta=(momentum_x, momentum_y),
        )
        np.copyto(self.psi.data, packet.create_psi_0())

        if self.potential.potential_type == "freehand":
            self._attenuate_in_walls()

        self.time = 0.0

    def _attenuate_in_walls(self, attenuation_strength=10.0):
        # Keep the packet out of painted walls and wells
        self.psi.data *= np.exp(-attenuation_strength * np.abs(self.potential.values))
        self.psi.normalize(self.dx)

    def reset(self):
        """Re-run the last `initialize()` (or its defaults) and zero the clock."""
        self.initialize(**(self.initial_parameters or {}))

    def step(self):
        """
        Advance the wave function by one Strang-split step of dt * time_scale:
        potential half step, kinetic full step in k-space, potential half step.
        """
        use_potential = not self.potential.is_zero
        if use_potential:
            potential_half = self.propagator.get_potential_propagator()
            self.psi.data *= potential_half

        psi_k = self.fft.forward(self.psi.data)
        psi_k *= self.propagator.get_kinetic_propagator()
        np.copyto(self.psi.data, self.fft.inverse(psi_k))

        if use_potential:
            self.psi.data *= potential_half

        self.time += self.dt_effective

    def evolve(self, num_steps):
        """Perform `num_steps` calls to `step()`."""
        for _ in range(num_steps):
            self.step()

    # Measurement

    def measure(self, x, y):
        return self.measurement.measure(x, y)

    def collapse_positive(self, x, y):
        self.measurement.collapse_positive(x, y)

    def collapse_negative(self, x, y):
        self.measurement.collapse_negative(x, y)

    # Accessors

    def get_total_probability(self):
        return self.psi.total_probability(self.dx)

    def get_probability_at(self, ix, iy):
        return self.psi.probability_at(ix, iy)

    def get_probability_density(self):
        return self.psi.density()

    def get_phase(self):
        return self.psi.phase()

    def get_wavefunction(self):
        return self.psi.data.copy()

    def get_potential(self):
        """Read-only view of the potential V[iy, ix]."""
        view = self.potential.values.view()
        view.flags.writeable = False
        return view

    def get_potential_type(self):
        return self.potential.potential_type

    def get_time(self):
        return self.time

    def is_filter_enabled(self):
        return self.filter_enabled

    def get_parameters(self):
        return {
            "grid_size": self.N,
            "dx": self.dx,
            "dt": self.dt,
            "dt_effective": self.dt_effective,
            "h_bar": self.h_bar,
            "mass": self.mass,
            "boundary_condition": self.boundary_condition,
            "time_scale": self.time_scale,
            "domain_size": self.domain_size,
            "measurement_radius": self.measurement_radius,
            "potential_type": self.potential.potential_type,
            "potential_strength_scale": self.potential.strength_scale,
            "filter_enabled": self.filter_enabled,
            "time": self.time,
        }

    # Configuration

    def set_potential_type(self, potential_type):
        self.potential.set_type(potential_type)

    def set_potential_strength_scale(self, scale):
        """Set the strength multiplier (clamped to [0.1, 10]) and regenerate the potential."""
        self.potential.set_strength_scale(scale)

    def set_time_scale(self, time_scale):
        self._check_positive("time_scale", time_scale)
        self.time_scale = float(time_scale)
        self.dt_effective = self.dt * self.time_scale
        self.propagator.invalidate()
        self.check_time_step_restriction()

    def set_measurement_radius(self, radius):
        """Set the detector width in physical units, clamped to [0.05, 2.0]."""
        self.measurement_radius = self._clamp_radius(radius)

    def set_filter_enabled(self, enabled):
        self.filter_enabled = bool(enabled)

    # Freehand potential

    def add_potential_at(self, ix, iy, strength, radius):
        """Paint potential with a Gaussian brush; call `finalize_potential_changes()` afterwards."""
        self.potential.add_at(ix, iy, strength, radius)

    def finalize_potential_changes(self):
        self.potential.commit()

    def clear_freehand_potential(self):
        self.potential.fill(0.0)

    def set_base_potential(self, value=0.0):
        self.potential.fill(value)
