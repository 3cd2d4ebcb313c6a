import traceback


class ConfigurationError(ValueError):
    """Raised when the simulation is constructed or reconfigured with invalid values."""

    def __init__(self, message, tag: str):
        self.message = message
        self.tag = tag

        # Extract file name and line number from the traceback
        tb = traceback.extract_stack()[-2]
        self.file = tb.filename
        self.line = tb.lineno

        super().__init__(self.message)

    def __str__(self):
        return (f"`invalid <{self.tag}>` {self.message} "
                f"(raised in file {self.file}, line {self.line})")


class GridSizeError(ConfigurationError):
    """Raised when the grid or transform size is not a power of two of at least 2."""

    def __init__(self, size):
        super().__init__(
            message=f"Grid size must be a power of 2 and at least 2, but got {size}",
            tag="grid_size",
        )
        self.size = size


class PhysicalParameterError(ConfigurationError):
    """Raised when a physical constant (dx, dt, h_bar, mass, time_scale) is not a positive finite number."""

    def __init__(self, name, value):
        super().__init__(
            message=f"'{name}' must be a positive finite number, but got {value}",
            tag=name,
        )
        self.value = value


class BoundaryConditionError(ConfigurationError):
    """Raised when a boundary condition other than periodic is requested."""

    def __init__(self, boundary_condition):
        super().__init__(
            message=f"Only 'periodic' boundaries are supported, but got '{boundary_condition}'",
            tag="boundary_condition",
        )


class IncorrectPotentialTypeError(ConfigurationError):
    """Raised when the potential type provided is not recognized."""

    def __init__(self, potential_type, valid_types):
        super().__init__(
            message=f"The potential type '{potential_type}' is not recognized. "
                    f"Valid types are {', '.join(valid_types)}",
            tag="potential_type",
        )
        self.potential_type = potential_type


class MissingArgumentError(TypeError):
    """Raised when a required argument is missing."""

    def __init__(self, arg_name, func_name):
        tb = traceback.extract_stack()[-2]  # Get traceback info
        self.file = tb.filename
        self.line = tb.lineno
        self.message = (f"Missing argument error: '{arg_name}' is required in function '{func_name}'. "
                        f"(Raised in file {self.file}, line {self.line})")

        super().__init__(self.message)

    def __str__(self):
        return self.message


class TypeMismatchError(TypeError):
    """Raised when an argument has an incorrect type."""

    def __init__(self, arg_name, expected_type, actual_type, func_name):
        tb = traceback.extract_stack()[-2]  # Get traceback info
        self.file = tb.filename
        self.line = tb.lineno
        expected = (" or ".join(t.__name__ for t in expected_type)
                    if isinstance(expected_type, tuple) else expected_type.__name__)
        self.message = (f"Type Error: Expected '{expected}' for argument '{arg_name}', "
                        f"but got '{actual_type.__name__}' instead. "
                        f"Raised in function '{func_name}' from file '{self.file}'.")

        super().__init__(self.message)

    def __str__(self):
        return self.message


class DegenerateMeasurementError(RuntimeError):
    """Raised when a negative collapse would remove (almost) all of the remaining probability.

    The wave function is left untouched, so the caller can keep stepping or
    measure again.
    """

    def __init__(self, message, remaining_probability):
        self.message = message
        self.remaining_probability = remaining_probability

        tb = traceback.extract_stack()[-2]
        self.file = tb.filename
        self.line = tb.lineno

        super().__init__(self.message)

    def __str__(self):
        return (f"Degenerate measurement: {self.message}. Remaining probability: "
                f"{self.remaining_probability:.3e} (raised in {self.file}, line {self.line})")
