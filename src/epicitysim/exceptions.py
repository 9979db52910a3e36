"""
Errors raised by the simulator.

`ConfigurationError` and `PopulationGenerationError` are raised before the run starts.
`RoutingError` is recoverable and never escapes a tick.
`DataInconsistencyError` means the engine itself broke one of its invariants.
"""


class SimulationError(Exception):
    """Base class of every error raised by epicitysim."""


class ConfigurationError(SimulationError, ValueError):
    """A run parameter is missing or out of its bounds."""


class PopulationGenerationError(SimulationError):
    """The population cannot be built from the given buildings and parameters."""


class RoutingError(SimulationError):
    """No path exists on the road network between two points."""


class DataInconsistencyError(SimulationError, AssertionError):
    """An invariant of the simulation state was violated."""
