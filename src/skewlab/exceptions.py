"""Exceptions raised by the SkewLab generator and loaders."""


class SkewLabError(Exception):
    """Base class for SkewLab errors."""
    pass


class ConfigurationError(SkewLabError, ValueError):
    """Raised when generation parameters or config files are invalid."""
    pass


class SchemaExistsError(SkewLabError):
    """Raised when the target database already holds lab tables."""
    pass
