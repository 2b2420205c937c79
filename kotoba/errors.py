"""Exception types raised by Kotoba."""


class KotobaError(Exception):
    """Base class for all Kotoba errors."""


class ProgressNotLoadedError(KotobaError):
    """Raised when progress is read or changed before it has been loaded."""

    def __init__(self, operation: str):
        super().__init__(f"Progress not loaded; call load() before {operation}()")
        self.operation = operation


class ConfigurationError(KotobaError):
    """Raised when settings or environment values are invalid."""
