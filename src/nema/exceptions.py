"""Custom exception hierarchy for the nema package."""


class NemaError(Exception):
    """Base exception for all nema errors."""


class ConfigurationError(NemaError):
    """Missing or invalid configuration."""


class RunResultError(NemaError):
    """Malformed or unreadable newman run summary."""


class RunnerError(NemaError):
    """Failed to execute a collection with newman."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        self.returncode = returncode
        super().__init__(message)
