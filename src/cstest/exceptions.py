# src/cstest/exceptions.py

"""
Exception hierarchy for cstest.
"""


class CstestError(Exception):
    """Base class for all cstest errors."""

    pass


class ConfigurationError(CstestError):
    """Raised when the configuration file is missing, malformed or invalid."""

    def __init__(self, message: str, path: str | None = None, details: Exception | None = None):
        self.path = path
        self.details = details
        full_message = message
        if path:
            full_message += f" (Config: '{path}')"
        super().__init__(full_message)
        if details:
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class StorageError(CstestError):
    """Raised when workspace storage cannot be read or written."""

    pass


class AlreadyRunningError(CstestError):
    """Raised when a test is started while another one is still running."""

    def __init__(self, active_name: str):
        self.active_name = active_name
        super().__init__(f"A test is already running ({active_name})")


class SpawnError(CstestError):
    """Raised when the test executable could not be launched."""

    def __init__(self, command: list[str], details: Exception | None = None):
        self.command = command
        self.details = details
        message = f"Could not start '{command[0]}'" if command else "Could not start test process"
        if details:
            message += f": {details}"
        super().__init__(message)


class ValidationError(CstestError):
    """Raised when interactive input is rejected."""

    pass


class WizardCancelledError(CstestError):
    """Raised when the settings wizard is abandoned before the last step."""

    pass


class SinkOverflowError(CstestError):
    """Raised when an oversized log document could not be saved to disk."""

    def __init__(self, message: str, filename: str | None = None, details: Exception | None = None):
        self.filename = filename
        self.details = details
        super().__init__(message)


# 🔼⚙️
