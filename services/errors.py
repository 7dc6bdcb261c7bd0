# services/errors.py
# Domain errors. None of these are fatal: routers translate them to HTTP responses.

class HydrationError(Exception):
    """Base class for hydration tracker errors"""

class ConfigurationError(HydrationError, ZeroDivisionError):
    """A configured goal or reminder window is unusable (zero/negative goal, bad interval)"""

class PermissionDeniedError(HydrationError):
    """The user has not authorized notifications; reminders stay off"""

class SchedulingLimitExceeded(HydrationError):
    """More triggers were requested than the platform allows"""

    def __init__(self, requested: int, limit: int):
        self.requested = requested
        self.limit = limit
        self.truncated = requested - limit
        super().__init__(f"Requested {requested} triggers, limit is {limit} ({self.truncated} dropped)")

class SinkUnavailableError(HydrationError):
    """A register/cancel call to the notification sink failed"""

class EntryNotFoundError(HydrationError):
    """No entry or container with that id"""
