"""Exception hierarchy for pushscribe."""


class PushscribeError(Exception):
    """Base exception for pipeline errors."""

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details


class TemplateError(PushscribeError):
    """Raised when a prompt template cannot be loaded or is malformed."""
    pass


class ReportParseError(PushscribeError):
    """Raised when an analysis report lacks a required field."""
    pass
