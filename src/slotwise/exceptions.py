"""Custom exceptions for slotwise."""


class SlotwiseError(Exception):
    """Base exception for all slotwise errors."""

    pass


class ValidationError(SlotwiseError):
    """Raised when a scheduling request fails its pre-flight checks."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class ParseError(SlotwiseError):
    """Raised when a request or config file cannot be parsed."""

    pass
