"""Errors raised while converting passes between wallet formats."""


class ConversionError(Exception):
    """Base exception for pass conversion errors."""

    pass


class InvalidPassData(ConversionError):
    """Raised when the input is not a structurally valid archive or payload."""

    pass


class UnsupportedVariant(ConversionError):
    """Raised when no pass variant matches the input."""

    pass


class MissingRequiredField(ConversionError):
    """Raised when a mandatory value cannot be resolved from the source pass.

    Attributes:
        field_name: The semantic field that could not be resolved.
        hint: The hint name that would resolve it from an archive, if any.
    """

    def __init__(self, field_name: str, hint: str | None = None) -> None:
        """Initialize the error.

        Args:
            field_name: The semantic field that could not be resolved.
            hint: The hint name that would resolve it from an archive, if any.
        """
        message = f"Could not determine {field_name}"
        if hint:
            message += f", please configure the '{hint}' hint"
        super().__init__(message)
        self.field_name = field_name
        self.hint = hint


class RemotePersistFailure(ConversionError):
    """Raised when the Wallet Objects API rejects or fails a request.

    Attributes:
        status_code: HTTP status code from the API, if available.
        reason: Error reason from the API, if available.
    """

    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
