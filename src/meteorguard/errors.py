"""Error taxonomy shared by the geometry, state and request layers."""


class InvalidArgument(ValueError):
    """Programmer or validation error. Never converted into UI state."""


class MalformedPayload(ValueError):
    """Backend response body does not have the expected shape."""


class RemoteCallFailure(Exception):
    """A backend call failed: network error, non-2xx status or bad payload."""

    def __init__(
        self, message: str, code: str = "remote_error", status: int | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class PolarDistortionWarning(UserWarning):
    """Ring requested at a latitude where the flat-earth approximation breaks down."""
