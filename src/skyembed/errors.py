from __future__ import annotations


class UpstreamError(RuntimeError):
    """Raised when a call against the Bluesky read API fails."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class UpstreamTimeout(UpstreamError):
    """Raised when the read API does not answer within the request timeout."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            operation, "Bluesky took too long to respond (timeout exceeded)"
        )


class UpstreamRequestError(UpstreamError):
    """Raised when the request could not be sent or the connection failed."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation, "Failed to do request")


class UpstreamStatusError(UpstreamError):
    """Raised when the read API answers with a non-2xx status."""

    def __init__(self, operation: str, status: str) -> None:
        super().__init__(operation, f"Unexpected status ({status})")
        self.status = status


class UpstreamDecodeError(UpstreamError):
    """Raised when the read API answers with a body that cannot be decoded."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation, "Failed to decode response")


class RouteError(RuntimeError):
    """Raised when a request cannot be answered for the selected view mode."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class CompositorError(RuntimeError):
    """Raised when the ffmpeg mosaic cannot be produced."""


class OEmbedError(ValueError):
    """Raised when an oEmbed query is malformed."""
