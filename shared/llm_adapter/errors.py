from __future__ import annotations


class UpstreamError(Exception):
    """Raised when the generation service cannot produce a response.

    Covers timeouts, transport failures, non-2xx replies and unusable
    bodies. `message` is the most specific detail available, preferring
    the upstream's own error message.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
