"""Translation exceptions shared by providers and the detection chain."""


class TranslationError(Exception):
    """Translation engine error with optional code and details.

    Codes used by the providers:
        HTTP_ERROR: the engine answered with a non-2xx status.
        TIMEOUT: the request exceeded the configured timeout.
        REQUEST_FAILED: transport-level failure (DNS, connection reset...).
        BAD_RESPONSE: the engine answered with an unexpected payload.
    """

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}
