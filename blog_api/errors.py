"""Error taxonomy for the ingestion webhook and the post store."""


class IngestError(Exception):
    """Base error for the webhook pipeline, rendered as ``{success: false, error}``."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClientError(IngestError):
    """Malformed, unauthenticated, oversized or throttled request."""

    status_code = 400


class ConfigError(IngestError):
    """Server-side misconfiguration. The caller only sees a generic message."""

    status_code = 500


class UpstreamError(IngestError):
    """The post store (or another required collaborator) failed."""

    status_code = 500


class StoreError(Exception):
    """Error raised by a post store backend."""

    pass


class DataError(Exception):
    """A persisted record could not be parsed."""

    pass
