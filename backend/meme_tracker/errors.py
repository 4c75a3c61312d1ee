from __future__ import annotations
from typing import Optional


class TrackerError(Exception):
    """Base class for every error the tracker surfaces to callers."""

    status_code: int = 500


class ConfigError(TrackerError):
    """A required API key or endpoint is missing or still a placeholder."""

    status_code = 503


class VendorHTTPError(TrackerError):
    """Non-2xx answer from a third-party API."""

    status_code = 502

    def __init__(self, service: str, status: int, body: str = ""):
        self.service = service
        self.status = status
        self.body = body
        super().__init__(f"{service} API error: {status} - {body}")


class AuthError(VendorHTTPError):
    pass


class NotFoundError(VendorHTTPError):
    pass


class ServiceError(VendorHTTPError):
    pass


class RpcError(TrackerError):
    status_code = 502

    def __init__(self, code: Optional[int], message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC error: {code} - {message}")


class QueryFailedError(TrackerError):
    """The analytics service reports that the query itself failed. Never retried."""

    status_code = 502

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Dune query failed: {message}")


class QueryTimeoutError(TrackerError, TimeoutError):
    status_code = 504

    def __init__(self, max_wait: float):
        self.max_wait = max_wait
        super().__init__(f"Query execution timeout after {max_wait:g} seconds")


class InvalidAddressError(TrackerError, ValueError):
    status_code = 400


class InvalidParameterError(TrackerError, ValueError):
    status_code = 400


class InvalidConfigError(TrackerError, ValueError):
    status_code = 400


class UnsupportedChainError(TrackerError):
    status_code = 400


class RecordNotFoundError(TrackerError):
    status_code = 404

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record not found: {record_id}")


class DuplicateRecordError(TrackerError):
    status_code = 409
