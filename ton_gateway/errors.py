"""Error taxonomy shared by the codec, the RPC client and the HTTP layer."""

from __future__ import annotations

from typing import Any, Optional


class GatewayError(Exception):
    """Base exception for gateway failures."""

    kind = "gateway_error"
    http_status = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class ValidationError(GatewayError):
    """Raised when an address, amount, hash or key fails validation."""

    kind = "validation_error"
    http_status = 400


class NotFoundError(GatewayError):
    """Raised when the node returns an empty result."""

    kind = "not_found"
    http_status = 404


class NetworkError(GatewayError):
    """Raised when the node is unreachable, times out or answers garbage."""

    kind = "network_error"
    http_status = 502


class UnauthorizedError(NetworkError):
    """Raised when the node rejects the API key."""

    kind = "unauthorized"


class BroadcastError(GatewayError):
    """Raised when the node refuses a submitted bag of cells."""

    kind = "broadcast_error"
    http_status = 502

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        response: Any = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code)
        self.response = response


class EncodingError(GatewayError):
    """Raised when a cell would exceed its bit or reference capacity."""

    kind = "encoding_error"
    http_status = 500
