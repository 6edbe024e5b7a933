"""
Thin HTTP client for the toncenter RPC surface the gateway depends on.

Covers seqno lookup (``runGetMethod``), fee estimation, raw broadcast
(``sendBoc``) and the two history lookups. Transport failures and node errors
are mapped to the gateway error taxonomy so the HTTP layer can turn them into
safe, user-facing envelopes. Nothing here retries: every method issues exactly
one request.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

import httpx

from ton_gateway.config import GatewayConfig, default_config
from ton_gateway.deadline import Deadline, effective_timeout
from ton_gateway.errors import (
    BroadcastError,
    GatewayError,
    NetworkError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


class TonCenterClient:
    """Async client for the limited toncenter API surface."""

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
        index_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._index_client: Optional[httpx.AsyncClient] = index_client
        self._owns_client = async_client is None
        self._owns_index_client = index_client is None
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.config.api_url, timeout=self.config.timeout)
            self._owns_client = True
        return self._client

    async def _get_index_client(self) -> httpx.AsyncClient:
        if self._index_client is None:
            self._index_client = httpx.AsyncClient(
                base_url=self.config.index_url, timeout=self.config.timeout
            )
            self._owns_index_client = True
        return self._index_client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        if self._index_client is not None and self._owns_index_client:
            await self._index_client.aclose()
            self._index_client = None

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.config.api_key:
            headers[API_KEY_HEADER] = self.config.api_key
        return headers

    def _map_error(
        self,
        message: Optional[str],
        status_code: int,
        *,
        rejection: Type[GatewayError] = NetworkError,
    ) -> GatewayError:
        text = message or "toncenter error"
        lowered = text.lower()
        code = str(status_code)

        if status_code in {401, 403}:
            return UnauthorizedError("Unauthorized or API key required.", code=code, status_code=status_code)
        if status_code == 429:
            return NetworkError("Rate limited by node.", code=code, status_code=status_code)
        if status_code in {502, 503, 504} or "timeout" in lowered or "timed out" in lowered:
            return NetworkError("Node unreachable", code=code, status_code=status_code)
        if rejection is BroadcastError:
            return BroadcastError(text, code=code, status_code=status_code)
        if "address" in lowered and ("invalid" in lowered or "incorrect" in lowered):
            return ValidationError("Invalid TON address.", code=code, status_code=status_code)
        if status_code == 404 or "not found" in lowered:
            return NotFoundError("Resource not found.", code=code, status_code=status_code)
        return rejection(f"toncenter error: {text}", code=code, status_code=status_code)

    def _process_response(
        self,
        response: httpx.Response,
        *,
        unwrap: bool = True,
        rejection: Type[GatewayError] = NetworkError,
    ) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = None

        failed = response.status_code >= 400
        if isinstance(data, dict) and data.get("ok") is False:
            failed = True
        if failed:
            error_field: Optional[str] = None
            if isinstance(data, dict):
                raw_error = data.get("error")
                if isinstance(raw_error, str):
                    error_field = raw_error
                elif isinstance(raw_error, dict) and isinstance(raw_error.get("message"), str):
                    error_field = raw_error["message"]
            raise self._map_error(error_field, response.status_code, rejection=rejection)

        if not isinstance(data, dict):
            raise NetworkError("Unexpected response from node.", status_code=response.status_code)
        if not unwrap:
            return data
        if "result" not in data:
            raise NetworkError("Unexpected response from node.", status_code=response.status_code)
        return data["result"]

    async def _rpc(
        self,
        method: str,
        params: Dict[str, Any],
        *,
        deadline: Optional[Deadline] = None,
        rejection: Type[GatewayError] = NetworkError,
    ) -> Any:
        timeout = effective_timeout(deadline, self.config.timeout)
        client = await self._get_client()
        self._request_id += 1
        payload = {"id": self._request_id, "jsonrpc": "2.0", "method": method, "params": params}
        try:
            response = await client.post(
                "/jsonRPC", json=payload, headers=self._build_headers(), timeout=timeout
            )
        except httpx.RequestError as exc:
            logger.warning("toncenter unreachable for method %s", method)
            raise NetworkError("Node unreachable") from exc
        return self._process_response(response, rejection=rejection)

    async def _get(
        self,
        path: str,
        *,
        params: Dict[str, Any],
        deadline: Optional[Deadline] = None,
        index: bool = False,
    ) -> Any:
        timeout = effective_timeout(deadline, self.config.timeout)
        client = await (self._get_index_client() if index else self._get_client())
        try:
            response = await client.get(path, params=params, headers=self._build_headers(), timeout=timeout)
        except httpx.RequestError as exc:
            logger.warning("toncenter unreachable for path %s", path)
            raise NetworkError("Node unreachable") from exc
        return self._process_response(response, unwrap=not index)

    async def run_get_method(
        self,
        address: str,
        method: str,
        stack: Optional[List[Any]] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> Dict[str, Any]:
        """Run a get-method on a contract; the raw TVM result is returned."""
        result = await self._rpc(
            "runGetMethod",
            {"address": address, "method": method, "stack": stack or []},
            deadline=deadline,
        )
        if not isinstance(result, dict):
            raise NetworkError("Unexpected response from node.")
        return result

    async def estimate_fee(
        self,
        address: str,
        body: str,
        *,
        init_code: str = "",
        init_data: str = "",
        ignore_chksig: bool = True,
        deadline: Optional[Deadline] = None,
    ) -> Dict[str, Any]:
        """Dry-run an external message (base64 BoC body) and return its fees."""
        result = await self._rpc(
            "estimateFee",
            {
                "address": address,
                "body": body,
                "init_code": init_code,
                "init_data": init_data,
                "ignore_chksig": ignore_chksig,
            },
            deadline=deadline,
        )
        if not isinstance(result, dict):
            raise NetworkError("Unexpected response from node.")
        return result

    async def send_boc(self, boc: str, *, deadline: Optional[Deadline] = None) -> Any:
        """Submit a base64 bag of cells. Rejection raises BroadcastError."""
        return await self._rpc("sendBoc", {"boc": boc}, deadline=deadline, rejection=BroadcastError)

    async def fetch_transactions(
        self,
        address: str,
        *,
        limit: int,
        deadline: Optional[Deadline] = None,
    ) -> List[Dict[str, Any]]:
        """Most recent transactions of an account, newest first."""
        result = await self._get(
            "/getTransactions", params={"address": address, "limit": limit}, deadline=deadline
        )
        if not isinstance(result, list):
            raise NetworkError("Unexpected response from node.")
        return result

    async def fetch_transaction_by_hash(
        self, tx_hash: str, *, deadline: Optional[Deadline] = None
    ) -> List[Dict[str, Any]]:
        """Look a transaction up by hash through the index API."""
        data = await self._get(
            "/transactions", params={"hash": tx_hash, "limit": 1}, deadline=deadline, index=True
        )
        transactions = data.get("transactions")
        if transactions is None:
            return []
        if not isinstance(transactions, list):
            raise NetworkError("Unexpected response from node.")
        return transactions
