"""Read-only ledger lookups."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ton_gateway.config import GatewayConfig, default_config
from ton_gateway.deadline import Deadline
from ton_gateway.errors import NotFoundError
from ton_gateway.services.validators import normalize_tx_hash, parse_address, raw_address


async def get_transaction(
    tx_hash: str,
    *,
    client,
    deadline: Optional[Deadline] = None,
) -> Dict[str, Any]:
    normalized = normalize_tx_hash(tx_hash)
    transactions = await client.fetch_transaction_by_hash(normalized, deadline=deadline)
    if not transactions:
        raise NotFoundError("No transaction found")
    return transactions[0]


async def get_account_history(
    address: str,
    *,
    client,
    config: GatewayConfig = default_config,
    deadline: Optional[Deadline] = None,
) -> List[Dict[str, Any]]:
    """
    Latest page of an account's transactions.

    The page size is fixed; there is no cursor to continue from. An empty page
    is reported as NotFoundError.
    """
    account = parse_address(address)
    transactions = await client.fetch_transactions(
        raw_address(account), limit=config.history_page_size, deadline=deadline
    )
    if not transactions:
        raise NotFoundError("No transaction found for this wallet")
    return transactions[: config.history_page_size]
