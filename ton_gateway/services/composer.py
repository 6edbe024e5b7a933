"""
Transaction composer.

Builds the wallet v3 transfer query for a session and asks the node for a
dry-run fee estimate. A failed estimate never aborts composition: the message
carries ``fee=None`` and a warning instead.
"""

from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pytoniq_core import Address, Cell, begin_cell
from pytoniq_core.tlb import CurrencyCollection, InternalMsgInfo, MessageAny
from pytoniq_core.tlb.custom.wallet import WalletMessage

from ton_gateway.cells import cell_errors, to_boc
from ton_gateway.config import GatewayConfig, default_config
from ton_gateway.deadline import Deadline
from ton_gateway.errors import GatewayError, NetworkError
from ton_gateway.services.session import WalletSession
from ton_gateway.services.validators import format_address, parse_address, parse_amount

logger = logging.getLogger(__name__)

NO_EXPIRY = 0xFFFFFFFF
SIGNATURE_BYTES = 64
FEE_FIELDS = ("in_fwd_fee", "storage_fee", "gas_fee", "fwd_fee")


@dataclass(frozen=True, slots=True)
class TransferRequest:
    destination: Address
    amount: int
    token_address: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FeeEstimate:
    in_fwd_fee: int
    storage_fee: int
    gas_fee: int
    fwd_fee: int

    @property
    def total(self) -> int:
        return self.in_fwd_fee + self.storage_fee + self.gas_fee + self.fwd_fee

    @classmethod
    def from_result(cls, result: Dict[str, Any]) -> "FeeEstimate":
        source_fees = result.get("source_fees")
        if not isinstance(source_fees, dict):
            raise NetworkError("Unexpected fee estimate from node.")
        values = {}
        for name in FEE_FIELDS:
            raw = source_fees.get(name, 0)
            if isinstance(raw, bool) or not isinstance(raw, (int, str)):
                raise NetworkError("Unexpected fee estimate from node.")
            try:
                values[name] = int(raw)
            except ValueError as exc:
                raise NetworkError("Unexpected fee estimate from node.") from exc
        return cls(**values)

    def as_dict(self) -> Dict[str, int]:
        return {
            "in_fwd_fee": self.in_fwd_fee,
            "storage_fee": self.storage_fee,
            "gas_fee": self.gas_fee,
            "fwd_fee": self.fwd_fee,
            "total": self.total,
        }


@dataclass(slots=True)
class TransactionMessage:
    """A composed transfer, annotated with the seqno it was built for."""

    request: TransferRequest
    source: Address
    seqno: int
    valid_until: int
    wallet_query: Cell
    fee: Optional[FeeEstimate] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def destination(self) -> Address:
        return self.request.destination

    @property
    def amount(self) -> int:
        return self.request.amount


def build_internal_message(destination: Address, amount: int) -> MessageAny:
    """Internal message carrying ``amount`` to ``destination`` with an empty body."""
    info = InternalMsgInfo(
        ihr_disabled=True,
        bounce=destination.is_bounceable,
        bounced=False,
        src=None,  # filled in by the wallet contract
        dest=destination,
        value=CurrencyCollection(amount),
        ihr_fee=0,
        fwd_fee=0,
        created_lt=0,
        created_at=0,
    )
    return MessageAny(info=info, init=None, body=Cell.empty())


def build_wallet_query(
    message: MessageAny,
    *,
    subwallet_id: int,
    valid_until: int,
    seqno: int,
    send_mode: int,
    signature: bytes = bytes(SIGNATURE_BYTES),
) -> Cell:
    """Wallet v3 external body. The signature slot is zero-filled for dry runs."""
    with cell_errors():
        return (
            begin_cell()
            .store_bytes(signature)
            .store_uint(subwallet_id, 32)
            .store_uint(valid_until, 32)
            .store_uint(seqno, 32)
            .store_cell(WalletMessage(send_mode=send_mode, message=message).serialize())
            .end_cell()
        )


def _boc_b64(cell: Cell) -> str:
    return base64.b64encode(to_boc(cell)).decode("ascii")


async def estimate_fee(
    session: WalletSession,
    wallet_query: Cell,
    *,
    client,
    deadline: Optional[Deadline] = None,
) -> FeeEstimate:
    init_code = init_data = ""
    if not session.is_initialized:
        init_code = _boc_b64(session.code)
        init_data = _boc_b64(session.data)
    result = await client.estimate_fee(
        format_address(session.address),
        _boc_b64(wallet_query),
        init_code=init_code,
        init_data=init_data,
        ignore_chksig=True,
        deadline=deadline,
    )
    return FeeEstimate.from_result(result)


async def compose_transfer(
    session: WalletSession,
    destination: Any,
    amount: Any,
    *,
    client,
    config: GatewayConfig = default_config,
    deadline: Optional[Deadline] = None,
    now: Optional[int] = None,
) -> TransactionMessage:
    """Validate the transfer, build the wallet query and attach a fee estimate."""
    request = TransferRequest(destination=parse_address(destination), amount=parse_amount(amount))

    if session.seqno == 0:
        valid_until = NO_EXPIRY
    else:
        valid_until = int(now if now is not None else time.time()) + config.message_ttl
    query = build_wallet_query(
        build_internal_message(request.destination, request.amount),
        subwallet_id=config.subwallet_id,
        valid_until=valid_until,
        seqno=session.seqno,
        send_mode=config.send_mode,
    )
    message = TransactionMessage(
        request=request,
        source=session.address,
        seqno=session.seqno,
        valid_until=valid_until,
        wallet_query=query,
    )

    try:
        message.fee = await estimate_fee(session, query, client=client, deadline=deadline)
    except GatewayError as exc:
        logger.warning("fee estimation failed seqno=%s error=%s", session.seqno, exc.message)
        message.warnings.append(f"Fee estimation failed: {exc.message}")
    return message
