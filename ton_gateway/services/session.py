"""
Wallet session builder.

Derives a wallet v3R2 address from the caller's key material and reads the
wallet's current seqno from the node. A session lives for exactly one request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from pytoniq_core import Address, Cell
from pytoniq_core.tlb import StateInit
from pytoniq_core.tlb.custom.wallet import WalletV3Data

from ton_gateway.cells import from_boc
from ton_gateway.config import GatewayConfig, default_config
from ton_gateway.deadline import Deadline
from ton_gateway.errors import NetworkError
from ton_gateway.services.validators import decode_key_material, format_address

logger = logging.getLogger(__name__)

WALLET_V3R2_CODE_BOC = bytes.fromhex(
    "B5EE9C724101010100710000DEFF0020DD2082014C97BA218201339CBAB19F71B0ED44D0D31FD31F31D70BFFE304E0"
    "A4F2608308D71820D31FD31FD31FF82313BBF263ED44D0D31FD31FD3FFD15132BAF2A15144BAF2A204F901541055F9"
    "10F2A3F8009320D74A96D307D402FB00E8D101A4C8CB1FCB1FCBFFC9ED5410BD6DAD"
)


@lru_cache(maxsize=1)
def wallet_code() -> Cell:
    return from_boc(WALLET_V3R2_CODE_BOC)


def build_wallet_data(public_key: bytes, *, subwallet_id: int) -> Cell:
    return WalletV3Data(seqno=0, wallet_id=subwallet_id, public_key=public_key).serialize()


def build_state_init(code: Cell, data: Cell) -> Cell:
    return StateInit(code=code, data=data).serialize()


def derive_wallet(key_material: bytes, config: GatewayConfig = default_config) -> Tuple[Address, Cell]:
    """Return the wallet address and the StateInit it was derived from."""
    data = build_wallet_data(key_material, subwallet_id=config.subwallet_id)
    state_init = build_state_init(wallet_code(), data)
    address = Address((config.workchain, state_init.hash))
    address.is_bounceable = True
    address.is_test_only = config.testnet
    return address, state_init


@dataclass(slots=True)
class WalletSession:
    """Request-scoped wallet identity. Never cache or log an instance's key."""

    address: Address
    seqno: int
    state_init: Cell
    key_material: bytes = field(repr=False)

    @property
    def code(self) -> Cell:
        return self.state_init.refs[0]

    @property
    def data(self) -> Cell:
        return self.state_init.refs[1]

    @property
    def is_initialized(self) -> bool:
        return self.seqno > 0


def _parse_stack_number(entry: Any) -> int:
    if isinstance(entry, (list, tuple)) and len(entry) == 2 and entry[0] == "num":
        raw = entry[1]
    elif isinstance(entry, dict) and entry.get("type") == "num":
        raw = entry.get("value")
    else:
        raise NetworkError("Unexpected seqno stack entry from node.")
    try:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if isinstance(raw, str):
            return int(raw, 0)
    except ValueError as exc:
        raise NetworkError("Unexpected seqno value from node.") from exc
    raise NetworkError("Unexpected seqno value from node.")


def parse_seqno(result: Dict[str, Any]) -> int:
    """
    Extract the seqno from a ``runGetMethod`` result.

    A non-zero exit code means the wallet contract is not deployed yet, which
    is reported as seqno 0 rather than an error.
    """
    exit_code = result.get("exit_code")
    if not isinstance(exit_code, int):
        raise NetworkError("Unexpected seqno response from node.")
    if exit_code != 0:
        return 0
    stack = result.get("stack")
    if not isinstance(stack, list) or not stack:
        raise NetworkError("Unexpected seqno response from node.")
    seqno = _parse_stack_number(stack[0])
    if seqno < 0:
        raise NetworkError("Unexpected seqno value from node.")
    return seqno


async def fetch_seqno(address: Address, *, client, deadline: Optional[Deadline] = None) -> int:
    result = await client.run_get_method(format_address(address), "seqno", deadline=deadline)
    return parse_seqno(result)


async def build_session(
    private_key: str,
    *,
    client,
    config: GatewayConfig = default_config,
    deadline: Optional[Deadline] = None,
) -> WalletSession:
    """Derive the wallet address from base64 key material and fetch its seqno."""
    key_material = decode_key_material(private_key)
    address, state_init = derive_wallet(key_material, config)
    seqno = await fetch_seqno(address, client=client, deadline=deadline)
    logger.debug("session built address=%s seqno=%s", format_address(address), seqno)
    return WalletSession(address=address, seqno=seqno, state_init=state_init, key_material=key_material)
