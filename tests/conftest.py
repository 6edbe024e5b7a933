import asyncio
import base64
import os
import sys
from contextvars import ContextVar

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from pytoniq_core import Address  # noqa: E402

from ton_gateway.errors import BroadcastError  # noqa: E402
from ton_gateway.metrics import default_metrics  # noqa: E402

# Seqno each task last read from the stub node.
_read_seqno: ContextVar[int] = ContextVar("read_seqno", default=-1)

PUBLIC_KEY = bytes(range(32))
PUBLIC_KEY_B64 = base64.b64encode(PUBLIC_KEY).decode("ascii")
DESTINATION = Address((0, bytes.fromhex("ab" * 32))).to_str(is_bounceable=True)


class StubNode:
    """In-memory stand-in for TonCenterClient with a single wallet's seqno."""

    def __init__(
        self,
        *,
        seqno: int = 0,
        deployed: bool = True,
        fee_error: Exception | None = None,
        seqno_error: Exception | None = None,
        send_error: Exception | None = None,
        history=None,
        transactions=None,
    ) -> None:
        self.seqno = seqno
        self.deployed = deployed
        self.fee_error = fee_error
        self.seqno_error = seqno_error
        self.send_error = send_error
        self.history = history if history is not None else []
        self.transactions = transactions if transactions is not None else []
        self.calls = []
        self.sent = []
        self.fee_requests = []

    async def run_get_method(self, address, method, stack=None, *, deadline=None):
        await asyncio.sleep(0)
        self.calls.append(("run_get_method", address, method))
        if self.seqno_error is not None:
            raise self.seqno_error
        if not self.deployed:
            return {"exit_code": -13, "stack": []}
        _read_seqno.set(self.seqno)
        return {"exit_code": 0, "stack": [["num", hex(self.seqno)]]}

    async def estimate_fee(self, address, body, *, init_code="", init_data="", ignore_chksig=True, deadline=None):
        await asyncio.sleep(0)
        self.calls.append(("estimate_fee", address))
        self.fee_requests.append(
            {"address": address, "body": body, "init_code": init_code, "init_data": init_data}
        )
        if self.fee_error is not None:
            raise self.fee_error
        return {
            "@type": "query.fees",
            "source_fees": {"in_fwd_fee": 1000, "storage_fee": 10, "gas_fee": 3000, "fwd_fee": 0},
        }

    async def send_boc(self, boc, *, deadline=None):
        await asyncio.sleep(0)
        self.calls.append(("send_boc", boc))
        self.sent.append(boc)
        if self.send_error is not None:
            raise self.send_error
        if self.deployed and _read_seqno.get() != self.seqno:
            raise BroadcastError("seqno mismatch")
        if self.deployed:
            self.seqno += 1
        return {"@type": "ok"}

    async def fetch_transactions(self, address, *, limit, deadline=None):
        self.calls.append(("fetch_transactions", address, limit))
        return self.history

    async def fetch_transaction_by_hash(self, tx_hash, *, deadline=None):
        self.calls.append(("fetch_transaction_by_hash", tx_hash))
        return self.transactions

    async def aclose(self):
        return None


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()
