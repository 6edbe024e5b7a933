"""Minimal read-only sanity checks against a live toncenter endpoint."""

from __future__ import annotations

import asyncio
import base64
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from ton_gateway.config import default_config  # noqa: E402
from ton_gateway.errors import GatewayError  # noqa: E402
from ton_gateway.services import TransferPipeline  # noqa: E402
from ton_gateway.services.session import build_session  # noqa: E402
from ton_gateway.services.validators import format_address  # noqa: E402
from ton_gateway.ton_api import TonCenterClient  # noqa: E402

# Public elector contract; override via env.
SAMPLE_ADDRESS = os.getenv("TON_SAMPLE_ADDRESS", "Ef8zMzMzMzMzMzMzMzMzMzMzMzMzMzMzMzMzMzMzMzMzM0vF")
# Optional base64 public key whose wallet seqno should be read. Nothing is broadcast.
SAMPLE_KEY = os.getenv("TON_SAMPLE_KEY", base64.b64encode(bytes(32)).decode("ascii"))


async def main() -> None:
    client = TonCenterClient(default_config)
    pipeline = TransferPipeline(client, config=default_config)
    try:
        session = await build_session(SAMPLE_KEY, client=client, config=default_config)
        print("Wallet:", format_address(session.address), "seqno:", session.seqno)

        try:
            history = await pipeline.get_account_history(SAMPLE_ADDRESS)
            print("History entries:", len(history))
        except GatewayError as exc:
            print("History lookup failed:", exc.kind, exc.message)
    finally:
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
