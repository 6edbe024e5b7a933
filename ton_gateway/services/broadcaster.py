"""Submits encoded transfers to the node's raw broadcast method."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ton_gateway.deadline import Deadline
from ton_gateway.errors import BroadcastError
from ton_gateway.services.encoder import EncodedTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BroadcastResult:
    accepted: bool
    response: Any


async def broadcast(
    encoded: EncodedTransaction,
    *,
    client,
    deadline: Optional[Deadline] = None,
) -> BroadcastResult:
    """
    Send the bag of cells once.

    Acceptance only means the node took the message, not that it is final.
    Nothing is retried: resubmitting without a fresh seqno could double-spend.
    """
    response = await client.send_boc(encoded.to_base64(), deadline=deadline)
    if isinstance(response, dict) and response.get("@type") == "error":
        message = response.get("message") or "Broadcast rejected by node."
        raise BroadcastError(str(message), response=response)
    logger.info("broadcast accepted hash=%s cells=%s", encoded.hash_hex, encoded.cell_count)
    return BroadcastResult(accepted=True, response=response)
