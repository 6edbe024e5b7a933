"""
Transfer submission pipeline.

Runs session → compose → encode → broadcast for one request. The seqno read
and the broadcast happen inside the per-account critical section, so two
requests for the same wallet never build on the same seqno. Nothing is
persisted and no stage is retried.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ton_gateway.account_locks import AccountLocks
from ton_gateway.config import GatewayConfig, default_config
from ton_gateway.deadline import Deadline
from ton_gateway.errors import BroadcastError
from ton_gateway.services.broadcaster import BroadcastResult, broadcast
from ton_gateway.services.composer import TransactionMessage, compose_transfer
from ton_gateway.services.encoder import EncodedTransaction, encode_transfer
from ton_gateway.services.queries import get_account_history, get_transaction
from ton_gateway.services.session import build_session, derive_wallet
from ton_gateway.services.validators import (
    decode_key_material,
    parse_address,
    parse_amount,
    raw_address,
)

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "idle"
    SESSION_BUILT = "session_built"
    MESSAGE_COMPOSED = "message_composed"
    ENCODED = "encoded"
    BROADCAST_ACCEPTED = "broadcast_accepted"
    BROADCAST_REJECTED = "broadcast_rejected"
    ERROR = "error"


@dataclass(slots=True)
class Submission:
    """In-memory trace of one submission; discarded with the request."""

    submission_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: SubmissionState = SubmissionState.IDLE
    history: List[SubmissionState] = field(default_factory=lambda: [SubmissionState.IDLE])

    def advance(self, state: SubmissionState) -> None:
        self.state = state
        self.history.append(state)
        logger.info(
            "submission=%s state=%s",
            self.submission_id,
            state.value,
            extra={"state": state.value},
        )


@dataclass(slots=True)
class SubmissionOutcome:
    message: TransactionMessage
    encoded: EncodedTransaction
    result: BroadcastResult
    submission: Submission


@dataclass(frozen=True, slots=True)
class Unsupported:
    """Explicit result for features the gateway does not implement."""

    feature: str
    reason: str


class TransferPipeline:
    """Composition of the session, composer, encoder and broadcaster stages."""

    def __init__(
        self,
        client,
        *,
        config: GatewayConfig = default_config,
        locks: Optional[AccountLocks] = None,
    ) -> None:
        self.client = client
        self.config = config
        self.locks = locks or AccountLocks()

    def _deadline(self, deadline: Optional[Deadline]) -> Deadline:
        return deadline or Deadline.after(self.config.request_deadline)

    async def submit_transfer(
        self,
        to: Any,
        amount: Any,
        private_key: Any,
        *,
        deadline: Optional[Deadline] = None,
    ) -> SubmissionOutcome:
        deadline = self._deadline(deadline)
        destination = parse_address(to)
        value = parse_amount(amount)
        wallet_address, _ = derive_wallet(decode_key_material(private_key), self.config)

        submission = Submission()
        try:
            async with self.locks.hold(raw_address(wallet_address)):
                session = await build_session(
                    private_key, client=self.client, config=self.config, deadline=deadline
                )
                submission.advance(SubmissionState.SESSION_BUILT)

                message = await compose_transfer(
                    session,
                    destination,
                    value,
                    client=self.client,
                    config=self.config,
                    deadline=deadline,
                )
                submission.advance(SubmissionState.MESSAGE_COMPOSED)

                encoded = encode_transfer(message)
                submission.advance(SubmissionState.ENCODED)

                result = await broadcast(encoded, client=self.client, deadline=deadline)
                submission.advance(SubmissionState.BROADCAST_ACCEPTED)
        except BroadcastError:
            submission.advance(SubmissionState.BROADCAST_REJECTED)
            raise
        except Exception:
            submission.advance(SubmissionState.ERROR)
            raise
        return SubmissionOutcome(message=message, encoded=encoded, result=result, submission=submission)

    async def submit_token(
        self,
        to: Any,
        amount: Any,
        token_address: Any,
        private_key: Any,
    ) -> Unsupported:
        logger.info("token transfer requested; not supported")
        return Unsupported(feature="token_transfer", reason="Token transfers are not supported.")

    async def get_transaction(self, tx_hash: str, *, deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        return await get_transaction(tx_hash, client=self.client, deadline=self._deadline(deadline))

    async def get_account_history(
        self, address: str, *, deadline: Optional[Deadline] = None
    ) -> List[Dict[str, Any]]:
        return await get_account_history(
            address, client=self.client, config=self.config, deadline=self._deadline(deadline)
        )
