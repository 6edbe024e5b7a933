"""Transaction pipeline stages and ledger queries."""

from .broadcaster import BroadcastResult, broadcast
from .composer import FeeEstimate, TransactionMessage, TransferRequest, compose_transfer
from .encoder import EncodedTransaction, decode_transfer, encode_transfer
from .queries import get_account_history, get_transaction
from .session import WalletSession, build_session, derive_wallet
from .submission import SubmissionState, TransferPipeline, Unsupported
from . import validators

__all__ = [
    "WalletSession",
    "build_session",
    "derive_wallet",
    "TransferRequest",
    "TransactionMessage",
    "FeeEstimate",
    "compose_transfer",
    "EncodedTransaction",
    "encode_transfer",
    "decode_transfer",
    "BroadcastResult",
    "broadcast",
    "get_transaction",
    "get_account_history",
    "SubmissionState",
    "TransferPipeline",
    "Unsupported",
    "validators",
]
