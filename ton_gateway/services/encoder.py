"""
Binary encoder for transfer bodies.

Layout of the body cell::

    op:uint32 = 0
    dest:addr_std$10 anycast:0 workchain:int8 hash:bits256
    amount:VarUInteger 16   (4-bit byte length, then big-endian bytes)

The cell tree is serialized as a bag of cells. Encoding is a pure function of
the message, so identical transfers always produce identical bytes.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Tuple

from pytoniq_core import Address, Cell, begin_cell

from ton_gateway.cells import cell_errors, count_cells, from_boc, to_boc
from ton_gateway.errors import EncodingError
from ton_gateway.services.composer import TransactionMessage

logger = logging.getLogger(__name__)

TRANSFER_OPCODE = 0


@dataclass(frozen=True, slots=True)
class EncodedTransaction:
    boc: bytes
    root_hash: bytes
    cell_count: int

    def to_base64(self) -> str:
        return base64.b64encode(self.boc).decode("ascii")

    @property
    def hash_hex(self) -> str:
        return self.root_hash.hex()


def build_transfer_body(destination: Address, amount: int) -> Cell:
    with cell_errors():
        return (
            begin_cell()
            .store_uint(TRANSFER_OPCODE, 32)
            .store_address(destination)
            .store_coins(amount)
            .end_cell()
        )


def encode_cell(root: Cell) -> EncodedTransaction:
    return EncodedTransaction(
        boc=to_boc(root),
        root_hash=root.hash,
        cell_count=count_cells(root),
    )


def encode_transfer(message: TransactionMessage) -> EncodedTransaction:
    root = build_transfer_body(message.destination, message.amount)
    logger.debug("transfer body cell: %r", root)
    return encode_cell(root)


def decode_transfer(boc: bytes) -> Tuple[Address, int]:
    """Read destination and amount back out of an encoded transfer body."""
    body = from_boc(boc).begin_parse()
    with cell_errors("BOC_MALFORMED"):
        opcode = body.load_uint(32)
        if opcode != TRANSFER_OPCODE:
            raise EncodingError(f"Unexpected opcode {opcode}.", code="BOC_MALFORMED")
        destination = body.load_address()
        if not isinstance(destination, Address):
            raise EncodingError("Transfer body has no standard destination.", code="BOC_MALFORMED")
        amount = body.load_coins()
    if body.remaining_bits or body.remaining_refs:
        raise EncodingError("Trailing data after transfer body.", code="BOC_MALFORMED")
    return destination, amount
