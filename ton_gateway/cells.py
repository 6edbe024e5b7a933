"""
Bag-of-cells helpers on top of ``pytoniq_core``.

Builder, slice and BoC failures raised by the library are re-raised as
EncodingError so callers only deal with the gateway error taxonomy.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Union

from pytoniq_core import Cell

from ton_gateway.errors import EncodingError, GatewayError


@contextmanager
def cell_errors(code: str = "CELL_OVERFLOW") -> Iterator[None]:
    # Reference overflow surfaces as a bare Exception from the builder.
    try:
        yield
    except GatewayError:
        raise
    except Exception as exc:
        raise EncodingError(f"Cell encoding failed: {exc}", code=code) from exc


def to_boc(root: Cell) -> bytes:
    """Serialize with the CRC32C trailer and no index (flags ``0x41``)."""
    with cell_errors():
        return root.to_boc(hash_crc32=True)


def from_boc(data: Union[bytes, str]) -> Cell:
    """Parse a single-root bag of cells, verifying its checksum."""
    # BocError covers most input; broken reference order raises a bare Exception.
    try:
        return Cell.one_from_boc(data)
    except Exception as exc:
        raise EncodingError(f"Malformed bag of cells: {exc}", code="BOC_MALFORMED") from exc


def count_cells(root: Cell) -> int:
    """Number of distinct cells the BoC of ``root`` holds."""
    return len(root.order({}))
