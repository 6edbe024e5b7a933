"""
TON transfer gateway package.

Accepts transfer requests over HTTP, builds and encodes TON transfers as
bags of cells and hands them to a toncenter RPC node. See DESIGN.md for
full details.
"""

__all__ = ["config", "errors"]
