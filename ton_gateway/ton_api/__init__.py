"""HTTP client wrappers for the toncenter API."""

from .client import API_KEY_HEADER, TonCenterClient

__all__ = ["TonCenterClient", "API_KEY_HEADER"]
