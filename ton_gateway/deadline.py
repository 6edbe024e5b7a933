"""Per-request deadline carried into every outbound node call."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from ton_gateway.errors import NetworkError


@dataclass(frozen=True, slots=True)
class Deadline:
    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    def timeout_for(self, default: float) -> float:
        """Timeout for the next call: the configured one, capped by what is left."""
        remaining = self.remaining()
        if remaining <= 0:
            raise NetworkError("Request deadline exceeded.", code="DEADLINE_EXCEEDED")
        return min(default, remaining)


def effective_timeout(deadline: Optional[Deadline], default: float) -> float:
    if deadline is None:
        return default
    return deadline.timeout_for(default)
