"""
Tagged result of an arrival verification.

Every pipeline step returns either its value or a Verdict; the transport
layer maps the final Verdict to a status code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Outcome(str, Enum):
    SIGNED = "SIGNED"
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


MISSING_PARAMETERS = "Missing required parameters."
INTERNAL_ERROR = "Internal server error."


@dataclass(frozen=True)
class Verdict:
    """Terminal state of one verification."""

    outcome: Outcome
    message: str = ""
    signature: str = ""  # 0x-prefixed, only when SIGNED
    distance_m: Optional[float] = None

    @property
    def accepted(self) -> bool:
        return self.outcome is Outcome.SIGNED

    @staticmethod
    def signed(signature: str, distance_m: float) -> Verdict:
        return Verdict(Outcome.SIGNED, signature=signature, distance_m=distance_m)

    @staticmethod
    def reject(outcome: Outcome, message: str, distance_m: Optional[float] = None) -> Verdict:
        if outcome is Outcome.SIGNED:
            raise ValueError("a rejection cannot carry SIGNED")
        return Verdict(outcome, message=message, distance_m=distance_m)
