"""
Risk level from flag count. Single scorer shared by every endpoint.
"""
from enum import Enum
from typing import Sequence


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


HIGH_RISK_MIN_FLAGS = 4


def score_risk(flags: Sequence[str]) -> RiskLevel:
    """0 flags -> low, 1-3 -> medium, 4 or more -> high."""
    count = len(flags or ())
    if count == 0:
        return RiskLevel.LOW
    if count >= HIGH_RISK_MIN_FLAGS:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM
