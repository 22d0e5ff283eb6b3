from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal

RiskLevel = Literal["OK", "WARN", "DANGER"]

FUNDING_RATE_THRESHOLD = 0.0005
OPEN_INTEREST_JUMP_THRESHOLD = 0.10

FUNDING_REASON = "Funding rate is elevated"
OPEN_INTEREST_REASON = "Open interest jumped >= 10%"


@dataclass(slots=True, frozen=True)
class RiskAssessment:
    level: RiskLevel
    reasons: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {"level": self.level, "reasons": list(self.reasons)}


def compute_risk(
    funding_rate: float,
    open_interest: float,
    prev_open_interest: float | None = None,
) -> RiskAssessment:
    """
    Classify funding/open-interest readings into OK, WARN or DANGER.

    The open-interest check only runs against a positive, finite previous
    reading. Reasons always list the funding message before the OI message.
    """

    reasons: list[str] = []
    funding_warn = abs(funding_rate) >= FUNDING_RATE_THRESHOLD
    if funding_warn:
        reasons.append(FUNDING_REASON)

    oi_warn = False
    if prev_open_interest is not None and math.isfinite(prev_open_interest) and prev_open_interest > 0:
        change = (open_interest - prev_open_interest) / prev_open_interest
        oi_warn = change >= OPEN_INTEREST_JUMP_THRESHOLD
        if oi_warn:
            reasons.append(OPEN_INTEREST_REASON)

    if funding_warn and oi_warn:
        level: RiskLevel = "DANGER"
    elif funding_warn or oi_warn:
        level = "WARN"
    else:
        level = "OK"
    return RiskAssessment(level=level, reasons=reasons)


__all__ = [
    "RiskLevel",
    "RiskAssessment",
    "compute_risk",
    "FUNDING_REASON",
    "OPEN_INTEREST_REASON",
]
