from .premium import PREMIUM_SOURCE, PremiumService, PremiumState, compute_premium
from .price import PricePayload, PriceService
from .risk import RiskService, RiskState, source_label

__all__ = [
    "PREMIUM_SOURCE",
    "PremiumService",
    "PremiumState",
    "compute_premium",
    "PricePayload",
    "PriceService",
    "RiskService",
    "RiskState",
    "source_label",
]
