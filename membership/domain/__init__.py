from .models import Benefit, Entitlement, Frequency, Location, RedeemStatus, Subscriber, Subscription
from .normalize import normalize_key

__all__ = [
    "Benefit",
    "Entitlement",
    "Frequency",
    "Location",
    "RedeemStatus",
    "Subscriber",
    "Subscription",
    "normalize_key",
]
