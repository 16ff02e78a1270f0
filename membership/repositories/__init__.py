from .subscription_repo import SubscriptionRepository

__all__ = ["SubscriptionRepository"]
