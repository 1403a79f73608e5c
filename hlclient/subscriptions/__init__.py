from hlclient.subscriptions.client import SubscriptionClient, coin_and_user_match, coin_matches, user_matches
from hlclient.subscriptions.router import Subscription, SubscriptionRouter, SubscriptionState

__all__ = [
    "SubscriptionClient",
    "SubscriptionRouter",
    "Subscription",
    "SubscriptionState",
    "coin_matches",
    "user_matches",
    "coin_and_user_match",
]
