from .account import Account
from .activity import AccountId, Activity, ActivityId, utcnow
from .activity_window import ActivityView, ActivityWindow
from .money import MAX_AMOUNT, MIN_AMOUNT, Money

__all__ = [
    "Account",
    "AccountId",
    "Activity",
    "ActivityId",
    "ActivityView",
    "ActivityWindow",
    "MAX_AMOUNT",
    "MIN_AMOUNT",
    "Money",
    "utcnow",
]
