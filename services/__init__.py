"""Services module for Adyen Notifications."""

from .account_resolver import AccountResolver
from .notification_store import NotificationStore

__all__ = [
    'AccountResolver',
    'NotificationStore'
]
