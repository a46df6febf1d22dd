"""Data models for Adyen Notifications."""

from .notification import AdyenNotification
from .store import Order, Store

__all__ = ['AdyenNotification', 'Order', 'Store']
