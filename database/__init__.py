"""Database module for Adyen Notifications."""

from .db import Database
from .repositories import NotificationRepository, StoreRepository

__all__ = ['Database', 'NotificationRepository', 'StoreRepository']
