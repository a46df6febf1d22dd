"""API module for Adyen Notifications."""

from .notification_api import create_app, NotificationAPI

__all__ = ['create_app', 'NotificationAPI']
