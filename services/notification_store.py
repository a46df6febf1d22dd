"""
Notification Store.

Logs incoming Adyen notifications and answers questions about how stored
notifications relate to each other.
"""

import logging
from typing import Any, List, Mapping, Optional

from database.repositories import NotificationRepository
from models.notification import AdyenNotification

logger = logging.getLogger(__name__)


class NotificationStore:
    """
    Persists Adyen notifications and walks their event chains.

    Adyen sends an AUTHORISATION first; follow-up events (CAPTURE, REFUND,
    CANCELLATION, ...) reference it through ``originalReference``. The chain
    is resolved by querying on each access rather than by keeping pointers
    between objects.

    Example:
        notification = await store.log(params)
        if notification.is_successful_authorisation():
            order = await stores.find_order_by_number(notification.merchant_reference)
    """

    def __init__(self, repository: NotificationRepository):
        """
        Initialize the notification store.

        Args:
            repository: Repository over the notification table
        """
        self.repository = repository

    def build(self, params: Mapping[str, Any]) -> AdyenNotification:
        """
        Build an unsaved notification from flat notification parameters.

        Args:
            params: Mapping of Adyen field names to values

        Returns:
            Unsaved AdyenNotification
        """
        return AdyenNotification.build(params)

    async def log(self, params: Mapping[str, Any]) -> AdyenNotification:
        """
        Log an incoming notification into the database.

        Args:
            params: Mapping of Adyen field names to values

        Returns:
            The persisted notification

        Raises:
            ValidationError: If eventCode or pspReference is missing
            PersistenceError: If the notification cannot be stored
        """
        notification = self.build(params)
        notification.validate()

        stored = await self.repository.create(notification)

        logger.info(
            f"Logged {stored.event_code} notification {stored.psp_reference} "
            f"(original={stored.original_reference}, success={stored.success})"
        )
        return stored

    async def get(self, psp_reference: str) -> Optional[AdyenNotification]:
        """Get the first stored notification for a psp reference."""
        return await self.repository.find_by_psp_reference(psp_reference)

    async def previous(self, notification: AdyenNotification) -> Optional[AdyenNotification]:
        """
        Get the notification this one follows.

        Args:
            notification: A follow-up notification

        Returns:
            The notification whose psp reference is this one's original
            reference, or None
        """
        if not notification.original_reference:
            return None
        return await self.repository.find_by_psp_reference(notification.original_reference)

    async def next_events(self, notification: AdyenNotification) -> List[AdyenNotification]:
        """
        Get all notifications that follow this one.

        Args:
            notification: Typically an authorisation

        Returns:
            Follow-up notifications in the order they were stored
        """
        if not notification.psp_reference:
            return []
        return await self.repository.find_all_by_original_reference(notification.psp_reference)
