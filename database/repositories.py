"""
Repositories over the notification log and the platform's store tables.

Repositories hold the SQL; callers work with model objects only.
"""

import logging
from typing import List, Optional

import asyncpg
import aiosqlite

from exceptions import DuplicateNotificationError, PersistenceError
from models.notification import AdyenNotification
from models.store import Order, Store
from .db import Database

logger = logging.getLogger(__name__)

NOTIFICATION_COLUMNS = (
    'live',
    'event_code',
    'psp_reference',
    'original_reference',
    'merchant_reference',
    'merchant_account_code',
    'event_date',
    'success',
    'payment_method',
    'operations',
    'reason',
    'currency',
    'value',
)


def _is_unique_violation(error: Exception) -> bool:
    # SQLite reports NOT NULL and foreign key failures as IntegrityError too
    if isinstance(error, asyncpg.UniqueViolationError):
        return True
    return 'UNIQUE constraint failed' in str(error)


class NotificationRepository:
    """Data access for AdyenNotification rows."""

    def __init__(self, db: Database):
        self.db = db

    async def create(self, notification: AdyenNotification) -> AdyenNotification:
        """
        Insert a notification and return it as stored.

        Args:
            notification: Validated, unsaved notification

        Returns:
            The stored notification, with id and created_at set

        Raises:
            DuplicateNotificationError: If the same psp reference and event
                code are already stored
            PersistenceError: If the database rejects the insert
        """
        placeholders = ', '.join(f'${i}' for i in range(1, len(NOTIFICATION_COLUMNS) + 1))
        query = (
            f"INSERT INTO adyen_notifications ({', '.join(NOTIFICATION_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )
        args = [getattr(notification, column) for column in NOTIFICATION_COLUMNS]

        try:
            notification_id = await self.db.insert(query, *args)
        except (asyncpg.UniqueViolationError, aiosqlite.IntegrityError) as e:
            if not _is_unique_violation(e):
                logger.error(f"Integrity error storing notification {notification.psp_reference}: {e}")
                raise PersistenceError(
                    f"Could not store notification {notification.psp_reference}: {e}"
                ) from e
            raise DuplicateNotificationError(
                f"Notification {notification.event_code} {notification.psp_reference} "
                f"already stored",
                details={
                    'psp_reference': notification.psp_reference,
                    'event_code': notification.event_code
                }
            ) from e
        except (asyncpg.PostgresError, asyncpg.InterfaceError, aiosqlite.Error, OSError) as e:
            logger.error(f"Database error storing notification {notification.psp_reference}: {e}")
            raise PersistenceError(
                f"Could not store notification {notification.psp_reference}: {e}"
            ) from e

        return await self.get(notification_id)

    async def get(self, notification_id: int) -> Optional[AdyenNotification]:
        """Get notification by storage id."""
        row = await self.db.fetch_one(
            "SELECT * FROM adyen_notifications WHERE id = $1",
            notification_id
        )
        return AdyenNotification.from_dict(row) if row else None

    async def find_by_psp_reference(self, psp_reference: str) -> Optional[AdyenNotification]:
        """Get the earliest stored notification with the given psp reference."""
        row = await self.db.fetch_one(
            """
            SELECT * FROM adyen_notifications
            WHERE psp_reference = $1
            ORDER BY id
            LIMIT 1
            """,
            psp_reference
        )
        return AdyenNotification.from_dict(row) if row else None

    async def find_all_by_original_reference(
        self,
        original_reference: str
    ) -> List[AdyenNotification]:
        """Get all notifications that follow the given psp reference."""
        rows = await self.db.fetch_all(
            """
            SELECT * FROM adyen_notifications
            WHERE original_reference = $1
            ORDER BY id
            """,
            original_reference
        )
        return [AdyenNotification.from_dict(row) for row in rows]


class StoreRepository:
    """Read access to the platform's stores, orders and payments."""

    def __init__(self, db: Database):
        self.db = db

    async def find_by_payment_reference(self, response_code: str) -> Optional[Store]:
        """
        Find the store owning a payment with the given gateway reference.

        Args:
            response_code: Gateway reference recorded on the payment

        Returns:
            Store or None if no payment carries the reference
        """
        row = await self.db.fetch_one(
            """
            SELECT s.id, s.code, s.name, s.adyen_merchant_id
            FROM stores s
            JOIN orders o ON o.store_id = s.id
            JOIN payments p ON p.order_id = o.id
            WHERE p.response_code = $1
            LIMIT 1
            """,
            response_code
        )
        return Store.from_dict(row) if row else None

    async def find_order_by_number(self, number: str) -> Optional[Order]:
        """
        Find an order, with its store, by order number.

        Args:
            number: Order number (Adyen's merchant reference)

        Returns:
            Order or None if unknown
        """
        row = await self.db.fetch_one(
            """
            SELECT o.id, o.number, o.store_id,
                   s.code AS store_code, s.name AS store_name,
                   s.adyen_merchant_id AS store_adyen_merchant_id
            FROM orders o
            LEFT JOIN stores s ON s.id = o.store_id
            WHERE o.number = $1
            LIMIT 1
            """,
            number
        )
        if not row:
            return None

        store = None
        if row.get('store_id') is not None and row.get('store_code') is not None:
            store = Store(
                id=row['store_id'],
                code=row['store_code'],
                name=row.get('store_name'),
                adyen_merchant_id=row.get('store_adyen_merchant_id')
            )

        return Order.from_dict(row, store=store)
