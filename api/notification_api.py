"""
Adyen Notification API.

Receives Adyen HTTP POST notifications and exposes read endpoints for
stored notifications and merchant account resolution.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from aiohttp import web

from config import config
from database.repositories import StoreRepository
from exceptions import DuplicateNotificationError, PersistenceError, ValidationError
from services.account_resolver import AccountResolver
from services.notification_store import NotificationStore

logger = logging.getLogger(__name__)

# Adyen treats any other response body as a failed delivery
ACCEPTED = '[accepted]'


def flatten_notification_items(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Flatten an Adyen JSON notification batch into flat parameter mappings.

    Args:
        body: Parsed JSON body with ``live`` and ``notificationItems``

    Returns:
        One flat mapping per NotificationRequestItem

    Raises:
        ValidationError: If the body is not a notification batch
    """
    items = body.get('notificationItems')
    if not isinstance(items, list):
        raise ValidationError("notificationItems must be a list")

    flattened = []
    for wrapper in items:
        item = wrapper.get('NotificationRequestItem') if isinstance(wrapper, dict) else None
        if not isinstance(item, dict):
            raise ValidationError("notificationItems entries must wrap a NotificationRequestItem")

        params = {k: v for k, v in item.items() if k != 'amount'}
        amount = item.get('amount')
        if isinstance(amount, dict):
            params['value'] = amount.get('value')
            params['currency'] = amount.get('currency')
        if 'live' in body:
            params['live'] = body['live']

        flattened.append(params)

    return flattened


class NotificationAPI:
    """
    REST API for Adyen notifications.

    Endpoints:
    - POST /adyen/notifications - Receive a notification (form or JSON batch)
    - GET /api/notifications/{psp_reference} - Stored notification and its chain
    - GET /api/merchant-account - Resolve the merchant account
    - GET /api/health - Health check
    """

    def __init__(
        self,
        notification_store: NotificationStore,
        account_resolver: AccountResolver,
        stores: Optional[StoreRepository] = None
    ):
        """
        Initialize the API.

        Args:
            notification_store: Store used to log and read notifications
            account_resolver: Resolver for merchant accounts
            stores: Store repository for order lookups
        """
        self.notification_store = notification_store
        self.account_resolver = account_resolver
        self.stores = stores

    def setup_routes(self, app: web.Application) -> None:
        """
        Set up API routes.

        Args:
            app: aiohttp web application
        """
        app.router.add_post('/adyen/notifications', self.receive_notification)
        app.router.add_get('/api/notifications/{psp_reference}', self.get_notification)
        app.router.add_get('/api/merchant-account', self.get_merchant_account)
        app.router.add_get('/api/health', self.health_check)

    async def receive_notification(self, request: web.Request) -> web.Response:
        """
        Receive a notification from Adyen.

        Form-encoded bodies carry one notification. JSON bodies carry a
        batch under ``notificationItems``. Every item is logged before the
        batch is acknowledged.
        """
        try:
            items = await self._read_notification_items(request)
        except ValidationError as e:
            logger.warning(f"Rejected notification body: {e.message}")
            return web.json_response({"error": e.message}, status=400)

        for params in items:
            try:
                await self.notification_store.log(params)
            except ValidationError as e:
                logger.warning(f"Invalid notification: {e.message}")
                return web.json_response(
                    {"error": e.message, "details": e.details},
                    status=400
                )
            except DuplicateNotificationError as e:
                logger.info(f"Duplicate notification ignored: {e.message}")
            except PersistenceError as e:
                logger.error(f"Failed to log notification: {e.message}")
                return web.json_response(
                    {"error": "Failed to store notification"},
                    status=500
                )

        return web.Response(text=ACCEPTED, content_type='text/plain')

    async def _read_notification_items(self, request: web.Request) -> List[Dict[str, Any]]:
        """Extract flat notification parameters from the request body."""
        if request.content_type == 'application/json':
            try:
                body = await request.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                raise ValidationError("Invalid JSON body") from None
            if not isinstance(body, dict):
                raise ValidationError("JSON body must be an object")
            return flatten_notification_items(body)

        form = await request.post()
        return [dict(form)]

    async def get_notification(self, request: web.Request) -> web.Response:
        """Get a stored notification together with its chain."""
        psp_reference = request.match_info['psp_reference']

        notification = await self.notification_store.get(psp_reference)
        if notification is None:
            return web.json_response(
                {"error": "Notification not found"},
                status=404
            )

        previous = await self.notification_store.previous(notification)
        next_events = await self.notification_store.next_events(notification)

        return web.json_response({
            "notification": notification.to_dict(),
            "previous": previous.psp_reference if previous else None,
            "next_events": [event.to_dict() for event in next_events]
        })

    async def get_merchant_account(self, request: web.Request) -> web.Response:
        """
        Resolve the merchant account.

        Query parameters (first one given wins):
        - psp_reference: reference of an existing payment
        - order_number: platform order number
        - store_code: store code, using the account map only
        """
        query = request.query

        if query.get('psp_reference'):
            account = await self.account_resolver.resolve_by_reference(query['psp_reference'])

        elif query.get('order_number'):
            order = None
            if self.stores is not None:
                order = await self.stores.find_order_by_number(query['order_number'])
            if order is None:
                return web.json_response(
                    {"error": "Order not found"},
                    status=404
                )
            account = self.account_resolver.resolve_by_order(order)

        elif query.get('store_code'):
            account = self.account_resolver.resolve_by_store_code(query['store_code'], None)

        else:
            return web.json_response(
                {"error": "One of psp_reference, order_number or store_code is required"},
                status=400
            )

        return web.json_response({"merchant_account": account})

    async def health_check(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({
            "status": "healthy",
            "service": config.service.name
        })


def create_app(
    notification_store: NotificationStore,
    account_resolver: AccountResolver,
    stores: Optional[StoreRepository] = None
) -> web.Application:
    """
    Create and configure the aiohttp web application.

    Args:
        notification_store: Notification store
        account_resolver: Merchant account resolver
        stores: Optional store repository for order lookups

    Returns:
        Configured aiohttp Application
    """

    # Error handling middleware
    @web.middleware
    async def error_middleware(request, handler):
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unhandled error: {e}", exc_info=True)
            return web.json_response(
                {"error": "Internal server error"},
                status=500
            )

    app = web.Application(middlewares=[error_middleware])

    api = NotificationAPI(
        notification_store=notification_store,
        account_resolver=account_resolver,
        stores=stores
    )
    api.setup_routes(app)

    return app
