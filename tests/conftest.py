"""Shared fixtures for the Adyen notification tests."""

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from api.notification_api import create_app
from database.db import Database
from database.repositories import NotificationRepository, StoreRepository
from services.account_resolver import AccountResolver
from services.notification_store import NotificationStore


@pytest.fixture
def authorisation_params() -> dict:
    """Form parameters of an AUTHORISATION notification as Adyen posts them."""
    return {
        'live': 'false',
        'eventCode': 'AUTHORISATION',
        'pspReference': '8815131298764180',
        'originalReference': '',
        'merchantReference': 'R123456789',
        'merchantAccountCode': 'MerchantUS',
        'eventDate': '2026-10-19T10:15:00.00Z',
        'success': 'true',
        'paymentMethod': 'visa',
        'operations': 'CANCEL,CAPTURE,REFUND',
        'reason': '123456:1111:12/2028',
        'currency': 'USD',
        'value': '2000',
        'additionalData.cardSummary': '1111',
    }


@pytest.fixture
def capture_params(authorisation_params) -> dict:
    """Form parameters of a CAPTURE following the authorisation."""
    return {
        'live': 'false',
        'eventCode': 'CAPTURE',
        'pspReference': '8815131298764999',
        'originalReference': authorisation_params['pspReference'],
        'merchantReference': 'R123456789',
        'merchantAccountCode': 'MerchantUS',
        'success': 'true',
        'paymentMethod': 'visa',
        'currency': 'USD',
        'value': '2000',
    }


@pytest_asyncio.fixture
async def db():
    """In-memory SQLite database with the service schema."""
    database = Database('sqlite:///:memory:')
    await database.connect()
    await database.init_schema()
    yield database
    await database.disconnect()


@pytest_asyncio.fixture
async def seeded_db(db):
    """Database with two stores, their orders and payments."""
    us_id = await db.insert(
        "INSERT INTO stores (code, name, adyen_merchant_id) VALUES ($1, $2, $3)",
        'us', 'US Store', None
    )
    eu_id = await db.insert(
        "INSERT INTO stores (code, name, adyen_merchant_id) VALUES ($1, $2, $3)",
        'eu', 'EU Store', 'MerchantEUOverride'
    )

    us_order = await db.insert(
        "INSERT INTO orders (number, store_id) VALUES ($1, $2)",
        'R100000001', us_id
    )
    eu_order = await db.insert(
        "INSERT INTO orders (number, store_id) VALUES ($1, $2)",
        'R100000002', eu_id
    )
    await db.insert(
        "INSERT INTO orders (number, store_id) VALUES ($1, $2)",
        'R100000003', None
    )

    await db.insert(
        "INSERT INTO payments (order_id, response_code) VALUES ($1, $2)",
        us_order, 'PSP-US-1'
    )
    await db.insert(
        "INSERT INTO payments (order_id, response_code) VALUES ($1, $2)",
        eu_order, 'PSP-EU-1'
    )
    return db


@pytest.fixture
def notification_store(db) -> NotificationStore:
    return NotificationStore(NotificationRepository(db))


@pytest.fixture
def store_repository(seeded_db) -> StoreRepository:
    return StoreRepository(seeded_db)


@pytest.fixture
def account_resolver(store_repository) -> AccountResolver:
    return AccountResolver(
        store_account_map={'us': 'MerchantUS', 'eu': 'MerchantEU'},
        default_account='MerchantDefault',
        stores=store_repository
    )


@pytest_asyncio.fixture
async def client(notification_store, account_resolver, store_repository):
    """aiohttp test client for the notification API."""
    app = create_app(
        notification_store=notification_store,
        account_resolver=account_resolver,
        stores=store_repository
    )
    async with TestClient(TestServer(app)) as test_client:
        yield test_client
