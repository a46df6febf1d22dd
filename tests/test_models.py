"""
Unit tests for the notification and store models.

Run with: pytest tests/test_models.py -v
"""

import pytest
from datetime import datetime

from exceptions import ValidationError
from models.notification import AdyenNotification, underscore
from models.store import Order, Store


class TestUnderscore:
    """Tests for external field name conversion."""

    @pytest.mark.parametrize('name, expected', [
        ('pspReference', 'psp_reference'),
        ('eventCode', 'event_code'),
        ('merchantAccountCode', 'merchant_account_code'),
        ('live', 'live'),
        ('HTTPStatus', 'http_status'),
        ('additionalData.cardSummary', 'additional_data.card_summary'),
    ])
    def test_converts_mixed_case(self, name, expected):
        """Test camelCase names become snake_case."""
        assert underscore(name) == expected


class TestBuild:
    """Tests for AdyenNotification.build."""

    def test_build_assigns_known_fields(self, authorisation_params):
        """Test building from Adyen form parameters."""
        notification = AdyenNotification.build(authorisation_params)

        assert notification.psp_reference == '8815131298764180'
        assert notification.event_code == 'AUTHORISATION'
        assert notification.merchant_reference == 'R123456789'
        assert notification.merchant_account_code == 'MerchantUS'
        assert notification.payment_method == 'visa'
        assert notification.operations == 'CANCEL,CAPTURE,REFUND'
        assert notification.currency == 'USD'
        assert notification.value == 2000
        assert notification.success is True
        assert notification.live is False
        assert not notification.is_persisted()

    def test_build_ignores_unknown_keys(self):
        """Test that fields we do not model are dropped silently."""
        notification = AdyenNotification.build({
            'eventCode': 'CAPTURE',
            'pspReference': 'PSP1',
            'additionalData.authCode': '123456',
            'somethingNew': 'value',
        })

        assert notification.event_code == 'CAPTURE'
        assert not hasattr(notification, 'something_new')

    def test_build_does_not_assign_storage_fields(self):
        """Test that id and createdAt cannot be set from a payload."""
        notification = AdyenNotification.build({
            'id': 42,
            'createdAt': '2020-01-01',
            'eventCode': 'CAPTURE',
            'pspReference': 'PSP1',
        })

        assert notification.id is None
        assert notification.created_at is None

    @pytest.mark.parametrize('raw, expected', [
        ('true', True),
        ('TRUE', True),
        ('1', True),
        ('false', False),
        ('0', False),
        ('off', False),
        (True, True),
        (False, False),
    ])
    def test_build_casts_booleans(self, raw, expected):
        """Test boolean casting of form values."""
        notification = AdyenNotification.build({'success': raw})
        assert notification.success is expected

    def test_build_keeps_boolean_default_for_blank(self):
        """Test that a blank boolean leaves the default in place."""
        notification = AdyenNotification.build({'success': '', 'live': None})
        assert notification.success is False
        assert notification.live is False

    def test_build_joins_operation_lists(self):
        """Test JSON operation lists are stored comma-separated."""
        notification = AdyenNotification.build({'operations': ['CANCEL', 'CAPTURE']})
        assert notification.operations == 'CANCEL,CAPTURE'

    @pytest.mark.parametrize('raw,expected', [
        ('2000', 2000),
        (' 2000 ', 2000),
        ('12.50', 12),
        (12.7, 12),
        ('-300', -300),
        ('abc', None),
        ('', None),
        (float('nan'), None),
    ])
    def test_build_casts_value_leniently(self, raw, expected):
        """Test that amounts are cast to their integral part or dropped."""
        notification = AdyenNotification.build({
            'eventCode': 'AUTHORISATION',
            'pspReference': 'PSP-V',
            'value': raw
        })

        assert notification.value == expected
        notification.validate()


class TestValidation:
    """Tests for normalization and validation."""

    def test_blank_original_reference_becomes_none(self):
        """Test empty original references are normalized away."""
        for blank in ('', '   '):
            notification = AdyenNotification(
                psp_reference='PSP1',
                event_code='AUTHORISATION',
                original_reference=blank
            )
            notification.validate()
            assert notification.original_reference is None

    def test_original_reference_kept(self):
        """Test a real original reference survives validation."""
        notification = AdyenNotification(
            psp_reference='PSP2',
            event_code='CAPTURE',
            original_reference='PSP1'
        )
        notification.validate()
        assert notification.original_reference == 'PSP1'

    def test_missing_event_code(self):
        """Test that event_code is required."""
        notification = AdyenNotification(psp_reference='PSP1')

        with pytest.raises(ValidationError) as exc_info:
            notification.validate()
        assert exc_info.value.details['missing'] == ['event_code']

    def test_missing_psp_reference(self):
        """Test that psp_reference is required."""
        notification = AdyenNotification(event_code='AUTHORISATION', psp_reference='  ')

        with pytest.raises(ValidationError) as exc_info:
            notification.validate()
        assert exc_info.value.details['missing'] == ['psp_reference']

    def test_validation_error_is_value_error(self):
        """Test callers catching ValueError also catch validation errors."""
        with pytest.raises(ValueError):
            AdyenNotification().validate()


class TestPredicates:
    """Tests for event code predicates."""

    def test_authorisation(self):
        """Test authorisation predicates."""
        notification = AdyenNotification(event_code='AUTHORISATION')

        assert notification.is_authorisation()
        assert notification.is_authorization()
        assert not notification.is_capture()

    def test_capture(self):
        """Test capture predicate."""
        notification = AdyenNotification(event_code='CAPTURE')

        assert notification.is_capture()
        assert not notification.is_authorisation()

    def test_predicates_are_exact_matches(self):
        """Test that predicates compare the whole event code."""
        notification = AdyenNotification(event_code='CAPTURE_FAILED')

        assert notification.is_capture_failed()
        assert not notification.is_capture()

    @pytest.mark.parametrize('event_code, predicate', [
        ('CANCELLATION', 'is_cancellation'),
        ('CANCEL_OR_REFUND', 'is_cancel_or_refund'),
        ('REFUND', 'is_refund'),
        ('REFUND_FAILED', 'is_refund_failed'),
        ('PENDING', 'is_pending'),
        ('CHARGEBACK', 'is_chargeback'),
    ])
    def test_other_event_codes(self, event_code, predicate):
        notification = AdyenNotification(event_code=event_code)
        assert getattr(notification, predicate)()

    def test_successful_authorisation(self):
        """Test that a successful authorisation needs success=True."""
        assert AdyenNotification(event_code='AUTHORISATION', success=True).is_successful_authorisation()
        assert not AdyenNotification(event_code='AUTHORISATION', success=False).is_successful_authorisation()
        assert not AdyenNotification(event_code='CAPTURE', success=True).is_successful_authorisation()


class TestFromDict:
    """Tests for hydrating notifications from database rows."""

    def test_sqlite_row(self):
        """Test integer booleans and string timestamps from SQLite."""
        notification = AdyenNotification.from_dict({
            'id': 7,
            'psp_reference': 'PSP1',
            'event_code': 'AUTHORISATION',
            'original_reference': None,
            'success': 1,
            'live': 0,
            'value': 1500,
            'created_at': '2026-10-19 10:15:00',
            'unrelated_column': 'x',
        })

        assert notification.id == 7
        assert notification.success is True
        assert notification.live is False
        assert notification.created_at == datetime(2026, 10, 19, 10, 15)
        assert notification.is_persisted()

    def test_to_dict(self):
        """Test JSON serialization."""
        notification = AdyenNotification(
            psp_reference='PSP1',
            event_code='AUTHORISATION',
            created_at=datetime(2026, 10, 19, 10, 15)
        )

        data = notification.to_dict()
        assert data['psp_reference'] == 'PSP1'
        assert data['created_at'] == '2026-10-19T10:15:00'
        assert data['original_reference'] is None


class TestStoreModels:
    """Tests for Store and Order."""

    def test_store_from_dict(self):
        store = Store.from_dict({'id': 1, 'code': 'us', 'name': 'US Store'})

        assert store.code == 'us'
        assert store.adyen_merchant_id is None

    def test_order_without_store(self):
        order = Order.from_dict({'id': 3, 'number': 'R1'})
        assert order.store is None
