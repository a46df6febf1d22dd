"""
Adyen notification model.

Adyen reports every payment event (authorisation, capture, refund, ...)
as a notification. Each notification is stored once as it arrives. Follow-up
events carry the psp reference of the event they follow in
``original_reference``, so the stored rows form a tree rooted at the
original authorisation.
"""

import math
import re
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from exceptions import ValidationError


# Adyen event codes
AUTHORISATION = 'AUTHORISATION'
CAPTURE = 'CAPTURE'
CAPTURE_FAILED = 'CAPTURE_FAILED'
CANCELLATION = 'CANCELLATION'
CANCEL_OR_REFUND = 'CANCEL_OR_REFUND'
REFUND = 'REFUND'
REFUND_FAILED = 'REFUND_FAILED'
PENDING = 'PENDING'
CHARGEBACK = 'CHARGEBACK'

FALSE_VALUES = {'0', 'f', 'false', 'off', 'no', 'n'}

_ACRONYM_BOUNDARY = re.compile(r'([A-Z\d]+)([A-Z][a-z])')
_WORD_BOUNDARY = re.compile(r'([a-z\d])([A-Z])')
_LEADING_INTEGER = re.compile(r'[+-]?\d+')


def underscore(name: str) -> str:
    """
    Convert an external mixed-case field name to snake_case.

    ``merchantAccountCode`` becomes ``merchant_account_code`` and
    ``HTTPStatus`` becomes ``http_status``.
    """
    name = _ACRONYM_BOUNDARY.sub(r'\1_\2', name)
    name = _WORD_BOUNDARY.sub(r'\1_\2', name)
    return name.replace('-', '_').lower()


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ','.join(str(v) for v in value)
    return str(value)


def _to_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0

    text = str(value).strip()
    if not text:
        return None
    return text.lower() not in FALSE_VALUES


def _to_int(value: Any) -> Optional[int]:
    """Integral part of a numeric value, or None when there is none."""
    if value is None:
        return None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, int):
        return int(value)

    match = _LEADING_INTEGER.match(str(value).strip())
    return int(match.group()) if match else None


# Fields a notification payload may assign, with their coercion.
# Storage-managed fields (id, created_at) are never assignable.
ASSIGNABLE_FIELDS: Dict[str, Callable[[Any], Any]] = {
    'live': _to_bool,
    'event_code': _to_str,
    'psp_reference': _to_str,
    'original_reference': _to_str,
    'merchant_reference': _to_str,
    'merchant_account_code': _to_str,
    'event_date': _to_str,
    'success': _to_bool,
    'payment_method': _to_str,
    'operations': _to_str,
    'reason': _to_str,
    'currency': _to_str,
    'value': _to_int,
}


@dataclass
class AdyenNotification:
    """
    A single notification received from Adyen.

    Attributes:
        psp_reference: Adyen's reference for this event
        event_code: Event type (AUTHORISATION, CAPTURE, ...)
        original_reference: psp reference of the event this one follows
        merchant_reference: Our order number
        merchant_account_code: Merchant account the event belongs to
        event_date: Event timestamp as sent by Adyen
        success: Whether the operation succeeded
        live: Whether the event came from the live platform
        payment_method: Payment method variant (visa, ideal, ...)
        operations: Comma-separated list of operations still possible
        reason: Result description or refusal reason
        currency: ISO 4217 currency code of the amount
        value: Amount in minor units
        id: Storage id, set once persisted
        created_at: Storage timestamp, set once persisted
    """

    psp_reference: Optional[str] = None
    event_code: Optional[str] = None
    original_reference: Optional[str] = None
    merchant_reference: Optional[str] = None
    merchant_account_code: Optional[str] = None
    event_date: Optional[str] = None
    success: bool = False
    live: bool = False
    payment_method: Optional[str] = None
    operations: Optional[str] = None
    reason: Optional[str] = None
    currency: Optional[str] = None
    value: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def build(cls, params: Mapping[str, Any]) -> 'AdyenNotification':
        """
        Build an unsaved notification from raw notification parameters.

        Keys are converted from Adyen's camelCase to our field names.
        Keys that do not name an assignable field are ignored, since Adyen
        sends more data than we keep. Values that cannot be cast, such as a
        non-numeric amount, are stored as None rather than rejected.

        Args:
            params: Flat mapping of notification parameters

        Returns:
            AdyenNotification instance (not yet persisted)
        """
        notification = cls()

        for key, value in params.items():
            name = underscore(str(key))
            coerce = ASSIGNABLE_FIELDS.get(name)
            if coerce is None:
                continue

            coerced = coerce(value)

            # Keep the dataclass defaults for absent booleans
            if coerced is None and isinstance(getattr(notification, name), bool):
                continue
            setattr(notification, name, coerced)

        return notification

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AdyenNotification':
        """
        Create AdyenNotification from a database row.

        Args:
            data: Dictionary with notification data

        Returns:
            AdyenNotification instance
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}

        # SQLite hands back integers and strings for these columns
        for name in ('success', 'live'):
            if values.get(name) is not None:
                values[name] = bool(values[name])
        created_at = values.get('created_at')
        if isinstance(created_at, str):
            values['created_at'] = datetime.fromisoformat(created_at)

        return cls(**values)

    def normalize(self) -> None:
        """Store a blank original reference as no reference at all."""
        if self.original_reference is not None and not self.original_reference.strip():
            self.original_reference = None

    def validate(self) -> None:
        """
        Normalize and validate the notification before it is stored.

        Raises:
            ValidationError: If event_code or psp_reference is missing
        """
        self.normalize()

        missing = [
            name for name in ('event_code', 'psp_reference')
            if not (getattr(self, name) or '').strip()
        ]
        if missing:
            raise ValidationError(
                f"Notification is missing {', '.join(missing)}",
                details={'missing': missing}
            )

    def is_persisted(self) -> bool:
        return self.id is not None

    def is_authorisation(self) -> bool:
        """True iff event_code == 'AUTHORISATION'."""
        return self.event_code == AUTHORISATION

    is_authorization = is_authorisation

    def is_successful_authorisation(self) -> bool:
        """True for an authorisation Adyen reports as successful."""
        return self.is_authorisation() and self.success

    def is_capture(self) -> bool:
        return self.event_code == CAPTURE

    def is_capture_failed(self) -> bool:
        return self.event_code == CAPTURE_FAILED

    def is_cancellation(self) -> bool:
        return self.event_code == CANCELLATION

    def is_cancel_or_refund(self) -> bool:
        return self.event_code == CANCEL_OR_REFUND

    def is_refund(self) -> bool:
        return self.event_code == REFUND

    def is_refund_failed(self) -> bool:
        return self.event_code == REFUND_FAILED

    def is_pending(self) -> bool:
        return self.event_code == PENDING

    def is_chargeback(self) -> bool:
        return self.event_code == CHARGEBACK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'psp_reference': self.psp_reference,
            'original_reference': self.original_reference,
            'event_code': self.event_code,
            'merchant_reference': self.merchant_reference,
            'merchant_account_code': self.merchant_account_code,
            'event_date': self.event_date,
            'success': self.success,
            'live': self.live,
            'payment_method': self.payment_method,
            'operations': self.operations,
            'reason': self.reason,
            'currency': self.currency,
            'value': self.value,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self) -> str:
        return (
            f"AdyenNotification(event={self.event_code}, "
            f"psp={self.psp_reference}, "
            f"original={self.original_reference})"
        )
