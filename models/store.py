"""
Storefront data models.

Read-only views of the platform's store and order rows, used to decide
which merchant account handles a payment.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Store:
    """
    A storefront on the platform.

    Attributes:
        id: Platform store id
        code: Short store code (e.g. "us"), used as the account map key
        name: Human-readable store name
        adyen_merchant_id: Per-store merchant account override
    """

    id: Optional[int]
    code: Optional[str]
    name: Optional[str] = None
    adyen_merchant_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Store':
        return cls(
            id=data.get('id'),
            code=data.get('code'),
            name=data.get('name'),
            adyen_merchant_id=data.get('adyen_merchant_id')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'adyen_merchant_id': self.adyen_merchant_id
        }


@dataclass
class Order:
    """
    An order on the platform.

    ``number`` is what Adyen echoes back as the merchant reference.
    """

    id: Optional[int]
    number: str
    store: Optional[Store] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], store: Optional[Store] = None) -> 'Order':
        return cls(
            id=data.get('id'),
            number=data['number'],
            store=store
        )
