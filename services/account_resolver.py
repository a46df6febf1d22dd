"""
Merchant Account Resolver.

Stores may process their payments through different Adyen merchant
accounts. Gateway actions such as capture or refund often only know the
psp reference of the payment, so this module finds the store behind a
reference or an order and picks the matching merchant account.
"""

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from database.repositories import StoreRepository
from models.store import Order, Store

logger = logging.getLogger(__name__)


class AccountResolver:
    """
    Resolves the Adyen merchant account for a store.

    Resolution order:
    1. The store's own ``adyen_merchant_id`` if it is set
    2. The account mapped to the store code
    3. The default account

    Resolution never fails; it falls back to the default account.
    """

    def __init__(
        self,
        store_account_map: Mapping[str, str],
        default_account: str,
        stores: Optional[StoreRepository] = None
    ):
        """
        Initialize the resolver.

        Args:
            store_account_map: Mapping of store codes to merchant accounts
            default_account: Merchant account used when nothing else matches
            stores: Store repository, needed for lookups by psp reference
        """
        self._store_account_map = MappingProxyType(dict(store_account_map))
        self._default_account = default_account
        self.stores = stores

    @property
    def store_account_map(self) -> Mapping[str, str]:
        return self._store_account_map

    @property
    def default_account(self) -> str:
        return self._default_account

    async def resolve_by_reference(self, psp_reference: str) -> str:
        """
        Get the merchant account for the store that owns a payment.

        Args:
            psp_reference: The psp reference recorded on the payment

        Returns:
            Merchant account name
        """
        store = None
        if self.stores is not None:
            store = await self.stores.find_by_payment_reference(psp_reference)

        if store is None:
            logger.debug(f"No store found for payment {psp_reference}, using default account")

        return self.resolve_by_store_code(_code_of(store), store)

    def resolve_by_order(self, order: Order) -> str:
        """
        Get the merchant account for the store an order belongs to.

        Args:
            order: Order whose store should be used

        Returns:
            Merchant account name
        """
        store = getattr(order, 'store', None)
        return self.resolve_by_store_code(_code_of(store), store)

    def resolve_by_store_code(self, code: Optional[str], store: Optional[Store]) -> str:
        """
        Get the merchant account for a store.

        Args:
            code: Store code used to look up the account map
            store: Store whose override takes precedence, if any

        Returns:
            Merchant account name
        """
        override = getattr(store, 'adyen_merchant_id', None)
        if override and override.strip():
            return override

        if code is not None:
            account = self._store_account_map.get(code)
            if account is not None:
                return account

        return self._default_account

    def __repr__(self) -> str:
        return (
            f"AccountResolver(stores={sorted(self._store_account_map)}, "
            f"default={self._default_account})"
        )


def _code_of(store: Any) -> Optional[str]:
    return getattr(store, 'code', None)
