#!/usr/bin/env python3
"""
Example: Simulate Adyen notifications for testing.

Posts an AUTHORISATION followed by a CAPTURE to a running service, the
way Adyen sends HTTP POST notifications, then reads the stored chain back.

Usage:
    python simulate_notification.py R123456789 20.00 --url http://localhost:8000

Arguments:
    merchant_reference: Order number the payment belongs to
    amount: Payment amount in major units (e.g., 20.00)
"""

import argparse
import asyncio
import secrets
from datetime import datetime, timezone
from decimal import Decimal

import aiohttp


def psp_reference() -> str:
    """Generate a 16-digit reference in Adyen's format."""
    return ''.join(secrets.choice('0123456789') for _ in range(16))


async def post_notification(session: aiohttp.ClientSession, url: str, params: dict) -> None:
    async with session.post(f"{url}/adyen/notifications", data=params) as response:
        body = await response.text()
        status = "✅" if body == '[accepted]' else "❌"
        print(f"  {status} {params['eventCode']} {params['pspReference']}: {response.status} {body}")


async def simulate_notifications(
    url: str,
    merchant_reference: str,
    amount: Decimal,
    currency: str,
    merchant_account: str
) -> None:
    """Send an authorisation and its capture, then show the chain."""
    value = str(int(amount * 100))
    event_date = datetime.now(timezone.utc).isoformat()
    auth_reference = psp_reference()

    common = {
        'live': 'false',
        'merchantReference': merchant_reference,
        'merchantAccountCode': merchant_account,
        'eventDate': event_date,
        'success': 'true',
        'paymentMethod': 'visa',
        'currency': currency,
        'value': value,
    }

    print(f"Simulating payment for order {merchant_reference}")
    print(f"Amount: {amount} {currency}")
    print()

    async with aiohttp.ClientSession() as session:
        print("Sending notifications...")
        await post_notification(session, url, {
            **common,
            'eventCode': 'AUTHORISATION',
            'pspReference': auth_reference,
            'originalReference': '',
            'operations': 'CANCEL,CAPTURE,REFUND',
        })
        await post_notification(session, url, {
            **common,
            'eventCode': 'CAPTURE',
            'pspReference': psp_reference(),
            'originalReference': auth_reference,
        })

        print("\nStored chain:")
        async with session.get(f"{url}/api/notifications/{auth_reference}") as response:
            data = await response.json()

        notification = data['notification']
        print(f"  {notification['event_code']} {notification['psp_reference']}")
        for event in data['next_events']:
            print(f"    └─ {event['event_code']} {event['psp_reference']}")

        async with session.get(
            f"{url}/api/merchant-account",
            params={'order_number': merchant_reference}
        ) as response:
            if response.status == 200:
                account = (await response.json())['merchant_account']
                print(f"\nMerchant account for {merchant_reference}: {account}")
            else:
                print(f"\nOrder {merchant_reference} not known to the platform")


async def main():
    parser = argparse.ArgumentParser(
        description='Simulate Adyen notifications for testing'
    )
    parser.add_argument(
        'merchant_reference',
        help='Order number (e.g., R123456789)'
    )
    parser.add_argument(
        'amount',
        type=Decimal,
        help='Payment amount (e.g., 20.00)'
    )
    parser.add_argument(
        '--currency',
        default='USD',
        help='ISO currency code (default: USD)'
    )
    parser.add_argument(
        '--merchant-account',
        default='MerchantDefault',
        help='Merchant account code sent with the notification'
    )
    parser.add_argument(
        '--url',
        default='http://localhost:8000',
        help='Base URL of the running service'
    )

    args = parser.parse_args()

    await simulate_notifications(
        url=args.url.rstrip('/'),
        merchant_reference=args.merchant_reference,
        amount=args.amount,
        currency=args.currency,
        merchant_account=args.merchant_account
    )


if __name__ == '__main__':
    asyncio.run(main())
