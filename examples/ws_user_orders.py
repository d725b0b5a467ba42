#!/usr/bin/env python3
"""Stream order updates for the account in BACKPACK_API_KEY / BACKPACK_SECRET_KEY."""

from __future__ import annotations

import argparse
import asyncio
import logging

from backpack.sdk import BackpackClient, ConnectionEvent, Credentials, Order


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Stream Backpack order updates (private)")
    p.add_argument("seconds", nargs="?", type=float, default=300.0)
    p.add_argument("--reconnect", action="store_true", help="reconnect when the stream drops")
    return p.parse_args()


def on_order(order: Order) -> None:
    print(
        f"{order.timestamp} | {order.symbol} | {order.side.value} {order.type.value} "
        f"{order.executed_quantity}/{order.quantity} @ {order.price} | {order.status.value}"
    )


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO)

    credentials = Credentials.from_env()
    if credentials is None:
        raise SystemExit("Set BACKPACK_API_KEY and BACKPACK_SECRET_KEY")

    client = BackpackClient(credentials)

    async def on_disconnect(event: ConnectionEvent) -> None:
        print(f"Disconnected: {event.error}")
        if args.reconnect:
            await client.reconnect()

    client.on_disconnect(on_disconnect)
    try:
        if not await client.connect():
            raise SystemExit("Could not connect")
        if not await client.subscribe_user_orders(on_order):
            raise SystemExit("Could not subscribe to order updates (check credentials)")
        await asyncio.sleep(args.seconds)
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
