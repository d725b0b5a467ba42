#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from backpack.sdk import BackpackRESTClient


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch Backpack market data via REST")
    p.add_argument("symbol", nargs="?", default="SOL-USDC")
    p.add_argument("interval", nargs="?", default="1h")
    p.add_argument("limit", nargs="?", type=int, default=10)
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    async with BackpackRESTClient() as rest:
        ticker = await rest.get_ticker(args.symbol)
        print(f"{ticker.symbol}: last={ticker.last_price} spread={ticker.spread}")

        book = await rest.get_order_book(args.symbol, limit=5)
        print(f"Best bid: {book.best_bid} | Best ask: {book.best_ask}")

        candles = await rest.get_candles(args.symbol, args.interval, limit=args.limit)
        print(f"{'Open Time':20} | {'Open':>12} | {'High':>12} | {'Low':>12} | {'Close':>12}")
        print("-" * 80)
        for c in candles:
            print(f"{c.timestamp:20} | {c.open:>12} | {c.high:>12} | {c.low:>12} | {c.close:>12}")


if __name__ == "__main__":
    asyncio.run(main())
