#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from backpack.sdk import BackpackClient, Ticker


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Stream Backpack tickers for a symbol")
    p.add_argument("symbol", nargs="?", default="SOL-USDC")
    p.add_argument("seconds", nargs="?", type=float, default=60.0)
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


def on_ticker(ticker: Ticker) -> None:
    print(
        f"{ticker.timestamp} | {ticker.symbol} | last={ticker.last_price} "
        f"bid={ticker.best_bid} ask={ticker.best_ask} vol24h={ticker.volume_24h}"
    )


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    async with BackpackClient() as client:
        if not client.is_connected:
            raise SystemExit("Could not connect")
        if not await client.subscribe_ticker(args.symbol, on_ticker):
            raise SystemExit(f"Could not subscribe to {args.symbol}")
        await asyncio.sleep(args.seconds)


if __name__ == "__main__":
    asyncio.run(main())
