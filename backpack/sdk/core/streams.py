"""Stream identifiers and subscription keys.

A stream identifier names one channel+symbol combination on the wire:
``<channel_wire_name>.<symbol>`` with the symbol's ``-`` separators rewritten
to ``_`` (``ticker.SOL_USDC``). Channels without a symbol use the bare wire
name (``userOrders``).
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import Channel

STREAM_SEPARATOR = "."
SYMBOL_SEPARATOR = "-"
WIRE_SYMBOL_SEPARATOR = "_"


def normalize_symbol(symbol: str | None) -> str:
    """Rewrite a caller symbol into wire form (``SOL-USDC`` -> ``SOL_USDC``)."""
    if not symbol:
        return ""
    return symbol.strip().upper().replace(SYMBOL_SEPARATOR, WIRE_SYMBOL_SEPARATOR)


def display_symbol(symbol: str | None) -> str:
    """Restore a wire symbol to caller form (``SOL_USDC`` -> ``SOL-USDC``)."""
    if not symbol:
        return ""
    return symbol.replace(WIRE_SYMBOL_SEPARATOR, SYMBOL_SEPARATOR)


def build_stream_id(channel: Channel, symbol: str | None = None) -> str:
    """Build the wire stream identifier for a channel and optional symbol."""
    wire_symbol = normalize_symbol(symbol)
    if not wire_symbol:
        return channel.wire_name
    return f"{channel.wire_name}{STREAM_SEPARATOR}{wire_symbol}"


def parse_stream_id(stream_id: str) -> tuple[Channel, str] | None:
    """Parse a stream identifier into ``(channel, display_symbol)``.

    Returns None for identifiers whose channel part is not in the catalog.
    """
    if not stream_id:
        return None
    wire_name, _, wire_symbol = stream_id.partition(STREAM_SEPARATOR)
    channel = Channel.from_wire(wire_name)
    if channel is None:
        return None
    return channel, display_symbol(wire_symbol)


@dataclass(frozen=True)
class SubscriptionKey:
    """Registry key derived from (channel, symbol).

    The symbol is stored in wire form so ``SOL-USDC`` and ``sol_usdc`` map to
    the same key. An empty symbol is the channel-only fallback key.
    """

    channel: Channel
    symbol: str = ""

    @classmethod
    def of(cls, channel: Channel, symbol: str | None = None) -> SubscriptionKey:
        return cls(channel=channel, symbol=normalize_symbol(symbol))

    @property
    def is_channel_wide(self) -> bool:
        return not self.symbol

    @property
    def stream_id(self) -> str:
        return build_stream_id(self.channel, self.symbol)

    def channel_wide(self) -> SubscriptionKey:
        """The fallback key for this key's channel."""
        return SubscriptionKey(channel=self.channel)

    def __str__(self) -> str:
        return self.stream_id
