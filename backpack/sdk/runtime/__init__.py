"""Transports: streaming session and one-shot HTTP."""
