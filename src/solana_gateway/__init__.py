"""Endpoint-resilient Solana operation gateway."""

__version__ = "1.0.0"
