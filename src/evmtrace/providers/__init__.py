"""
Chain-data providers for evmtrace.
"""

from .blocking import BlockingProvider, DEFAULT_RPC_URL, RPC_URL_ENV

__all__ = [
    'BlockingProvider',
    'DEFAULT_RPC_URL',
    'RPC_URL_ENV',
]
