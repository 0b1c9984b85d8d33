"""
GS1 Brasil Connector

Registration and verification of products at the GS1 Brasil registry.
The client is variant-agnostic; strategies hold the per-deployment
auth and endpoint details.

Author: TM3
Date: 2026-03-02
"""
from pim.connectors.gs1.client import GS1Client, get_gs1_client
from pim.connectors.gs1.strategies import (
    BasicAuthExchangeStrategy,
    GS1Strategy,
    PasswordGrantStrategy,
    RelayStrategy,
    build_strategy,
)
from pim.connectors.gs1.token_cache import AccessToken, TokenCache, TokenGrant
from pim.connectors.gs1.transport import HttpRequest, HttpResponse, HttpxTransport

__all__ = [
    'GS1Client',
    'get_gs1_client',
    'GS1Strategy',
    'BasicAuthExchangeStrategy',
    'PasswordGrantStrategy',
    'RelayStrategy',
    'build_strategy',
    'AccessToken',
    'TokenCache',
    'TokenGrant',
    'HttpRequest',
    'HttpResponse',
    'HttpxTransport',
]
