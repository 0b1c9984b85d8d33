"""
Pytest fixtures and configuration for PIM Backend tests

This file provides shared fixtures that can be used across all test modules.

Author: TM3
Date: 2026-03-02
"""
import asyncio
from typing import List, Optional

import pytest

from pim.connectors.gs1.transport import HttpRequest, HttpResponse


class FakeTransport:
    """
    Scripted transport for GS1 client tests

    Responses are returned in order; an Exception in the script is raised
    instead. Every request is recorded.
    """

    def __init__(self, responses: Optional[List] = None):
        self.responses = list(responses or [])
        self.requests: List[HttpRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def queue(self, status: int, text: str = "") -> "FakeTransport":
        self.responses.append(HttpResponse(status=status, text=text))
        return self

    async def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    """Manually advanced clock (seconds)"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def run():
    """Run a coroutine to completion"""
    return asyncio.run


@pytest.fixture
def sample_product_data():
    """
    Provides sample product data for tests
    """
    return {
        "name": "Pote Hermético 500ml",
        "sku": "POT-500",
        "ncm": "39241000",
        "cest": "",
        "ean": "7891234567895",
        "cost": "12,90",
        "photos_url": "https://drive.google.com/drive/folders/abc123XYZ",
        "thumbnail": "https://drive.google.com/file/d/FILE123/view",
        "video_ml": "",
        "video_shopee": "",
        "gpc_code": "10000123",
        "gross_weight": "0,25",
        "net_weight": "0.2",
        "net_content": "1",
        "origin": "076",
    }


@pytest.fixture
def sample_product_row(sample_product_data):
    """
    Provides a products table row as returned by RealDictCursor
    """
    from datetime import datetime
    return {
        "id": "6f1c2a9e-0000-4000-8000-000000000001",
        **sample_product_data,
        "created_at": datetime(2026, 3, 2, 10, 0, 0),
        "updated_at": None,
    }
