"""Tests for the size limit and access-log middleware."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from reach.transport.middleware import RequestLoggingMiddleware, SizeLimitMiddleware


def _echo_app(max_size: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(SizeLimitMiddleware, max_size=max_size)
    app.add_middleware(RequestLoggingMiddleware)

    @app.post("/echo")
    async def echo() -> dict[str, bool]:
        return {"ok": True}

    return app


def test_allows_body_at_limit() -> None:
    client = TestClient(_echo_app(max_size=10))
    assert client.post("/echo", content=b"x" * 10).status_code == 200


def test_rejects_body_over_limit() -> None:
    client = TestClient(_echo_app(max_size=10))
    response = client.post("/echo", content=b"x" * 11)
    assert response.status_code == 413
    assert response.json() == {"error": "Request size (11 bytes) exceeds maximum (10 bytes)"}


def test_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        SizeLimitMiddleware(FastAPI(), max_size=0)
