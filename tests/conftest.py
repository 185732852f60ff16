"""Shared pytest fixtures for reelboard tests."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from reelboard.db.schema import Base
from reelboard.providers.registry import ProviderRegistry

Responder = Callable[[httpx.Request], httpx.Response]


class VendorStub:
    """Fake vendor endpoints behind an httpx.MockTransport.

    Routes match on method and URL prefix, first registered wins. Unmatched
    requests answer 404 so a missing route shows up as a failed call.
    """

    def __init__(self):
        self.routes: list[tuple[str, str, Responder]] = []
        self.requests: list[httpx.Request] = []

    def on(self, method: str, url_prefix: str, response: httpx.Response | Responder) -> None:
        if isinstance(response, httpx.Response):
            fixed = response

            def responder(request: httpx.Request) -> httpx.Response:
                return fixed

        else:
            responder = response
        self.routes.append((method.upper(), url_prefix, responder))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, prefix, responder in self.routes:
            if request.method == method and str(request.url).startswith(prefix):
                return responder(request)
        return httpx.Response(404, text="no route")

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    factory = sessionmaker(bind=engine)
    session = factory()
    yield session
    session.close()


@pytest.fixture
def vendor() -> VendorStub:
    """Fake vendor HTTP endpoints."""
    return VendorStub()


@pytest.fixture
def registry(vendor: VendorStub):
    """Provider registry whose HTTP client talks to the vendor stub."""
    with vendor.client() as http_client:
        yield ProviderRegistry(http_client)


@pytest.fixture
def client(engine, vendor: VendorStub) -> TestClient:
    """API client backed by the test database and the vendor stub."""
    from reelboard.api.app import create_app, get_db_session, get_http_client

    app = create_app()

    def override_get_db():
        with Session(engine) as db_session:
            yield db_session

    def override_get_http_client():
        with vendor.client() as http_client:
            yield http_client

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client
    return TestClient(app)
