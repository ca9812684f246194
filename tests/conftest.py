"""
Route test fixtures.

Every test gets its own SQLite file under tmp_path, and a real EmailClient
whose HTTP traffic goes to an httpx.MockTransport instead of the provider.
"""

from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from app.core.config import Settings, get_settings
from app.db.engine import get_engine, init_db
from app.main import create_app
from app.services.email import EmailClient, get_email_client


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.sqlite'}",
        email_api_url="https://email.test/emails",
        email_api_key="re_test_key",
        email_from="Elliot's Lessons <lessons@example.com>",
        business_name="Elliot's Lessons",
        currency_symbol="£",
        timezone="Europe/London",
    )


@pytest.fixture
def engine(settings):
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sent() -> List[httpx.Request]:
    return []


@pytest.fixture
def make_email_client(settings, sent) -> Callable[..., EmailClient]:
    def factory(status_code: int = 200, body: str = '{"id": "em_123"}', **overrides) -> EmailClient:
        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(status_code, text=body)

        client_settings = settings.model_copy(update=overrides) if overrides else settings
        return EmailClient(client_settings, transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def app(settings, engine, make_email_client):
    application = create_app(settings)
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_engine] = lambda: engine
    email_client = make_email_client()
    application.dependency_overrides[get_email_client] = lambda: email_client
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def use_email_client(app, make_email_client):
    """Swap the email client the routes get, e.g. use_email_client(status_code=500)."""

    def swap(**kwargs) -> EmailClient:
        email_client = make_email_client(**kwargs)
        app.dependency_overrides[get_email_client] = lambda: email_client
        return email_client

    return swap


@pytest.fixture
def create_invoice(client):
    def factory(**overrides) -> dict:
        payload = {
            "invoice_no": "INV-1001",
            "customer": {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "address": "1 High Street\nLondon",
            },
            "programme": "lessons",
            "subtotal": 110,
            "travel_fee": 10,
            "total": 120,
            "deposit_amount": 0,
            "items": [
                {"desc": "Driving lesson", "qty": 2, "unit": 55, "amount": 110, "date": "2026-10-10"},
            ],
            "due_date": "2026-10-31",
        }
        payload.update(overrides)
        response = client.post("/api/invoices", json=payload)
        assert response.status_code == 200, response.text
        return response.json()

    return factory
