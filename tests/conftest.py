import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("ANTHROPIC_API_KEY", "test_anthropic_key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("CHECKOUT_DEFAULT_ORIGIN", "https://game.example.com")

from shatter_api.errors import UpstreamError  # noqa: E402
from shatter_api.llm.client import get_llm_client  # noqa: E402
from shatter_api.main import app  # noqa: E402
from shatter_api.services.payments import CheckoutResult, get_stripe_checkout  # noqa: E402


class FakeLLMClient:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, object]] = []

    def generate_text(self, prompt, params):
        self.calls.append((prompt, params))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeCheckout:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict] = []

    def create_coin_checkout(self, *, coins, price, origin):
        self.calls.append({"coins": coins, "price": price, "origin": origin})
        if self.error is not None:
            raise self.error
        return CheckoutResult(
            url="https://checkout.stripe.com/c/pay/cs_test_123",
            session_id="cs_test_123",
            unit_amount=round(price * 100),
        )


@pytest.fixture()
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def fake_checkout() -> FakeCheckout:
    return FakeCheckout()


@pytest.fixture()
def api_client(fake_llm, fake_checkout):
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_stripe_checkout] = lambda: fake_checkout
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def upstream_error() -> UpstreamError:
    return UpstreamError("anthropic", "connection reset")


@pytest.fixture()
def fixed_clock():
    return SimpleNamespace(now_ms=lambda: 1_700_000_000_000)
