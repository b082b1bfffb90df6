from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Optional
from urllib.parse import urlencode

import stripe

from shatter_api.config import settings
from shatter_api.errors import PaymentConfigError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    url: str
    session_id: str
    unit_amount: int


def price_to_cents(price: float) -> int:
    return int((Decimal(str(price)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _format_coins(coins: int | float) -> str:
    if isinstance(coins, float) and coins.is_integer():
        coins = int(coins)
    return str(coins)


def resolve_return_origin(origin: Optional[str]) -> str:
    cleaned = (origin or "").strip().rstrip("/")
    if not cleaned or cleaned == "null":
        return settings.CHECKOUT_DEFAULT_ORIGIN
    return cleaned


class StripeCheckout:
    """Creates one-off product / price / checkout-session triples for coin purchases."""

    def __init__(self, *, api_key: Optional[str] = None, currency: Optional[str] = None) -> None:
        self.api_key = api_key
        self.currency = currency or settings.CHECKOUT_CURRENCY
        self._configured = False

    def _configure(self) -> None:
        if self._configured:
            return
        api_key = self.api_key or settings.STRIPE_SECRET_KEY
        if not api_key:
            raise PaymentConfigError("STRIPE_SECRET_KEY not configured")
        stripe.api_key = api_key
        self._configured = True

    def create_coin_checkout(self, *, coins: int | float, price: float, origin: Optional[str]) -> CheckoutResult:
        self._configure()
        coins_label = _format_coins(coins)
        unit_amount = price_to_cents(price)
        return_origin = resolve_return_origin(origin)
        success_query = urlencode({"success": "true", "coins": coins_label})

        try:
            product = stripe.Product.create(
                name=f"{coins_label} Game Coins",
                description=f"Purchase of {coins_label} coins for {settings.GAME_TITLE}",
                metadata={"coins": coins_label, "type": "dynamic_coin_purchase"},
                active=True,
            )
            stripe_price = stripe.Price.create(
                product=product.id,
                unit_amount=unit_amount,
                currency=self.currency,
            )
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                line_items=[{"price": stripe_price.id, "quantity": 1}],
                mode="payment",
                success_url=f"{return_origin}?{success_query}",
                cancel_url=f"{return_origin}?canceled=true",
                metadata={"coins": coins_label},
            )
        except stripe.StripeError as exc:
            logger.exception(
                "Stripe checkout creation failed",
                extra={"coins": coins_label, "unit_amount": unit_amount},
            )
            raise UpstreamError("stripe", str(exc)) from exc

        logger.info(
            "Stripe checkout session created",
            extra={"coins": coins_label, "unit_amount": unit_amount, "session_id": session.id},
        )
        return CheckoutResult(url=session.url, session_id=session.id, unit_amount=unit_amount)


@lru_cache(maxsize=1)
def get_stripe_checkout() -> StripeCheckout:
    return StripeCheckout()
