from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

from shatter_api.config import settings
from shatter_api.errors import InvalidInputError
from shatter_api.llm.client import LLMClient, LLMGenerationParams
from shatter_api.services.generation import FieldRange, GenerationResult, coerce_number, generate_with_fallback

MIN_COINS = 50
MAX_COINS = 50_000
MIN_PRICE = 0.50
COINS_PER_DOLLAR = 100
FALLBACK_REASONING = "Calculated with standard volume discount"

# Highest threshold first; the first one reached wins.
VOLUME_DISCOUNTS: tuple[tuple[int, float], ...] = (
    (25_000, 0.30),
    (10_000, 0.25),
    (5_000, 0.20),
    (2_500, 0.15),
    (1_000, 0.10),
    (500, 0.05),
)

def price_quote_rules(coins: float) -> Dict[str, FieldRange]:
    """Price bounds for one request: the $0.50 floor up to the undiscounted base price."""
    ceiling = max(MIN_PRICE, round_to_cents(coins / COINS_PER_DOLLAR))
    return {"price": FieldRange(default=MIN_PRICE, minimum=MIN_PRICE, maximum=ceiling, decimals=2)}


def validate_coins(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not MIN_COINS <= value <= MAX_COINS:
        raise InvalidInputError("Invalid coin amount. Must be between 50 and 50,000 coins.")
    return value


def tiered_discount(coins: float) -> float:
    for threshold, discount in VOLUME_DISCOUNTS:
        if coins >= threshold:
            return discount
    return 0.0


def round_to_cents(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def fallback_price(coins: float) -> float:
    base_price = coins / COINS_PER_DOLLAR
    return max(MIN_PRICE, round_to_cents(base_price * (1 - tiered_discount(coins))))


def fallback_price_quote(coins: float) -> Dict[str, Any]:
    return {"price": fallback_price(coins), "reasoning": FALLBACK_REASONING}


def parse_price_quote(raw: Dict[str, Any]) -> Dict[str, Any]:
    price = coerce_number(raw.get("price"))
    if price is None or price <= 0:
        raise ValueError(f"Model returned an unusable price: {raw.get('price')!r}")
    reasoning = raw.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = FALLBACK_REASONING
    return {"price": price, "reasoning": reasoning.strip()}


def build_pricing_prompt(coins: int | float, *, game_title: str) -> str:
    discount_lines = "\n".join(
        f"  - {threshold}+ coins: {round(discount * 100)}% discount"
        for threshold, discount in reversed(VOLUME_DISCOUNTS)
    )
    return f"""You are a game monetization AI. Determine the fair USD price for {coins} coins in {game_title}.

Pricing guidelines:
- Base rate: $1.00 per {COINS_PER_DOLLAR} coins
- Volume discounts:
{discount_lines}
- Minimum price: ${MIN_PRICE:.2f}
- Round to nearest $0.01

Respond with ONLY a JSON object in this exact format:
{{"price": X.XX, "reasoning": "brief explanation"}}"""


def quote_coin_price(coins: int | float, *, client: LLMClient) -> GenerationResult:
    return generate_with_fallback(
        client=client,
        prompt=build_pricing_prompt(coins, game_title=settings.GAME_TITLE),
        params=LLMGenerationParams(max_tokens=settings.PRICING_MAX_TOKENS),
        parse=parse_price_quote,
        fallback=lambda: fallback_price_quote(coins),
        rules=price_quote_rules(coins),
        label="price_quote",
    )
