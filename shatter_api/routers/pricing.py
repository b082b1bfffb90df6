from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from shatter_api.errors import LLMClientConfigError, PaymentConfigError, UpstreamError
from shatter_api.llm.client import LLMClient, get_llm_client
from shatter_api.schemas import CoinPricingRequest, CoinPricingResponse, ErrorResponse
from shatter_api.services.payments import StripeCheckout, get_stripe_checkout
from shatter_api.services.pricing import quote_coin_price, validate_coins

logger = logging.getLogger(__name__)
router = APIRouter(tags=["pricing"])


@router.post(
    "/pricing",
    response_model=CoinPricingResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
# Path used by the first game release; kept for older clients.
@router.post("/api/ai-coin-pricing", response_model=CoinPricingResponse, include_in_schema=False)
def create_coin_purchase(
    payload: CoinPricingRequest,
    request: Request,
    llm_client: LLMClient = Depends(get_llm_client),
    checkout: StripeCheckout = Depends(get_stripe_checkout),
):
    coins = validate_coins(payload.coins)

    try:
        quote = quote_coin_price(coins, client=llm_client)
        session = checkout.create_coin_checkout(
            coins=coins,
            price=quote.artifact["price"],
            origin=request.headers.get("origin"),
        )
    except (UpstreamError, LLMClientConfigError, PaymentConfigError) as exc:
        logger.exception("AI coin pricing failed", extra={"coins": coins})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process coin purchase",
        ) from exc

    return CoinPricingResponse(
        url=session.url,
        coins=coins,
        price=quote.artifact["price"],
        reasoning=quote.artifact["reasoning"],
    )
