from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, status

from shatter_api.errors import LLMClientConfigError, UpstreamError
from shatter_api.llm.client import LLMClient, get_llm_client
from shatter_api.schemas import ErrorResponse, WeaponGenerationRequest, WeaponGenerationResponse
from shatter_api.services.weapons import generate_weapon, normalize_weapon_request

logger = logging.getLogger(__name__)
router = APIRouter(tags=["items"])


@router.post(
    "/generate-item",
    response_model=WeaponGenerationResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
)
# Path used by the first game release; kept for older clients.
@router.post(
    "/api/generate-weapon",
    response_model=WeaponGenerationResponse,
    response_model_exclude_none=True,
    include_in_schema=False,
)
def create_generated_item(
    payload: WeaponGenerationRequest | None = Body(None),
    llm_client: LLMClient = Depends(get_llm_client),
):
    payload = payload or WeaponGenerationRequest()
    weapon_request = normalize_weapon_request(
        owned_weapons=payload.ownedWeapons,
        player_level=payload.playerLevel,
        preferred_type=payload.preferredType,
    )

    try:
        result = generate_weapon(weapon_request, client=llm_client)
    except (UpstreamError, LLMClientConfigError) as exc:
        logger.exception(
            "Weapon generation failed",
            extra={"player_level": weapon_request.player_level, "owned_count": len(weapon_request.owned_weapons)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate weapon",
        ) from exc

    return {"success": True, "weapon": result.artifact}
