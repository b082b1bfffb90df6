from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CoinPricingRequest(BaseModel):
    # Range checks happen in the pricing service so they answer 400 with a readable message.
    coins: Any = None


class CoinPricingResponse(BaseModel):
    url: str
    coins: int | float
    price: float
    reasoning: str


class WeaponGenerationRequest(BaseModel):
    # Every field is optional and loosely typed; the weapon service falls back to defaults.
    ownedWeapons: Any = None
    playerLevel: Any = None
    preferredType: Any = None


class Weapon(BaseModel):
    id: str
    name: str
    icon: str
    type: str
    damage: int = Field(ge=15, le=100)
    cooldown: int = Field(ge=200, le=3000)
    energy: int = Field(ge=0, le=30)
    desc: str
    price: int = Field(ge=100, le=5000)
    rarity: str
    special: str | None = None

    model_config = ConfigDict(extra="allow")


class WeaponGenerationResponse(BaseModel):
    success: bool = True
    weapon: Weapon


class ErrorResponse(BaseModel):
    error: str
