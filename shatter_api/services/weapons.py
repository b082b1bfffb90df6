from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from shatter_api.config import settings
from shatter_api.llm.client import LLMClient, LLMGenerationParams
from shatter_api.services.generation import FieldRange, GenerationResult, coerce_number, generate_with_fallback

WEAPON_TYPES = ("weapon", "ranged", "ability")
RARITIES = ("common", "uncommon", "rare", "epic", "legendary")

WEAPON_RULES = {
    "damage": FieldRange(default=20, minimum=15, maximum=100),
    "cooldown": FieldRange(default=500, minimum=200, maximum=3000),
    "energy": FieldRange(default=0, minimum=0, maximum=30),
    "price": FieldRange(default=500, minimum=100, maximum=5000),
}

_TEXT_FIELDS = ("name", "icon", "desc")


@dataclass
class WeaponRequest:
    owned_weapons: List[Any] = field(default_factory=list)
    player_level: int | float = 1
    preferred_type: str = "any"


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalize_weapon_request(
    owned_weapons: Any = None,
    player_level: Any = None,
    preferred_type: Any = None,
) -> WeaponRequest:
    # Never rejects: wrong types and falsy values take the default.
    level = coerce_number(player_level)
    if level is not None and level.is_integer():
        level = int(level)
    return WeaponRequest(
        owned_weapons=list(owned_weapons) if isinstance(owned_weapons, list) else [],
        player_level=level or 1,
        preferred_type=("" if preferred_type is None else str(preferred_type)).strip() or "any",
    )


def fallback_weapon(now_ms: Callable[[], int] = _now_ms) -> Dict[str, Any]:
    return {
        "id": f"mystery_blade_{now_ms()}",
        "name": "Mystery Blade",
        "icon": "🗡️",
        "type": "weapon",
        "damage": 25,
        "cooldown": 500,
        "energy": 0,
        "desc": "A blade shrouded in mystery",
        "price": 500,
        "rarity": "uncommon",
        "special": "Randomly generated",
    }


def parse_weapon(raw: Dict[str, Any], now_ms: Callable[[], int] = _now_ms) -> Dict[str, Any]:
    weapon = dict(raw)

    weapon_id = weapon.get("id")
    weapon["id"] = str(weapon_id).strip() if weapon_id not in (None, "") else f"generated_{now_ms()}"

    for key in _TEXT_FIELDS:
        value = weapon.get(key)
        weapon[key] = "" if value is None else str(value)
    if not weapon["name"]:
        weapon["name"] = "Unnamed Weapon"

    weapon_type = str(weapon.get("type") or "").strip().lower()
    weapon["type"] = weapon_type if weapon_type in WEAPON_TYPES else "weapon"

    rarity = str(weapon.get("rarity") or "").strip().lower()
    weapon["rarity"] = rarity if rarity in RARITIES else "common"

    special = weapon.get("special")
    if special in (None, ""):
        weapon.pop("special", None)
    else:
        weapon["special"] = str(special)

    return weapon


def build_weapon_prompt(request: WeaponRequest, *, game_title: str) -> str:
    return f"""You are a game designer creating unique weapons for {game_title}, a fantasy combat game.

The player already owns these weapons: {json.dumps(request.owned_weapons, ensure_ascii=False)}
Player level/progress: {request.player_level}
Preferred weapon type (optional): {request.preferred_type}

Create a NEW unique weapon that doesn't exist yet. Be creative with fantasy/sci-fi themes.

Weapon types available: weapon (melee), ranged, ability

Respond with ONLY a JSON object in this exact format:
{{
    "id": "unique_snake_case_id",
    "name": "Display Name",
    "icon": "single emoji",
    "type": "{'|'.join(WEAPON_TYPES)}",
    "damage": 15-100,
    "cooldown": 200-3000,
    "energy": 0-30,
    "desc": "Short description under 50 chars",
    "price": 100-5000,
    "rarity": "{'|'.join(RARITIES)}",
    "special": "optional special effect description"
}}

Make it balanced but interesting. Higher rarity = higher stats and price."""


def generate_weapon(request: WeaponRequest, *, client: LLMClient) -> GenerationResult:
    return generate_with_fallback(
        client=client,
        prompt=build_weapon_prompt(request, game_title=settings.GAME_TITLE),
        params=LLMGenerationParams(max_tokens=settings.WEAPON_MAX_TOKENS),
        parse=parse_weapon,
        fallback=fallback_weapon,
        rules=WEAPON_RULES,
        label="weapon",
    )
