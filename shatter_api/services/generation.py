from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from shatter_api.llm.client import LLMClient, LLMGenerationParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldRange:
    """Closed range for one numeric artifact field.

    `decimals=0` yields ints; `None` bounds leave that side open.
    """

    default: float
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    decimals: int = 0


@dataclass
class GenerationResult:
    artifact: Dict[str, Any]
    used_fallback: bool


_decoder = json.JSONDecoder()


def extract_first_json_object(text: str) -> Dict[str, Any]:
    """Return the first JSON object embedded in a model reply.

    Game prompts ask for bare JSON, but replies sometimes open with a sentence
    ("Here's your weapon:") or close with one. Each `{` is tried as the start of
    an object in turn, so stray braces in the prose are skipped.
    """

    if not isinstance(text, str):
        raise ValueError("Model reply must be a string")
    reply = text.strip()
    if not reply:
        raise ValueError("Model reply is empty")

    position = reply.find("{")
    while position != -1:
        try:
            parsed, _end = _decoder.raw_decode(reply, position)
        except ValueError:
            position = reply.find("{", position + 1)
            continue
        return parsed

    raise ValueError("No JSON object found in model reply")


def coerce_number(value: Any) -> Optional[float]:
    """Return a finite float for numbers and numeric strings, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # JSON integers are unbounded; anything past float range is unusable.
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def clamp(value: float, minimum: Optional[float], maximum: Optional[float]) -> float:
    if minimum is not None:
        value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def sanitize_fields(data: Mapping[str, Any], rules: Mapping[str, FieldRange]) -> Dict[str, Any]:
    sanitized = dict(data)
    for field, rule in rules.items():
        number = coerce_number(sanitized.get(field))
        if number is None:
            number = rule.default
        number = clamp(number, rule.minimum, rule.maximum)
        if rule.decimals == 0:
            sanitized[field] = int(round(number))
        else:
            sanitized[field] = round(number, rule.decimals)
    return sanitized


def generate_with_fallback(
    *,
    client: LLMClient,
    prompt: str,
    params: LLMGenerationParams,
    parse: Callable[[Dict[str, Any]], Dict[str, Any]],
    fallback: Callable[[], Dict[str, Any]],
    rules: Mapping[str, FieldRange],
    label: str,
) -> GenerationResult:
    """Ask the model for a JSON artifact and always hand back a sanitized one.

    Provider failures (UpstreamError, LLMClientConfigError) propagate. Anything wrong
    with the reply itself is replaced by `fallback()`.
    """
    text = client.generate_text(prompt, params)

    used_fallback = False
    try:
        artifact = parse(extract_first_json_object(text))
    except (ValueError, TypeError) as exc:
        logger.warning(
            "Model reply unusable; using fallback",
            extra={"artifact": label, "reason": str(exc), "reply_chars": len(text)},
        )
        artifact = fallback()
        used_fallback = True

    return GenerationResult(artifact=sanitize_fields(artifact, rules), used_fallback=used_fallback)
