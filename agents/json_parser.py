import json
import re
from typing import Any
from loguru import logger

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def _strip_fences(text: str) -> str:
    """Remove markdown code fences agents like to wrap JSON in."""
    return _FENCE_RE.sub("", text.strip()).strip()


def _try_loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        pass
    # Second chance without trailing commas
    try:
        return json.loads(_TRAILING_COMMA_RE.sub(r"\1", text))
    except (json.JSONDecodeError, ValueError):
        raise ValueError("not JSON")


def parse_llm_json(text: Any, fallback: Any = None) -> Any:
    """
    Best-effort conversion of agent output into a JSON value.

    Tries the whole text, then the outermost object, then the outermost
    array. Never raises.

    Args:
        text: Raw agent output
        fallback: Value returned when nothing parses

    Returns:
        Parsed value or the fallback
    """
    if not isinstance(text, str) or not text.strip():
        return fallback

    cleaned = _strip_fences(text)

    try:
        return _try_loads(cleaned)
    except ValueError:
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start = cleaned.find(opener)
        end = cleaned.rfind(closer)
        if start == -1 or end <= start:
            continue
        try:
            return _try_loads(cleaned[start:end + 1])
        except ValueError:
            continue

    logger.warning("Could not parse agent response as JSON, using fallback")
    return fallback
