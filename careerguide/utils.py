# careerguide/utils.py
# Normalization helpers and validation of generator output.

import json
import re
from typing import Any, List, Optional

from pydantic import ValidationError as SchemaError

from .errors import GenerationError
from .schemas import Recommendation, Roadmap

MAX_RECOMMENDATIONS = 3


def normalize_text(s: Optional[str]) -> Optional[str]:
    if not s:
        return s
    return re.sub(r"\s+", " ", s.strip())


def normalize_answer(text: Optional[str]) -> str:
    """Collapse whitespace; blank or whitespace-only input becomes ''."""
    return normalize_text(text) or ""


def extract_json_block(text: Optional[str]) -> Any:
    """
    Pull the JSON payload out of a generator reply.
    Tries the whole reply first, then the outermost {...} span, so replies
    wrapped in prose or ``` fences still parse. Raises GenerationError.
    """
    if not text or not text.strip():
        raise GenerationError("generator returned an empty reply")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    m = re.search(r"\{.*\}", text, re.DOTALL)
    if not m:
        raise GenerationError("generator reply contains no JSON object")
    try:
        return json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise GenerationError(f"generator reply is not valid JSON: {e.msg}") from e


def parse_recommendations(text: str) -> List[Recommendation]:
    """
    Validate a recommendation reply into at most MAX_RECOMMENDATIONS records.
    Accepts {"recommendations": [...]} or a bare list. Ids are positional
    (rec-1, rec-2, ...) whatever the generator put there.
    """
    data = extract_json_block(text)
    if isinstance(data, dict):
        data = data.get("recommendations", data.get("careerSuggestions"))
    if not isinstance(data, list) or not data:
        raise GenerationError("generator reply has no recommendation list")

    recs: List[Recommendation] = []
    for i, raw in enumerate(data[:MAX_RECOMMENDATIONS], 1):
        if not isinstance(raw, dict):
            raise GenerationError(f"recommendation #{i} is not an object")
        try:
            recs.append(Recommendation.model_validate({**raw, "id": f"rec-{i}"}))
        except SchemaError as e:
            raise GenerationError(f"recommendation #{i} does not match the schema: {e.error_count()} error(s)") from e
    return recs


def parse_roadmap(text: str) -> Roadmap:
    data = extract_json_block(text)
    if isinstance(data, dict) and isinstance(data.get("roadmap"), dict):
        data = data["roadmap"]
    if not isinstance(data, dict):
        raise GenerationError("generator reply is not a roadmap object")
    try:
        return Roadmap.model_validate(data)
    except SchemaError as e:
        raise GenerationError(f"roadmap does not match the schema: {e.error_count()} error(s)") from e
