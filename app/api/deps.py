# app/api/deps.py

from typing import Any, Dict, Optional, Type, TypeVar

import pydantic
from fastapi import Request

from app.core.errors import ValidationError

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


async def read_json(request: Request) -> Optional[Dict[str, Any]]:
    """
    Parsed JSON object body, or None if the body is empty, not JSON, or not an object.
    """
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def parse_payload(model: Type[ModelT], body: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(body)
    except pydantic.ValidationError as exc:
        fields = {".".join(str(part) for part in err["loc"]) for err in exc.errors()}
        raise ValidationError(f"Invalid field: {', '.join(sorted(fields))}") from exc


def parse_limit(raw: Optional[str], default: int, maximum: int = 100) -> int:
    try:
        limit = int(str(raw).strip())
    except ValueError:
        return default
    return max(1, min(limit, maximum))
