import logging
from typing import Any, Dict

import pydantic
from packaging.version import parse
from pydantic.version import VERSION

logger = logging.getLogger(__name__)

version_parsed = parse(str(VERSION))

if version_parsed.major >= 2:
    PydanticVersion = 2
else:
    PydanticVersion = 1
logger.debug(f"Running with Pydantic V{PydanticVersion} ({VERSION})")


BaseModel: type = pydantic.BaseModel
Field: type = pydantic.Field


def model_dump_compat(model: Any, **kwargs) -> Dict[str, Any]:
    """Serialize a pydantic model to a dict on either major version."""
    if PydanticVersion == 1:
        return model.dict(**kwargs)
    return model.model_dump(**kwargs)


def validation_error_messages(exc: Exception) -> str:
    """Flatten a pydantic ``ValidationError`` into one readable line."""
    errors = exc.errors() if hasattr(exc, "errors") else []
    parts = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts) or str(exc)


__all__ = [
    "BaseModel",
    "Field",
    "PydanticVersion",
    "model_dump_compat",
    "validation_error_messages",
]
