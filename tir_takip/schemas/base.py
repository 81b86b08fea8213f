from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    """Plain confirmation message."""
    message: str


def validation_issues(exc: Any) -> List[Dict[str, Any]]:
    """
    Flatten a pydantic ValidationError or a FastAPI RequestValidationError
    into JSON-safe issues.

    Each issue carries the field path, a human message and the error code.
    """
    return [
        {
            "path": list(error["loc"]),
            "message": error["msg"],
            "code": error["type"],
        }
        for error in exc.errors()
    ]
