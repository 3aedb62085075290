from datetime import datetime
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, model_validator

from app.core.exceptions import ValidationError
from app.utils.time_utils import to_storage_datetime

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class FormModel(BaseModel):
    """Base for raw form input: strips whitespace, empty strings count as missing."""
    model_config = ConfigDict(str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: None if isinstance(v, str) and not v.strip() else v for k, v in data.items()}
        return data


def error_fields(exc: PydanticValidationError) -> list[str]:
    return [".".join(str(part) for part in err["loc"]) or "body" for err in exc.errors()]


def parse_payload(schema: Type[SchemaT], data: Any) -> SchemaT:
    """
    Validate raw input against a schema.

    Already-validated instances pass straight through; anything else is
    validated and pydantic errors become an application ValidationError
    naming the offending fields.
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data or {})
    except PydanticValidationError as e:
        fields = error_fields(e)
        raise ValidationError(f"Invalid or missing fields: {', '.join(fields)}", fields) from e


def normalize_timestamp(value: Any) -> Any:
    """Shared `mode="before"` validator body for timestamp fields."""
    if isinstance(value, (str, datetime)) or value is None:
        return to_storage_datetime(value)
    return value
