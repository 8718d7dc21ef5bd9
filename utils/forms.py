"""
Form parsing helpers: bind submitted form data to a schema and flatten
pydantic errors into per-field message lists.
"""
from typing import Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from fastapi import Request
from pydantic import ValidationError

from schemas import FormSchema

T = TypeVar("T", bound=FormSchema)

FieldErrors = Dict[str, List[str]]


async def read_form(request: Request) -> Dict[str, str]:
    """Read a form-encoded (or multipart) body into a plain dict of strings"""
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _error_message(schema: Type[FormSchema], field: str, error: dict) -> str:
    if error.get("type") == "missing":
        return schema.required_messages.get(field, "This field is required")
    ctx = error.get("ctx") or {}
    if "error" in ctx:
        return str(ctx["error"])
    return error.get("msg", "Invalid value")


def parse_form(schema: Type[T], data: Mapping[str, str]) -> Tuple[Optional[T], FieldErrors]:
    """
    Validate form data against a schema.

    Returns:
        (value, {}) on success, (None, field_errors) on failure
    """
    try:
        return schema.model_validate(dict(data)), {}
    except ValidationError as exc:
        errors: FieldErrors = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error.get("loc") else "__all__"
            errors.setdefault(field, []).append(_error_message(schema, field, error))
        return None, errors
