"""Content negotiation between the JSON envelope and server-rendered pages."""
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError

from .errors import ValidationFailure

TEMPLATES = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def is_json_request(request: Request) -> bool:
    accept = request.headers.get("accept") or ""
    return "application/json" in accept.lower()


async def read_payload(request: Request) -> Dict[str, Any]:
    """Body as a dict, whether it arrived as JSON or as a submitted form."""
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = await request.json()
        except ValueError:
            raise ValidationFailure("Malformed JSON body")
        if not isinstance(data, dict):
            raise ValidationFailure("Expected a JSON object")
        return data
    form = await request.form()
    return {key: value for key, value in form.items() if key != "_method"}


def _describe(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    field = ".".join(str(part) for part in error.get("loc", ()))
    return f"{field}: {message}" if field else message


def parse_payload(
    schema: Type[SchemaT], data: Dict[str, Any], redirect_to: Optional[str] = None
) -> SchemaT:
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        errors = exc.errors()
        raise ValidationFailure(_describe(errors[0]) if errors else "Invalid input", redirect_to=redirect_to)


def envelope(success: bool = True, status_code: int = status.HTTP_200_OK, **fields: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": success, **fields}),
    )


def redirect(url: str, error: Optional[str] = None) -> RedirectResponse:
    if error:
        url = f"{url}{'&' if '?' in url else '?'}error={quote(error)}"
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def render(request: Request, name: str, context: Optional[Dict[str, Any]] = None, status_code: int = 200):
    ctx = {"error": request.query_params.get("error")}
    ctx.update(context or {})
    return TEMPLATES.TemplateResponse(request, name, ctx, status_code=status_code)
