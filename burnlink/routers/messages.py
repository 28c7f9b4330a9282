# burnlink/routers/messages.py
# FastAPI router for creating, reading and destroying messages

from __future__ import annotations

import secrets
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError

from burnlink import config
from burnlink.config import settings
from burnlink.constants import DELAYS
from burnlink.middleware.error_handler import NotFoundError, StorageError, ValidationError
from burnlink.repositories.message_repository import MessageRepository
from burnlink.schemas.common import (
    CreateMessageRequest,
    CreateMessageResponse,
    DeleteMessageResponse,
    MessageView,
    PurgeResponse,
)
from burnlink.services.access_service import AccessService
from burnlink.utils.logger import log_exception, log_info
from burnlink.utils.network import client_identity


router = APIRouter(tags=["Messages"])

templates = Jinja2Templates(directory=config.TEMPLATE_PATH)


def get_access_service() -> AccessService:
    return AccessService(MessageRepository())


def _identity(request: Request) -> Optional[str]:
    peer = request.client.host if request.client else None
    return client_identity(request.headers, peer)


def _wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


async def _read_payload(request: Request) -> Dict[str, Any]:
    """Accept both JSON bodies and urlencoded form posts."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Invalid JSON body")
        if not isinstance(body, dict):
            raise ValidationError("Body must be a JSON object")
        return body
    form = await request.form()
    return dict(form)


@router.get("/", include_in_schema=False)
async def index(request: Request):
    return templates.TemplateResponse(request, "index.html", {"delays": DELAYS})


@router.post("/", response_model=CreateMessageResponse)
async def create_message(
    request: Request,
    service: AccessService = Depends(get_access_service),
):
    """Store a message and return the token that reveals it."""
    try:
        payload = CreateMessageRequest.model_validate(await _read_payload(request))
    except PydanticValidationError as e:
        log_info(f"create_message: invalid payload - {e.error_count()} error(s)")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False})
    except ValidationError as e:
        log_info(f"create_message: {e.message}")
        return JSONResponse(status_code=e.status_code, content={"success": False})

    try:
        token = await service.create(payload.message, payload.delay)
    except StorageError as e:
        log_exception(e, "create_message: storage failure")
        return JSONResponse(status_code=e.status_code, content={"success": False})

    return CreateMessageResponse(success=True, token=token)


# Cronable storage cleanup
@router.get("/clear", response_model=PurgeResponse)
async def clear_messages(
    service: AccessService = Depends(get_access_service),
    x_purge_token: Optional[str] = Header(default=None),
) -> PurgeResponse:
    if settings.PURGE_TOKEN and not secrets.compare_digest(
        x_purge_token or "", settings.PURGE_TOKEN
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    removed = await service.purge()
    return PurgeResponse(
        success=True,
        removed=removed,
        message="Successfully cleared outdated messages",
    )


async def _destroy(token: str, request: Request, service: AccessService) -> DeleteMessageResponse:
    removed = await service.delete(token, _identity(request))
    return DeleteMessageResponse(success=removed)


@router.delete("/destroy/{token}/", response_model=DeleteMessageResponse)
async def destroy_message_legacy(
    token: str,
    request: Request,
    service: AccessService = Depends(get_access_service),
) -> DeleteMessageResponse:
    return await _destroy(token, request, service)


@router.delete("/{token}/", response_model=DeleteMessageResponse)
async def destroy_message(
    token: str,
    request: Request,
    service: AccessService = Depends(get_access_service),
) -> DeleteMessageResponse:
    """Delete a message; only its bound reader can do this."""
    return await _destroy(token, request, service)


@router.get("/{token}/")
async def show_message(
    token: str,
    request: Request,
    service: AccessService = Depends(get_access_service),
):
    """Display a single message.

    Unknown, expired and foreign-bound tokens all look the same to the caller.
    """
    result = await service.view(token, _identity(request))

    if not result.shown:
        if _wants_json(request):
            raise NotFoundError()
        return templates.TemplateResponse(
            request, "404.html", {}, status_code=status.HTTP_404_NOT_FOUND
        )

    view = MessageView(
        message=result.text,
        token=result.token,
        active_until=result.active_until,
        active_until_timestamp=result.active_until_timestamp,
        active_until_date=result.active_until_display,
        time_remaining=result.time_remaining,
        expires_in_seconds=result.expires_in_seconds,
    )
    if _wants_json(request):
        return view

    response = templates.TemplateResponse(request, "show.html", view.model_dump())
    response.headers["Cache-Control"] = "no-store"
    return response
