# -*- coding: utf-8 -*-
# lanprint/api/routes.py
from __future__ import annotations

import asyncio
from concurrent.futures import Future
from typing import Any, Callable, Optional

from fastapi import APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from lanprint.core.exceptions import InvalidArgumentError
from lanprint.core.models import ErrorKind
from lanprint.core.printer_service import PrinterService

router = APIRouter()


# --- Schemas ---
# fields are untyped on purpose: the service parses and rejects them
class _Payload(BaseModel):
    """Argument object of a printer call (camelCase keys as sent by clients)."""


class ConnectPayload(_Payload):
    ip: Any = None
    port: Any = None


class PrintPayload(ConnectPayload):
    data: Any = None


class PrintImagePayload(PrintPayload):
    imageBase64: Any = None


class AutodetectPayload(_Payload):
    baseIp: Any = None
    startRange: Any = None
    endRange: Any = None
    port: Any = None


def invalid_argument(field: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "errorKind": ErrorKind.INVALID_ARGUMENT.value,
            "field": field,
            "error": message,
            "detail": message,
        },
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # body is not a JSON object at all
    err = (exc.errors() or [{}])[0]
    loc = [str(p) for p in err.get("loc", ()) if p != "body"]
    return invalid_argument(".".join(loc) or "body", err.get("msg", "Invalid request body"))


def _service(request: Request) -> PrinterService:
    return request.app.state.service


async def _run(call: Callable[[dict], Future], payload: _Payload):
    try:
        fut = call(payload.model_dump(exclude_none=True))
    except InvalidArgumentError as e:
        return invalid_argument(e.field, e.message)
    result = await asyncio.wrap_future(fut)
    return result.to_dict()


# --- Endpoints ---
@router.post("/printer/test")
async def post_test(request: Request, payload: ConnectPayload):
    return await _run(_service(request).test_connection, payload)


@router.post("/printer/print")
async def post_print(request: Request, payload: PrintPayload):
    return await _run(_service(request).print_text, payload)


@router.post("/printer/print-image")
async def post_print_image(request: Request, payload: PrintImagePayload):
    return await _run(_service(request).print_with_image, payload)


@router.post("/printer/drawer")
async def post_drawer(request: Request, payload: ConnectPayload):
    return await _run(_service(request).open_drawer, payload)


@router.post("/printer/autodetect")
async def post_autodetect(request: Request, payload: Optional[AutodetectPayload] = None):
    return await _run(_service(request).autodetect, payload or AutodetectPayload())


@router.get("/health")
def health(request: Request):
    return {"ok": True, **_service(request).status()}
