"""
Wallet credential exchange endpoint.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from wallet_exchange.auth import ExchangeService, get_exchange_service
from wallet_exchange.auth.models import (
    ExchangeError,
    ExchangeResponse,
    ExchangeUser,
    MalformedRequest,
)
from wallet_exchange.config import settings


router = APIRouter(prefix="/auth", tags=["auth"])

_TRUTHY = {"1", "true", "yes", "on"}


def error_response(exc: ExchangeError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError as e:
        raise MalformedRequest("Request body is not valid JSON") from e


def _debug_requested(request: Request) -> bool:
    return request.query_params.get("debug", "").strip().lower() in _TRUTHY


@router.api_route(
    "/wallet",
    methods=["POST", "GET"],
    response_model=ExchangeResponse,
    responses={
        400: {"description": "Validation failure or malformed token"},
        401: {"description": "Signature did not verify"},
        500: {"description": "Identity store or minting failure"},
    },
)
async def exchange_wallet_proof(
    request: Request,
    exchange_service: ExchangeService = Depends(get_exchange_service),
):
    """
    Exchange a signed wallet message for a session token.

    Body: ``{"wallet": ..., "signature": ..., "message": ...}``.

    With ``?debug=true`` and an ``Authorization: Bearer`` header the endpoint
    instead returns the unverified claims of that token for debugging.
    """
    if _debug_requested(request):
        return _inspect(request, exchange_service)

    if request.method != "POST":
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content={"error": "MethodNotAllowed"},
        )

    try:
        body = await _read_body(request)
        result = await exchange_service.exchange(body)
    except ExchangeError as e:
        return error_response(e)

    return ExchangeResponse(
        token=result.token,
        user=ExchangeUser(id=result.identity.id, wallet=result.identity.wallet_address),
    )


def _inspect(request: Request, exchange_service: ExchangeService) -> JSONResponse:
    if not settings.exchange_debug_enabled:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "DiagnosticsDisabled"},
        )

    auth_header = request.headers.get("authorization", "")
    if not auth_header.lower().startswith("bearer ") or not auth_header[7:].strip():
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "MissingBearerToken"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        view = exchange_service.inspect(auth_header[7:].strip())
    except ExchangeError as e:
        return error_response(e)
    return JSONResponse(status_code=status.HTTP_200_OK, content=view.model_dump())
