"""
api/routes/v1/auth.py -- Registration, login and account listing endpoints.

Routes:
  POST /api/v1/auth/register  -- create an account; 201 with the account summary
  POST /api/v1/auth/login     -- verify a password; 200 with the account fields
  GET  /api/v1/accounts       -- list account summaries (diagnostics, off by default)

These handlers are thin adapters: every rule lives in AuthService. Handlers
are plain `def` so FastAPI runs them in its worker thread pool -- bcrypt is
CPU-bound and must not block the event loop.

Security:
  Login returns the same bad_credentials error for an unknown identity and a
  wrong password. Do NOT add a pre-check against the store here -- that would
  re-introduce the enumeration leak AuthService closes.
  Cache-Control: no-store on register and login responses.
  GET /accounts returns 404 unless EXPOSE_ACCOUNT_LIST=true.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import AccountResponse, ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, RegisterRequest
from auth.errors import (
    AccountExistsError,
    AuthError,
    AuthenticationFailedError,
    InvalidInputError,
    StorageUnavailableError,
)
from auth.models import AccountSummary
from auth.service import AuthService
from core.config import Settings, get_settings

router = APIRouter()

_STATUS_BY_ERROR: dict[type[AuthError], int] = {
    InvalidInputError: 400,
    AuthenticationFailedError: 401,
    AccountExistsError: 409,
    StorageUnavailableError: 503,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error_response(exc: AuthError) -> JSONResponse:
    resp = JSONResponse(
        status_code=_STATUS_BY_ERROR.get(type(exc), 500),
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _summary_to_response(summary: AccountSummary) -> AccountResponse:
    return AccountResponse(
        id=summary.id,
        display_name=summary.display_name,
        email=summary.email,
        login_name=summary.login_name,
        created_at=summary.created_at,
    )


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AccountResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Register a new account.

    409 account_exists does not say whether the email or the login name
    collided.
    """
    service: AuthService = request.app.state.auth_service
    body = body.normalized()
    try:
        summary = service.register(body.display_name, body.email, body.login_name, body.password)
    except AuthError as exc:
        return _error_response(exc)

    resp = JSONResponse(status_code=201, content=_summary_to_response(summary).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with a login name or email plus password."""
    service: AuthService = request.app.state.auth_service
    try:
        summary = service.authenticate((body.identity or "").strip(), body.password)
    except AuthError as exc:
        return _error_response(exc)

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            id=summary.id,
            display_name=summary.display_name,
            email=summary.email,
            login_name=summary.login_name,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Diagnostics (privileged)
# ---------------------------------------------------------------------------


@router.get("/accounts", response_model=list[AccountResponse])
def list_accounts(request: Request, settings: Settings = Depends(get_settings)) -> list[AccountResponse]:
    """List every account's non-secret fields, ordered by id.

    Hidden (404) unless EXPOSE_ACCOUNT_LIST=true. Intended for local testing
    and operations, never for general clients.
    """
    if not settings.expose_account_list:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Not found."})
    service: AuthService = request.app.state.auth_service
    try:
        summaries = service.list_summaries()
    except StorageUnavailableError as exc:
        raise HTTPException(status_code=503, detail={"code": exc.code, "message": exc.message}) from exc
    return [_summary_to_response(s) for s in summaries]
