"""FastAPI-powered zero-knowledge password login service."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .auth import AuthOrchestrator, AuthState
from .config import Settings, configure_logging
from .crypto import VerificationKey, load_verification_key
from .errors import MalformedCredential, NotFound, SystemFault, VerificationKeyUnavailable
from .store import open_store

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INTERNAL_ERROR = "Internal server error"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignupRequest(_Payload):
    account_id: str = Field(alias="accountId", min_length=1)
    salt: str
    commitment: str


class SignupResponse(_Payload):
    account_id: str = Field(alias="accountId")
    ok: bool


class LoginDataResponse(BaseModel):
    salt: str
    commitment: str


class LoginRequest(_Payload):
    account_id: str = Field(alias="accountId", min_length=1)
    # Left untyped so every malformed proof reaches the verifier and is
    # rejected with the same response as an invalid one.
    proof: Any = None
    public_signals: Any = Field(default=None, alias="publicSignals")


class LoginResponse(BaseModel):
    ok: bool


class HealthResponse(_Payload):
    status: str
    verification_key: bool = Field(alias="verificationKey")


def _load_key(path: str) -> Optional[VerificationKey]:
    try:
        key = load_verification_key(path)
    except VerificationKeyUnavailable:
        logger.exception("Verification key unavailable; every login will fail")
        return None
    logger.info("Loaded verification key %s from %s", key.protocol, path)
    return key


def build_orchestrator(settings: Settings) -> AuthOrchestrator:
    return AuthOrchestrator(
        store=open_store(settings.store_path),
        verification_key=_load_key(settings.verification_key_path),
    )


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[AuthOrchestrator] = None,
) -> FastAPI:
    """Build the service; ``uvicorn zklogin.server:create_app --factory`` serves it."""

    settings = settings or Settings.from_env()
    orchestrator = orchestrator or build_orchestrator(settings)

    app = FastAPI(title="zklogin", description="Zero-knowledge password login")
    app.state.orchestrator = orchestrator
    # Browser clients are served from another origin; no cookies are issued.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    def _system_error(action: str, account_id: str, exc: SystemFault) -> HTTPException:
        logger.error("%s for %s failed with a system error", action, account_id, exc_info=exc)
        return HTTPException(status_code=500, detail=INTERNAL_ERROR)

    @app.post("/signup", response_model=SignupResponse, status_code=201)
    async def signup(request: SignupRequest) -> SignupResponse:
        try:
            outcome = await run_in_threadpool(
                orchestrator.signup, request.account_id, request.salt, request.commitment
            )
        except MalformedCredential as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except SystemFault as exc:
            raise _system_error("Signup", request.account_id, exc) from exc
        if outcome.state is AuthState.CONFLICT:
            raise HTTPException(status_code=409, detail="Account already exists")
        return SignupResponse(account_id=outcome.account_id, ok=True)

    @app.get("/loginData", response_model=LoginDataResponse)
    async def login_data(account_id: str = Query(..., alias="accountId", min_length=1)) -> LoginDataResponse:
        try:
            credential = await run_in_threadpool(orchestrator.login_data, account_id)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail="Unknown account") from exc
        except SystemFault as exc:
            raise _system_error("Login data", account_id, exc) from exc
        return LoginDataResponse(salt=credential.salt, commitment=credential.commitment)

    @app.post("/login", response_model=LoginResponse)
    async def login(request: LoginRequest) -> LoginResponse:
        try:
            outcome = await run_in_threadpool(
                orchestrator.login, request.account_id, request.proof, request.public_signals
            )
        except SystemFault as exc:
            raise _system_error("Login", request.account_id, exc) from exc

        if outcome.state is AuthState.NOT_FOUND:
            raise HTTPException(status_code=404, detail="Unknown account")
        if outcome.state is not AuthState.ACCEPTED:
            raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
        return LoginResponse(ok=True)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", verification_key=orchestrator.verification_key is not None)

    return app


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


__all__ = ["build_orchestrator", "create_app", "main"]


if __name__ == "__main__":
    main()
