"""
HTTP surface of the profiler.

Every handler maps 1:1 onto one service operation. Authentication happens
upstream: the auth gateway resolves the bearer token and forwards the
user id in the `X-User-Id` header.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brokerlib.errors import (
    AuthorizationError,
    BrokerError,
    StorageError,
    UserNotFoundError,
    ValidationError,
)
from brokerlib.models.events import Event
from brokerlib.models.profile import ProfileResult, UserDataView
from brokerlib.models.sessions import SessionSummary
from brokerlib.observability import get_logger

from apps.profiler.src.core.config import ProfilerSettings
from apps.profiler.src.core.container import ProfilerServices
from apps.profiler.src.service.features import ALL_SESSIONS
from apps.profiler.src.service.price_feed import PriceTick

log = get_logger("profiler.api")

_STATUS_BY_ERROR = {
    ValidationError: 400,
    AuthorizationError: 403,
    UserNotFoundError: 404,
    StorageError: 500,
}


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Access token required")
    return x_user_id


def create_app(services: ProfilerServices, settings: ProfilerSettings | None = None) -> FastAPI:
    settings = settings or ProfilerSettings.load()
    app = FastAPI(title="FakeBroker Profiler API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BrokerError)
    async def broker_error_handler(request: Request, exc: BrokerError) -> JSONResponse:
        status = next(
            (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
            500,
        )
        if status >= 500:
            log.error("Request failed", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(status_code=status, content={"error": str(exc)})

    @app.get("/health")
    def health():
        return {"ok": True, "service": "profiler-api", "redis": services.store.ping()}

    @app.post("/event", status_code=201)
    def record_event(
        payload: Dict[str, Any] = Body(...),
        user_id: str = Depends(current_user_id),
    ):
        services.events.record_event(
            user_id,
            payload.get("session_id"),
            payload.get("type"),
            payload.get("target"),
            payload.get("hover_ms"),
        )
        return {"message": "Event saved successfully"}

    @app.post("/session-event", status_code=201)
    def record_session_event(
        payload: Dict[str, Any] = Body(...),
        user_id: str = Depends(current_user_id),
    ):
        services.sessions.record_session_signal(
            user_id,
            payload.get("session_id"),
            payload.get("type"),
            payload,
        )
        return {"message": "Session event saved successfully"}

    @app.get("/api/sessions", response_model=List[SessionSummary])
    def list_sessions(user_id: str = Depends(current_user_id)):
        return services.profiles.list_sessions(user_id)

    @app.get("/api/sessions/{session_id}/events", response_model=List[Event])
    def session_events(session_id: str, user_id: str = Depends(current_user_id)):
        return services.profiles.session_events(user_id, session_id)

    @app.get("/profile", response_model=ProfileResult)
    def profile(user_id: str = Depends(current_user_id)):
        return services.profiles.generate_profile(user_id)

    @app.get("/api/user/data", response_model=UserDataView)
    def user_data(
        filter: str = Query(ALL_SESSIONS),
        user_id: str = Depends(current_user_id),
    ):
        return services.profiles.user_data(user_id, filter)

    @app.delete("/reset")
    def reset(user_id: str = Depends(current_user_id)):
        services.profiles.reset_user_data(user_id)
        return {"message": "Your data cleared successfully."}

    @app.get("/api/admin/search-users")
    def search_users(
        q: str | None = Query(None),
        user_id: str = Depends(current_user_id),
    ):
        users = services.admin.search_users(user_id, q)
        return {"users": [u.model_dump(mode="json") for u in users]}

    @app.get("/api/admin/user/{target_user_id}/data", response_model=UserDataView)
    def admin_user_data(
        target_user_id: str,
        filter: str = Query(ALL_SESSIONS),
        user_id: str = Depends(current_user_id),
    ):
        return services.admin.user_data(user_id, target_user_id, filter)

    @app.post("/api/admin/user/{target_user_id}/profile", response_model=ProfileResult)
    def admin_generate_profile(target_user_id: str, user_id: str = Depends(current_user_id)):
        return services.admin.generate_profile(user_id, target_user_id)

    @app.get("/price", response_model=PriceTick)
    def price():
        return services.prices.tick()

    return app
