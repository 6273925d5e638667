from __future__ import annotations

from fastapi import Request, WebSocket

from jobscribe.core.runtime import Runtime
from jobscribe.llm.generation import GenerationService


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def get_ws_runtime(websocket: WebSocket) -> Runtime:
    return websocket.app.state.runtime


def get_generation_service(request: Request) -> GenerationService:
    runtime: Runtime = request.app.state.runtime
    provider = getattr(request.app.state, "generation_provider", None)
    return GenerationService(
        settings=runtime.settings,
        store=runtime.store,
        session=runtime.session,
        preferences=runtime.preferences,
        provider=provider,
    )
