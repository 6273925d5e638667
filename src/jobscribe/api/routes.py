from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, WebSocket, WebSocketDisconnect

from jobscribe.api.deps import get_generation_service, get_runtime, get_ws_runtime
from jobscribe.api.schemas import (
    ApiKeyRequest,
    BadgeResponse,
    DocumentContentResponse,
    DocumentCreatedResponse,
    DocumentSummary,
    GenerateRequest,
    PageActionRequest,
    PageAddressRequest,
    PageMessageRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    PromptResponse,
    RenameRequest,
    SelectionRequest,
    SessionUpdateRequest,
)
from jobscribe.core.badge import ALERT_STYLE, HIDDEN_STYLE, BadgeState
from jobscribe.core.coordinator import PageRef
from jobscribe.core.runtime import Runtime
from jobscribe.llm.generation import GenerationService
from jobscribe.types import GenerationResult, HistoryRecord, Preferences, UploadBlob

router = APIRouter(prefix="/api", tags=["api"])


@router.post("/messages")
async def post_page_message(
    payload: PageMessageRequest,
    page_id: int = Query(...),
    window_id: int = Query(0),
    url: str = Query(""),
    runtime: Runtime = Depends(get_runtime),
) -> dict | None:
    sender = PageRef(page_id=page_id, window_id=window_id, url=url)
    return await runtime.coordinator.handle_message(payload.model_dump(), sender)


@router.post("/pages/{page_id}/address", response_model=BadgeResponse)
async def page_address_changed(
    page_id: int,
    payload: PageAddressRequest,
    runtime: Runtime = Depends(get_runtime),
) -> BadgeResponse:
    await runtime.coordinator.on_page_updated(page_id, payload.url)
    return _badge_response(runtime, page_id)


@router.delete("/pages/{page_id}", status_code=204)
async def page_closed(page_id: int, runtime: Runtime = Depends(get_runtime)) -> None:
    await runtime.coordinator.on_page_removed(page_id)


@router.get("/pages/{page_id}/badge", response_model=BadgeResponse)
def page_badge(page_id: int, runtime: Runtime = Depends(get_runtime)) -> BadgeResponse:
    return _badge_response(runtime, page_id)


@router.post("/pages/{page_id}/toolbar", status_code=202)
async def toolbar_clicked(
    page_id: int,
    payload: PageActionRequest,
    runtime: Runtime = Depends(get_runtime),
) -> dict:
    page = PageRef(page_id=page_id, window_id=payload.window_id, url=payload.url)
    await runtime.coordinator.on_toolbar_clicked(page)
    return {"opened": True, "window_id": payload.window_id}


@router.post("/pages/{page_id}/selection", status_code=202)
async def selection_command(
    page_id: int,
    payload: SelectionRequest,
    runtime: Runtime = Depends(get_runtime),
) -> dict:
    page = PageRef(page_id=page_id, window_id=payload.window_id, url=payload.url)
    accepted = await runtime.capturer.capture(payload.text, page, menu_item_id=payload.menu_item_id)
    if not accepted:
        raise HTTPException(status_code=400, detail="No text selected")
    return {"accepted": True}


@router.get("/session")
async def read_session(runtime: Runtime = Depends(get_runtime)) -> dict:
    snapshot = await runtime.session.get()
    return snapshot.model_dump(by_alias=True)


@router.patch("/session")
async def update_session(payload: SessionUpdateRequest, runtime: Runtime = Depends(get_runtime)) -> dict:
    snapshot = await runtime.session.update(payload.model_dump(exclude_unset=True))
    return snapshot.model_dump(by_alias=True)


@router.delete("/session/job-description")
async def clear_session_job_description(runtime: Runtime = Depends(get_runtime)) -> dict:
    await runtime.session.clear_job_description()
    snapshot = await runtime.session.get()
    return snapshot.model_dump(by_alias=True)


@router.delete("/session")
async def reset_session(runtime: Runtime = Depends(get_runtime)) -> dict:
    await runtime.session.clear()
    snapshot = await runtime.session.get()
    return snapshot.model_dump(by_alias=True)


@router.post("/documents/{kind}", response_model=DocumentCreatedResponse)
async def upload_document(
    kind: str,
    request: Request,
    name: str = Query(..., min_length=1),
    runtime: Runtime = Depends(get_runtime),
) -> DocumentCreatedResponse:
    blob = UploadBlob(
        name=name,
        data=await request.body(),
        content_type=request.headers.get("content-type", ""),
    )
    document_id = await runtime.store.add(kind, blob)
    return DocumentCreatedResponse(id=document_id, name=name)


@router.get("/documents/{kind}", response_model=list[DocumentSummary])
async def list_documents(kind: str, runtime: Runtime = Depends(get_runtime)) -> list[DocumentSummary]:
    rows = await runtime.store.list(kind)
    return [DocumentSummary(id=row.id, name=row.name) for row in rows]


@router.get("/documents/{kind}/{document_id}/content", response_model=DocumentContentResponse)
async def document_content(
    kind: str,
    document_id: int,
    runtime: Runtime = Depends(get_runtime),
) -> DocumentContentResponse:
    content = await runtime.store.get_content(kind, document_id)
    if content is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return DocumentContentResponse(id=document_id, content=content)


@router.patch("/documents/{kind}/{document_id}", status_code=204)
async def rename_document(
    kind: str,
    document_id: int,
    payload: RenameRequest,
    runtime: Runtime = Depends(get_runtime),
) -> None:
    await runtime.store.rename(kind, document_id, payload.name)


@router.delete("/documents/{kind}/{document_id}", status_code=204)
async def delete_document(kind: str, document_id: int, runtime: Runtime = Depends(get_runtime)) -> None:
    await runtime.store.delete(kind, document_id)


@router.delete("/documents", status_code=204)
async def clear_documents(runtime: Runtime = Depends(get_runtime)) -> None:
    await runtime.store.clear()


@router.delete("/documents/{collection}", status_code=204)
async def clear_collection(collection: str, runtime: Runtime = Depends(get_runtime)) -> None:
    await runtime.store.clear(collection)


@router.get("/history", response_model=list[HistoryRecord])
async def list_history(runtime: Runtime = Depends(get_runtime)) -> list[HistoryRecord]:
    return await runtime.store.list_entries()


@router.delete("/history/{entry_id}", status_code=204)
async def delete_history_entry(entry_id: int, runtime: Runtime = Depends(get_runtime)) -> None:
    await runtime.store.delete_entry(entry_id)


@router.delete("/history", status_code=204)
async def clear_history(runtime: Runtime = Depends(get_runtime)) -> None:
    await runtime.store.clear_history()


@router.get("/preferences", response_model=PreferencesResponse)
async def read_preferences(runtime: Runtime = Depends(get_runtime)) -> PreferencesResponse:
    return _preferences_response(await runtime.preferences.load())


@router.patch("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    payload: PreferencesUpdateRequest,
    runtime: Runtime = Depends(get_runtime),
) -> PreferencesResponse:
    preferences = await runtime.preferences.update(payload.model_dump(exclude_none=True))
    return _preferences_response(preferences)


@router.put("/preferences/api-key", response_model=PreferencesResponse)
async def set_api_key(payload: ApiKeyRequest, runtime: Runtime = Depends(get_runtime)) -> PreferencesResponse:
    preferences = await runtime.preferences.set_api_key(payload.provider, payload.key)
    return _preferences_response(preferences)


@router.post("/generate/prompt", response_model=PromptResponse)
async def generate_prompt(service: GenerationService = Depends(get_generation_service)) -> PromptResponse:
    return PromptResponse(prompt=await service.prompt())


@router.post("/generate", response_model=GenerationResult)
async def generate_cover_letter(
    payload: GenerateRequest,
    service: GenerationService = Depends(get_generation_service),
) -> GenerationResult:
    return await service.generate(credential=payload.credential)


@router.websocket("/surface/{window_id}/stream")
async def surface_stream(websocket: WebSocket, window_id: int) -> None:
    runtime = get_ws_runtime(websocket)
    await websocket.accept()
    try:
        async for message in runtime.surfaces.subscribe(window_id):
            await websocket.send_json(message.model_dump())
    except WebSocketDisconnect:
        return


def _badge_response(runtime: Runtime, page_id: int) -> BadgeResponse:
    state = runtime.badges.state(page_id)
    style = ALERT_STYLE if state is BadgeState.ALERT else HIDDEN_STYLE
    return BadgeResponse(
        page_id=page_id,
        state=state.value,
        text=style.text,
        background=style.background,
        foreground=style.foreground,
    )


def _preferences_response(preferences: Preferences) -> PreferencesResponse:
    return PreferencesResponse(
        default_tone=preferences.default_tone,
        default_font=preferences.default_font,
        filename_pattern=preferences.filename_pattern,
        word_count_target=preferences.word_count_target,
        auto_copy=preferences.auto_copy,
        auto_download=preferences.auto_download,
        api_key_providers=sorted(preferences.api_keys),
    )
