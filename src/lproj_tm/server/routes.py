from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from ..completion import complete_missing
from ..errors import FileWriteError, OracleFailure
from ..oracle.client import OpenAIConfigError
from ..store import LocalizationStore
from .models import (
    EntryResponse,
    HealthResponse,
    OkResponse,
    ProgressResponse,
    RowItem,
    RowsResponse,
    SaveResponse,
    SetTranslationRequest,
    TaskProgress,
    TaskStatus,
    TranslateResponse,
    WorkspaceInfoResponse,
    WorkspaceRequest,
)
from .workspace import Workspace, reset_progress


def build_router(ws: Workspace) -> APIRouter:
    r = APIRouter(prefix="/api")

    def _store(name: str) -> LocalizationStore:
        store = ws.stores.get(name)
        if store is None:
            raise HTTPException(status_code=404, detail=f"resource not found: {name}")
        return store

    def _lang(store: LocalizationStore, lang: str) -> str:
        if lang not in store.translations:
            raise HTTPException(status_code=404, detail=f"{store.name}: language not found: {lang}")
        return lang

    def _idle(name: str) -> None:
        if ws.is_busy(name):
            raise HTTPException(status_code=409, detail=f"{name} is being translated")

    def _workspace_info() -> WorkspaceInfoResponse:
        return WorkspaceInfoResponse(
            root=str(ws.root),
            config_path=str(ws.cfg.path) if ws.cfg.path else None,
            source_locales=list(ws.cfg.source_locales),
            resources=[Workspace.resource_info(ws.stores[n]) for n in sorted(ws.stores)],
        )

    @r.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(ok=True)

    @r.get("/workspace", response_model=WorkspaceInfoResponse)
    def workspace():
        return _workspace_info()

    @r.post("/workspace", response_model=WorkspaceInfoResponse)
    def open_workspace(req: WorkspaceRequest):
        root = Path(req.root).expanduser()
        if not root.is_dir():
            raise HTTPException(status_code=400, detail=f"not a directory: {root}")
        ws.scan(root)
        return _workspace_info()

    @r.get("/resources", response_model=WorkspaceInfoResponse)
    def resources():
        return _workspace_info()

    @r.get("/resources/{name}/languages")
    def languages(name: str):
        return {"resource": name, "languages": _store(name).languages}

    @r.get("/resources/{name}/rows", response_model=RowsResponse)
    def rows(name: str, lang: str = Query(...)):
        store = _store(name)
        _lang(store, lang)
        items = [
            RowItem(key=row.key, source=row.source, translation=row.translation, missing=row.translation is None)
            for row in store.rows(lang)
        ]
        return RowsResponse(resource=name, language=lang, rows=items)

    @r.get("/resources/{name}/export", response_class=PlainTextResponse)
    def export(name: str, lang: str = Query(...)):
        store = _store(name)
        return store.export_text(_lang(store, lang))

    @r.get("/resources/{name}/entry", response_model=EntryResponse)
    def entry(name: str, lang: str = Query(...), key: str = Query(...)):
        store = _store(name)
        text = store.entry_text(key, _lang(store, lang))
        if text is None:
            raise HTTPException(status_code=404, detail=f"no translation for {key}")
        return EntryResponse(key=key, language=lang, text=text)

    @r.put("/resources/{name}/translations", response_model=OkResponse)
    def set_translation(name: str, req: SetTranslationRequest):
        store = _store(name)
        _idle(name)
        if req.key not in store.source_strings:
            raise HTTPException(status_code=400, detail=f"unknown key: {req.key}")
        store.set_translation(req.key, _lang(store, req.lang), req.value)
        return OkResponse(ok=True)

    @r.delete("/resources/{name}/translations", response_model=OkResponse)
    def remove_translation(name: str, lang: str = Query(...), key: str = Query(...)):
        store = _store(name)
        _idle(name)
        store.remove_translation(key, _lang(store, lang))
        return OkResponse(ok=True)

    @r.post("/resources/{name}/reload", response_model=OkResponse)
    def reload(name: str, lang: str = Query(...)):
        store = _store(name)
        _idle(name)
        store.reload_language(ws.root, lang)
        return OkResponse(ok=True, message=f"reloaded {lang}")

    @r.post("/resources/{name}/save", response_model=SaveResponse)
    def save(name: str, lang: str = Query(...)):
        store = _store(name)
        _idle(name)
        try:
            path = store.save(ws.root, _lang(store, lang))
        except FileWriteError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return SaveResponse(ok=True, path=str(path))

    @r.post("/resources/{name}/translate", response_model=TranslateResponse)
    async def translate(name: str, lang: str = Query(...)):
        store = _store(name)
        _lang(store, lang)

        lock = ws.lock_for(name)
        if lock.locked():
            raise HTTPException(status_code=409, detail=f"{name} is already being translated")

        try:
            oracle = ws.oracle()
        except OpenAIConfigError as e:
            raise HTTPException(status_code=400, detail=str(e))

        p = ws.progress_for(name, lang)

        def on_progress(done: int, total: int) -> None:
            if total == 0:
                p.progress = TaskProgress(done=p.progress.total, total=p.progress.total)
            else:
                p.progress = TaskProgress(done=done, total=total)

        async with lock:
            reset_progress(p, TaskStatus.running)
            try:
                result = await complete_missing(store, lang, oracle, on_progress)
            except OracleFailure as e:
                p.status = TaskStatus.failed
                p.error = str(e)
                raise HTTPException(
                    status_code=502,
                    detail={"error": str(e), "key": e.key, "committed": e.committed},
                )

        p.status = TaskStatus(result.state.value)
        return TranslateResponse(
            ok=True,
            resource=name,
            language=lang,
            status=p.status,
            total=result.total,
            translated=result.translated,
            skipped=result.skipped,
        )

    @r.get("/resources/{name}/progress", response_model=ProgressResponse)
    def progress(name: str, lang: str = Query(...)):
        store = _store(name)
        return ws.progress_for(name, _lang(store, lang))

    return r
