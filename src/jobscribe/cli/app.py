from __future__ import annotations

import asyncio
import json
import mimetypes
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

import requests
import typer
import uvicorn

from jobscribe.api.app import create_app
from jobscribe.config import get_settings
from jobscribe.core.badge import is_job_posting
from jobscribe.core.job_fetcher import fetch_job_text
from jobscribe.core.runtime import Runtime, get_runtime
from jobscribe.errors import JobscribeError, VersionConflictError
from jobscribe.llm.generation import GenerationService
from jobscribe.logging_config import configure_logging
from jobscribe.types import DocumentKind, UploadBlob

app = typer.Typer(help="Jobscribe CLI")
docs_app = typer.Typer(help="Manage stored cover letters and resumes")
history_app = typer.Typer(help="Generation history")
db_app = typer.Typer(help="Document store maintenance")
session_app = typer.Typer(help="Session state of a running server")

app.add_typer(docs_app, name="docs")
app.add_typer(history_app, name="history")
app.add_typer(db_app, name="db")
app.add_typer(session_app, name="session")

T = TypeVar("T")


def _run(coro: Awaitable[T]) -> T:
    async def _main() -> T:
        try:
            return await coro
        finally:
            await get_runtime().store.close()

    try:
        return asyncio.run(_main())
    except VersionConflictError as exc:
        _fail(f"{exc}. Run `jobscribe db recreate --yes` to delete and rebuild the store.")
    except JobscribeError as exc:
        _fail(str(exc))


def _fail(message: str) -> None:
    typer.echo(json.dumps({"ok": False, "error": message}, indent=2), err=True)
    raise typer.Exit(code=1)


def _echo(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command("init")
def init_cmd() -> None:
    """Create data directories and bring the document store to the current schema."""
    configure_logging()
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    runtime = get_runtime()
    _run(runtime.store.open())
    _echo({"ok": True, "database_url": settings.database_url, "schema_version": runtime.store.version})


@app.command("serve")
def serve_cmd(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(settings), host=host or settings.app_host, port=port or settings.app_port)


@app.command("scrape")
def scrape_cmd(url: str) -> None:
    """Fetch a job page and print the description the scraper finds."""
    configure_logging()
    text = fetch_job_text(url, timeout_sec=get_settings().fetch_timeout_sec)
    if not text:
        _fail(f"could not fetch a job description from {url}")
    _echo({"url": url, "job_posting": is_job_posting(url), "chars": len(text), "text": text})


@docs_app.command("add")
def docs_add(
    kind: DocumentKind = typer.Option(..., "--kind"),
    file: Path = typer.Option(..., "--file", exists=True, readable=True, dir_okay=False),
) -> None:
    configure_logging()
    content_type, _ = mimetypes.guess_type(file.name)
    blob = UploadBlob(name=file.name, data=file.read_bytes(), content_type=content_type or "")
    document_id = _run(get_runtime().store.add(kind, blob))
    _echo({"id": document_id, "name": file.name, "kind": kind.value})


@docs_app.command("list")
def docs_list(kind: DocumentKind = typer.Option(..., "--kind")) -> None:
    configure_logging()
    rows = _run(get_runtime().store.list(kind))
    _echo([{"id": row.id, "name": row.name, "chars": len(row.content)} for row in rows])


@docs_app.command("show")
def docs_show(
    kind: DocumentKind = typer.Option(..., "--kind"),
    document_id: int = typer.Option(..., "--id"),
) -> None:
    configure_logging()
    content = _run(get_runtime().store.get_content(kind, document_id))
    if content is None:
        _fail(f"{kind.value} document {document_id} not found")
    typer.echo(content)


@docs_app.command("rename")
def docs_rename(
    kind: DocumentKind = typer.Option(..., "--kind"),
    document_id: int = typer.Option(..., "--id"),
    name: str = typer.Option(..., "--name"),
) -> None:
    configure_logging()
    _run(get_runtime().store.rename(kind, document_id, name))
    _echo({"id": document_id, "name": name})


@docs_app.command("delete")
def docs_delete(
    kind: DocumentKind = typer.Option(..., "--kind"),
    document_id: int = typer.Option(..., "--id"),
) -> None:
    configure_logging()
    _run(get_runtime().store.delete(kind, document_id))
    _echo({"deleted": document_id})


@docs_app.command("clear")
def docs_clear(collection: str | None = typer.Option(None, "--collection")) -> None:
    configure_logging()
    _run(get_runtime().store.clear(collection))
    _echo({"cleared": collection or "all"})


@history_app.command("list")
def history_list() -> None:
    configure_logging()
    entries = _run(get_runtime().store.list_entries())
    _echo([entry.model_dump() for entry in entries])


@history_app.command("delete")
def history_delete(entry_id: int = typer.Option(..., "--id")) -> None:
    configure_logging()
    _run(get_runtime().store.delete_entry(entry_id))
    _echo({"deleted": entry_id})


@history_app.command("clear")
def history_clear() -> None:
    configure_logging()
    _run(get_runtime().store.clear_history())
    _echo({"cleared": "generationHistory"})


@db_app.command("recreate")
def db_recreate(yes: bool = typer.Option(False, "--yes", help="Confirm deleting every document")) -> None:
    """Delete the whole store and rebuild it at the configured schema version."""
    configure_logging()
    if not yes:
        _fail("refusing to delete the document store without --yes")
    _run(get_runtime().store.recreate())
    _echo({"ok": True, "schema_version": get_runtime().store.version})


def _server_url(url: str | None) -> str:
    if url:
        return url.rstrip("/")
    settings = get_settings()
    return f"http://{settings.app_host}:{settings.app_port}"


def _session_request(method: str, path: str, url: str | None) -> None:
    endpoint = f"{_server_url(url)}/api/session{path}"
    try:
        response = requests.request(method, endpoint, timeout=10)
        response.raise_for_status()
    except requests.RequestException as exc:
        _fail(f"{method} {endpoint} failed: {exc}")
    _echo(response.json())


@session_app.command("show")
def session_show(url: str | None = typer.Option(None, "--url", help="Server base URL")) -> None:
    _session_request("GET", "", url)


@session_app.command("clear-job")
def session_clear_job(url: str | None = typer.Option(None, "--url", help="Server base URL")) -> None:
    """Forget the captured job description so the next scrape is accepted."""
    _session_request("DELETE", "/job-description", url)


@session_app.command("reset")
def session_reset(url: str | None = typer.Option(None, "--url", help="Server base URL")) -> None:
    """End the session and forget everything it holds."""
    _session_request("DELETE", "", url)


async def _prepare_session(
    runtime: Runtime,
    *,
    cover_letter_id: int,
    resume_id: int,
    job_file: Path | None,
    job_url: str | None,
    tone: str | None,
    context: str,
) -> None:
    if job_file is not None:
        await runtime.session.apply_job_description(job_file.read_text(encoding="utf-8"), "highlight")
    elif job_url:
        text = await asyncio.to_thread(fetch_job_text, job_url, runtime.settings.fetch_timeout_sec)
        await runtime.session.apply_job_description(text, "scrape")

    values: dict[str, object] = {
        "selected_cover_letter_id": cover_letter_id,
        "selected_resume_id": resume_id,
        "additional_context": context,
    }
    if tone:
        values["tone"] = tone
    await runtime.session.update(values)


def _service(runtime: Runtime) -> GenerationService:
    return GenerationService(
        settings=runtime.settings,
        store=runtime.store,
        session=runtime.session,
        preferences=runtime.preferences,
    )


@app.command("prompt")
def prompt_cmd(
    cover_letter_id: int = typer.Option(..., "--cover-letter-id"),
    resume_id: int = typer.Option(..., "--resume-id"),
    job_file: Path | None = typer.Option(None, "--job-file", exists=True, readable=True),
    job_url: str | None = typer.Option(None, "--job-url"),
    tone: str | None = typer.Option(None, "--tone"),
    context: str = typer.Option("", "--context"),
) -> None:
    """Print the copy-paste prompt for the selected documents."""
    configure_logging()
    runtime = get_runtime()

    async def _prompt() -> str:
        await _prepare_session(
            runtime,
            cover_letter_id=cover_letter_id,
            resume_id=resume_id,
            job_file=job_file,
            job_url=job_url,
            tone=tone,
            context=context,
        )
        return await _service(runtime).prompt()

    typer.echo(_run(_prompt()))


@app.command("generate")
def generate_cmd(
    cover_letter_id: int = typer.Option(..., "--cover-letter-id"),
    resume_id: int = typer.Option(..., "--resume-id"),
    job_file: Path | None = typer.Option(None, "--job-file", exists=True, readable=True),
    job_url: str | None = typer.Option(None, "--job-url"),
    tone: str | None = typer.Option(None, "--tone"),
    context: str = typer.Option("", "--context"),
) -> None:
    """Generate a cover letter with the configured provider and record it in history."""
    configure_logging()
    runtime = get_runtime()

    async def _generate():
        await _prepare_session(
            runtime,
            cover_letter_id=cover_letter_id,
            resume_id=resume_id,
            job_file=job_file,
            job_url=job_url,
            tone=tone,
            context=context,
        )
        return await _service(runtime).generate()

    result = _run(_generate())
    _echo(result.model_dump())


if __name__ == "__main__":
    app()
