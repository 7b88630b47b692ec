# src/ephemeral_share/server/main.py
import html
import logging
import os
import tempfile
from pathlib import Path
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from ephemeral_share import ShareClient
from ephemeral_share.config import MIB, ShareConfig
from ephemeral_share.exceptions import PayloadTooLarge, ShareError
from ephemeral_share.models import UploadRequest
from ephemeral_share.utils.aio import run_io_bound
from .uploader_configs import attachment, hupl_config, sharex_config

logger = logging.getLogger(__name__)


def get_client(request: Request) -> ShareClient:
    return request.app.state.client


def site_url(request: Request) -> str:
    return str(request.url.replace(query=""))


def parse_id_length(raw: Optional[str]) -> Optional[int]:
    # только цифры, всё остальное игнорируется
    if raw and raw.isascii() and raw.isdigit():
        return int(raw)
    return None


def render_index(config: ShareConfig, url: str) -> str:
    retention = config.retention
    ids = config.identifiers
    lines = [
        "Ephemeral file sharing",
        "======================",
        "",
        "Upload files with a simple HTTP POST, e.g. using curl:",
        f'    curl -F "file=@/path/to/your/file.jpg" {url}',
        "",
        "Piping into curl? Add a filename to keep the extension:",
        f'    echo "hello" | curl -F "file=@-;filename=.txt" {url}',
    ]
    if ids.min_id_length != ids.max_id_length:
        lines += [
            "",
            f"To use a longer file ID (up to {ids.max_id_length} characters), add -F id_length=<number>",
        ]
    lines += [
        "",
        f"ShareX users can import this custom uploader: {url}?sharex",
        f"Hupl users on Android can use this uploader: {url}?hupl",
        "",
        f"Maximum file size is {retention.max_filesize / MIB:g} MiB.",
        f"Files are kept for at least {retention.min_fileage:g} and at most {retention.max_fileage:g} days,",
        "depending on their size; smaller files are kept longer:",
        f"    min_age + (max_age - min_age) * (1 - (file_size / max_size))^{retention.decay_exponent:g}",
        "",
        f"Contact: {config.server.admin_email}",
    ]
    return "\n".join(lines) + "\n"


UPLOAD_FORM = """\
<form method="post" enctype="multipart/form-data">
<input type="file" name="file">
<input type="hidden" name="formatted" value="true">
<input type="submit" value="Upload">
</form>
"""


def render_index_html(config: ShareConfig, url: str) -> str:
    """Та же справка для браузера, плюс форма загрузки."""
    return (
        "<!DOCTYPE html>\n<html><body>\n"
        f"<pre>{html.escape(render_index(config, url))}</pre>\n"
        f"{UPLOAD_FORM}"
        "</body></html>\n"
    )


async def spool_to_disk(upload: UploadFile, directory: Path, limit: int, chunk_size: int = MIB) -> Path:
    """
    Сохраняет тело загрузки во временный файл рядом с хранилищем.
    Чтение прерывается, как только прочитано больше `limit` байт.
    """
    def _copy() -> Path:
        written = 0
        with tempfile.NamedTemporaryFile(dir=directory, delete=False) as fh:
            try:
                while chunk := upload.file.read(chunk_size):
                    written += len(chunk)
                    if written > limit:
                        raise PayloadTooLarge.over(limit)
                    fh.write(chunk)
            except Exception:
                fh.close()
                os.unlink(fh.name)
                raise
            return Path(fh.name)

    return await run_io_bound(_copy)


def create_app(client: ShareClient) -> FastAPI:
    app = FastAPI(title="ephemeral-share")
    app.state.client = client

    @app.exception_handler(ShareError)
    async def _share_error(request: Request, exc: ShareError):
        return PlainTextResponse(f"Error: {exc.message}\n", status_code=exc.status_code)

    @app.get("/")
    async def index(
        request: Request,
        share: Annotated[ShareClient, Depends(get_client)],
    ) -> Response:
        url = site_url(request)
        name = request.url.hostname or "localhost"
        if "sharex" in request.query_params:
            return attachment(f"{name}.sxcu", sharex_config(name, url))
        if "hupl" in request.query_params:
            return attachment(f"{name}.hupl", hupl_config(name, url))
        return HTMLResponse(render_index_html(share.config, url))

    @app.post("/")
    async def upload(
        request: Request,
        share: Annotated[ShareClient, Depends(get_client)],
        file: UploadFile = File(...),
        id_length: Optional[str] = Form(None),
        formatted: Optional[str] = Form(None),
    ) -> Response:
        tmp_path = await spool_to_disk(
            file, await share.repo.incoming_dir(), share.config.retention.max_filesize
        )
        try:
            stored = await share.upload(UploadRequest(
                original_name=file.filename or "",
                tmp_path=tmp_path,
                client_address=request.client.host if request.client else "",
                id_length=parse_id_length(id_length),
                formatted=formatted is not None,
            ))
        finally:
            # после успешной загрузки файла уже нет
            await share.repo.discard(tmp_path)

        url = share.build_url(stored, site_url(request))
        if formatted is not None:
            escaped = html.escape(url)
            return HTMLResponse(f'<pre>Access your file here: <a href="{escaped}">{escaped}</a></pre>')
        return PlainTextResponse(f"{url}\n")

    return app
