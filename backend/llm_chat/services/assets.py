from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.responses import FileResponse, PlainTextResponse, Response

INDEX_FILE = "index.html"


class StaticAssetService:
    """Serves the browser client out of a single directory."""

    def __init__(self, public_dir: Path) -> None:
        self.public_dir = Path(public_dir).resolve()

    def resolve(self, url_path: str) -> Path | None:
        relative = url_path.lstrip("/") or INDEX_FILE
        candidate = (self.public_dir / relative).resolve()
        if not candidate.is_relative_to(self.public_dir):
            return None
        if candidate.is_dir():
            candidate = candidate / INDEX_FILE
        return candidate if candidate.is_file() else None

    async def fetch(self, request: Request) -> Response:
        path = self.resolve(request.url.path)
        if path is None:
            return PlainTextResponse("Not found", status_code=404)
        return FileResponse(path)
