"""Screenshot store: the on-disk home of images too large to return inline.

Each image is written as `screenshot-<UTC timestamp>.<ext>` next to a
`<name>.meta.json` sidecar. Retrieval URLs come from MCP_ARTIFACTS_BASE_URL when
set (`<base>/screenshots/<name>`), otherwise a file:// URI.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_NAME_RE = re.compile(r"^screenshot-[0-9TZ]+(?:-[0-9]+)?\.(?:png|jpe?g)$")


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _timestamp(now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return moment.strftime("%Y%m%dT%H%M%S") + f"{moment.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class ScreenshotRef:
    name: str
    path: str
    url: str
    mime_type: str
    bytes: int
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "url": self.url,
            "mimeType": self.mime_type,
            "bytes": self.bytes,
            "createdAt": self.created_at,
        }


class ScreenshotStore:
    def __init__(self, base_dir: Path | str, base_url: str | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.base_url = base_url.rstrip("/") if base_url else None

    def _validate_name(self, name: str) -> str:
        if not isinstance(name, str) or not _NAME_RE.match(name):
            raise ValueError("invalid screenshot name")
        return name

    def _meta_path(self, name: str) -> Path:
        return self.base_dir / f"{name}.meta.json"

    def _unique_name(self, ext: str, now: datetime | None = None) -> str:
        stem = f"screenshot-{_timestamp(now)}"
        name = f"{stem}.{ext}"
        n = 1
        while (self.base_dir / name).exists():
            name = f"{stem}-{n}.{ext}"
            n += 1
        return name

    def url_for(self, name: str) -> str:
        self._validate_name(name)
        if self.base_url:
            return f"{self.base_url}/screenshots/{name}"
        return (self.base_dir / name).resolve().as_uri()

    def save(
        self,
        data: bytes,
        *,
        ext: str,
        mime_type: str,
        metadata: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> ScreenshotRef:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        ext = ext.lstrip(".").lower()
        name = self._unique_name(ext, now)
        self._validate_name(name)

        path = self.base_dir / name
        path.write_bytes(data)
        size = path.stat().st_size
        created_at = _now_iso()
        url = self.url_for(name)

        meta = {
            "name": name,
            "mimeType": mime_type,
            "bytes": size,
            "createdAt": created_at,
            "url": url,
            **({"meta": metadata} if isinstance(metadata, dict) and metadata else {}),
        }
        self._meta_path(name).write_text(json.dumps(meta, ensure_ascii=False, indent=2), encoding="utf-8")

        return ScreenshotRef(
            name=name,
            path=str(path),
            url=url,
            mime_type=mime_type,
            bytes=int(size),
            created_at=created_at,
        )
