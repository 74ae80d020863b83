"""
Screenshot size management.

One capture at the requested fidelity. Over budget, it is re-captured as JPEG down
a quality ladder. Still over budget, it is either persisted to the screenshot
store or answered with a notice; oversized bytes never go back inline.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..server.hints import screenshot_hint
from ..server.types import ToolResult
from .base import engine_errors

if TYPE_CHECKING:
    from ..config import BrowserConfig
    from ..provider import PageHandle
    from ..server.artifacts import ScreenshotStore
    from ..server.definitions import ScreenshotArgs
    from ..session_manager import SessionManager

logger = logging.getLogger("mcp.playwright.screenshot")

QUALITY_LADDER: tuple[int, ...] = (80, 60, 40, 20)

MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg"}


@dataclass
class ScreenshotArtifact:
    data: bytes
    format: str
    budget: int
    quality: int | None = None
    compressed: bool = False
    original_size: int | None = None
    best_compressed_size: int | None = None
    path: str | None = None
    url: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def mime_type(self) -> str:
        return MIME_TYPES.get(self.format, "image/png")

    @property
    def within_budget(self) -> bool:
        return self.size <= self.budget

    @property
    def inline_b64(self) -> str | None:
        if self.path is not None or not self.within_budget:
            return None
        return base64.b64encode(self.data).decode("ascii")

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "format": self.format,
            "mimeType": self.mime_type,
            "bytes": self.size,
            "budget": self.budget,
            "compressed": self.compressed,
        }
        if self.quality is not None:
            out["quality"] = self.quality
        if self.original_size is not None:
            out["originalBytes"] = self.original_size
        if self.best_compressed_size is not None:
            out["bestCompressedBytes"] = self.best_compressed_size
        if self.path is not None:
            out["path"] = self.path
            out["url"] = self.url
        return out


class ScreenshotManager:
    def __init__(self, config: BrowserConfig, store: ScreenshotStore, *, ladder: tuple[int, ...] = QUALITY_LADDER) -> None:
        self.config = config
        self.store = store
        self.ladder = ladder

    async def _capture(self, page: PageHandle, *, full_page: bool, fmt: str, quality: int | None) -> bytes:
        options: dict[str, Any] = {"full_page": full_page, "type": fmt, "timeout": self.config.default_timeout_ms}
        if fmt == "jpeg" and quality is not None:
            options["quality"] = quality
        return await page.screenshot(**options)

    async def capture(self, sessions: SessionManager, page: PageHandle, args: ScreenshotArgs) -> ScreenshotArtifact:
        """Capture and shrink until within budget (or until the ladder runs out)."""
        fmt = args.image_format
        budget = args.max_size or self.config.screenshot_max_bytes
        quality = args.quality if fmt == "jpeg" else None

        async with engine_errors(sessions, page, tool="screenshot", action="capture"):
            original = await self._capture(page, full_page=args.full_page, fmt=fmt, quality=quality)
        artifact = ScreenshotArtifact(data=original, format=fmt, budget=budget, quality=quality)
        if artifact.within_budget or not args.compress:
            return artifact

        smallest = artifact
        for step in self.ladder:
            if fmt == "jpeg" and quality is not None and step >= quality:
                continue
            async with engine_errors(sessions, page, tool="screenshot", action="compress"):
                data = await self._capture(page, full_page=args.full_page, fmt="jpeg", quality=step)
            candidate = ScreenshotArtifact(
                data=data,
                format="jpeg",
                budget=budget,
                quality=step,
                compressed=True,
                original_size=len(original),
            )
            logger.debug("screenshot_compress quality=%s bytes=%s budget=%s", step, candidate.size, budget)
            if candidate.within_budget:
                return candidate
            if candidate.size < smallest.size:
                smallest = candidate
        # Keep the original capture for persistence; report the best size reached.
        if smallest is not artifact:
            artifact.best_compressed_size = smallest.size
        return artifact

    async def screenshot(self, sessions: SessionManager, page: PageHandle, args: ScreenshotArgs) -> ToolResult:
        artifact = await self.capture(sessions, page, args)

        if artifact.within_budget:
            b64 = artifact.inline_b64 or ""
            if artifact.compressed:
                note = (
                    f"Compressed from {artifact.original_size} to {artifact.size} bytes "
                    f"(jpeg quality {artifact.quality}) to fit {artifact.budget} bytes."
                )
                return ToolResult.with_image(note, b64, artifact.mime_type, data=artifact.to_dict())
            result = ToolResult.image(b64, artifact.mime_type)
            result.data = artifact.to_dict()
            return result

        best = artifact.best_compressed_size
        if args.save_to_file:
            ref = self.store.save(
                artifact.data,
                ext="jpg" if artifact.format == "jpeg" else "png",
                mime_type=artifact.mime_type,
                metadata={"fullPage": args.full_page, "budget": artifact.budget, "format": artifact.format},
            )
            artifact.path = ref.path
            artifact.url = ref.url
            logger.info("screenshot_saved path=%s bytes=%s", ref.path, ref.bytes)
            payload = {
                "saved": True,
                "message": f"Screenshot ({artifact.size} bytes) exceeds {artifact.budget} bytes; saved to disk.",
                **artifact.to_dict(),
                "name": ref.name,
            }
            return ToolResult.json(payload)

        suggestions = [
            screenshot_hint(saveToFile=True),
            screenshot_hint(type="jpeg", quality=30),
            screenshot_hint(fullPage=False),
            screenshot_hint(maxSize=artifact.size),
        ]
        payload = {
            "ok": False,
            "code": "oversized_artifact",
            "message": (
                f"Screenshot is {artifact.size} bytes"
                + (f" ({best} bytes after compression)" if best else "")
                + f", over the {artifact.budget} byte budget. The image was not returned."
            ),
            "bytes": artifact.size,
            "budget": artifact.budget,
            **({"bestCompressedBytes": best} if best else {}),
            "suggestions": suggestions,
        }
        logger.info("screenshot_oversized bytes=%s budget=%s", artifact.size, artifact.budget)
        return ToolResult.json(payload)
