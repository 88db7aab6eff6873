#===========================================================================
# catalog_import/translate.py
# Best-effort machine translation (Vietnamese -> English) for names and labels.
# Failures never stop an import: the original text is returned instead.
#===========================================================================
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from catalog_import.config import settings

logger = logging.getLogger(__name__)


def _join_segments(payload: Any) -> str:
    """gtx answers [[["Hello","Xin chào",...], ...], ...]; glue the translated parts."""
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        return ""
    parts = []
    for seg in payload[0]:
        if isinstance(seg, list) and seg and isinstance(seg[0], str):
            parts.append(seg[0])
    return "".join(parts)


class Translator:
    def __init__(
        self,
        *,
        enabled: bool = True,
        target: str = "en",
        source: str = "auto",
        url: str | None = None,
        timeout: float = 20.0,
        concurrency: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.enabled = enabled
        self.target = target
        self.source = source
        self.url = url or settings.TRANSLATE_URL
        self.timeout = timeout
        self.concurrency = max(1, int(concurrency or 1))
        self._transport = transport
        self._cache: Dict[str, str] = {}
        self.failures = 0

    @classmethod
    def from_settings(cls) -> "Translator":
        return cls(
            enabled=settings.TRANSLATE_ENABLED,
            target=settings.TRANSLATE_TARGET,
            source=settings.TRANSLATE_SOURCE,
            url=settings.TRANSLATE_URL,
            timeout=settings.HTTP_TIMEOUT,
            concurrency=settings.TRANSLATE_CONCURRENCY,
        )

    async def _request(self, text: str) -> str:
        params = {"client": "gtx", "sl": self.source, "tl": self.target, "dt": "t", "q": text}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(self.url, params=params)
        resp.raise_for_status()
        return _join_segments(resp.json())

    async def translate(self, text: Any) -> str:
        if text is None or text == "":
            return ""
        if not isinstance(text, str):
            return str(text)
        if not self.enabled or not text.strip():
            return text
        if text in self._cache:
            return self._cache[text]
        try:
            out = await self._request(text)
        except Exception as e:
            self.failures += 1
            logger.warning("[TRANSLATE] failed for %r: %s", text[:40], e)
            return text
        out = out.strip() or text
        self._cache[text] = out
        return out

    async def translate_many(self, texts: Iterable[Any]) -> List[str]:
        """Translate a small group concurrently (bounded) and wait for all of them."""
        sem = asyncio.Semaphore(self.concurrency)

        async def _one(t):
            async with sem:
                return await self.translate(t)

        items = list(texts or [])
        if not items:
            return []
        return list(await asyncio.gather(*(_one(t) for t in items)))
