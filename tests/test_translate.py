import asyncio

import httpx

from catalog_import.translate import Translator


def _translator(handler, **kw):
    calls = []

    def wrapped(request):
        calls.append(request)
        return handler(request)

    t = Translator(url="https://translate.example/single", transport=httpx.MockTransport(wrapped), **kw)
    return t, calls


def test_translates_and_caches():
    t, calls = _translator(lambda r: httpx.Response(200, json=[[["T-shirt", "Áo thun", None, None]], None, "vi"]))

    async def run():
        return await t.translate("Áo thun"), await t.translate("Áo thun")

    first, second = asyncio.run(run())
    assert first == second == "T-shirt"
    assert len(calls) == 1
    assert calls[0].url.params["q"] == "Áo thun"
    assert calls[0].url.params["tl"] == "en"


def test_failure_returns_original_text():
    t, _ = _translator(lambda r: httpx.Response(503, text="busy"))
    assert asyncio.run(t.translate("Váy hoa")) == "Váy hoa"
    assert t.failures == 1


def test_disabled_translator_makes_no_requests():
    t, calls = _translator(lambda r: httpx.Response(200, json=[]), enabled=False)
    assert asyncio.run(t.translate_many(["Áo", "", None])) == ["Áo", "", ""]
    assert calls == []
