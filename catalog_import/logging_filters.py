# --- Log setup + sanitizer for REST error bodies ---------------------------------
import logging, re

_HTML_SIG_RE = re.compile(r'(?is)<!DOCTYPE html|<html[^>]*>')
_TITLE_RE    = re.compile(r'(?is)<title[^>]*>(.*?)</title>')
_TAG_RE      = re.compile(r'(?is)<[^>]+>')
_SCRIPT_RE   = re.compile(r'(?is)<(script|style)[^>]*>.*?</\1>')

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"
MAX_MESSAGE = 2000

def _strip_tags(s: str) -> str:
    s = _SCRIPT_RE.sub('', s)
    s = _TAG_RE.sub(' ', s)
    return re.sub(r'\s+', ' ', s).strip()

def _summarize_html(s: str, limit: int = 200) -> str:
    title = None
    m = _TITLE_RE.search(s)
    if m:
        title = _strip_tags(m.group(1))
    preview = title or _strip_tags(s)[:limit]
    return f"{preview} [HTML {len(s)} chars trimmed]"

def _summarize_long(s: str, limit: int = MAX_MESSAGE) -> str:
    return f"{s[:limit]} [{len(s) - limit} chars trimmed]"

class _LongBodyTrimFilter(logging.Filter):
    """Gateway error pages and huge PostgREST payloads get shortened before they hit the console."""
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except Exception:
            return True
        if not isinstance(msg, str):
            return True
        if len(msg) > 200 and _HTML_SIG_RE.search(msg):
            record.msg = _summarize_html(msg)
            record.args = ()
        elif len(msg) > MAX_MESSAGE:
            record.msg = _summarize_long(msg)
            record.args = ()
        return True

def configure_logging(level: int = logging.INFO) -> None:
    """Console logging for scripts and the admin API. Safe to call more than once."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    root = logging.getLogger()
    for handler in root.handlers:
        if not any(isinstance(f, _LongBodyTrimFilter) for f in handler.filters):
            handler.addFilter(_LongBodyTrimFilter())
# --------------------------------------------------------------------------------
