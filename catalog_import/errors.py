# catalog_import/errors.py
from __future__ import annotations


class ImportSetupError(Exception):
    """Fatal problem detected before any write happens. Aborts the run."""


class MissingCredentials(ImportSetupError):
    pass


class MissingSourceFile(ImportSetupError):
    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = path


class StoreError(Exception):
    """Non-2xx answer from the REST store."""

    def __init__(self, method: str, path: str, status_code: int, body: str = ""):
        super().__init__(f"{method} {path} -> {status_code}: {body[:300]}")
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
