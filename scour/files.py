"""
SCOUR File Store

Whole-file reads and writes for the replacement engine, rooted at the
repository so backend-relative paths resolve correctly. Newline translation
is disabled in both directions: what was not replaced is written back
byte-for-byte.
"""

from __future__ import annotations

import asyncio
from pathlib import Path


class FileStoreError(Exception):
    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class FileReadError(FileStoreError):
    pass


class FileWriteError(FileStoreError):
    pass


class FileStore:
    def __init__(self, root: Path, encoding: str = "utf-8"):
        self.root = root
        self.encoding = encoding

    def resolve(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.root / p

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self._read, path)

    async def write(self, path: str, content: str) -> None:
        await asyncio.to_thread(self._write, path, content)

    def _read(self, path: str) -> str:
        try:
            with open(self.resolve(path), "r", encoding=self.encoding,
                      errors="surrogateescape", newline="") as f:
                return f.read()
        except OSError as e:
            raise FileReadError(path, e.strerror or str(e)) from e

    def _write(self, path: str, content: str) -> None:
        try:
            with open(self.resolve(path), "w", encoding=self.encoding,
                      errors="surrogateescape", newline="") as f:
                f.write(content)
        except OSError as e:
            raise FileWriteError(path, e.strerror or str(e)) from e
