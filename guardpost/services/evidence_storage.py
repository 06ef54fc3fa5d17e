"""
Evidence objects in a filesystem bucket.

Objects live under EVIDENCE_STORAGE_DIR/<bucket>/<key>. Reads and writes run
in a worker thread so uploads for one request can proceed concurrently.
Downloads go through short-lived signed tokens instead of exposing paths.
"""
import asyncio
import logging
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from guardpost.core.config import settings
from guardpost.core.security import create_evidence_token, decode_token

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = "/api/v1/evidence/download"


class StorageError(Exception):
    pass


@dataclass
class UploadResult:
    filename: str
    key: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def object_key(violation_id: uuid.UUID, filename: str, now_ms: int | None = None) -> str:
    """violation_<id>/<epoch ms>_<base name>"""
    base = PurePosixPath((filename or "").replace("\\", "/")).name or "upload"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"violation_{violation_id}/{stamp}_{base}"


class EvidenceStorage:

    def __init__(self, root: str | Path, bucket: str):
        self.bucket = bucket
        self.base = (Path(root) / bucket).resolve()

    def _path(self, key: str) -> Path:
        path = (self.base / key).resolve()
        if not path.is_relative_to(self.base):
            raise StorageError(f"Invalid object key: {key}")
        return path

    # ── Blocking primitives ──────────────────────────────────────────────────

    def _write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # no overwrite
        with open(path, "xb") as fh:
            fh.write(data)

    def _read(self, key: str) -> bytes:
        return self._path(key).read_bytes()

    def _remove(self, key: str) -> None:
        path = self._path(key)
        path.unlink()
        parent = path.parent
        if parent != self.base and not any(parent.iterdir()):
            os.rmdir(parent)

    # ── Async API ────────────────────────────────────────────────────────────

    async def exists(self, key: str) -> bool:
        try:
            path = self._path(key)
        except StorageError:
            return False
        return await asyncio.to_thread(path.is_file)

    async def upload(self, key: str, data: bytes) -> None:
        await asyncio.to_thread(self._write, key, data)

    async def download(self, key: str) -> bytes:
        return await asyncio.to_thread(self._read, key)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    async def upload_many(
        self, violation_id: uuid.UUID, files: list[tuple[str, bytes]]
    ) -> list[UploadResult]:
        """Store all files concurrently. Failures are reported per file, successes are kept."""

        async def one(filename: str, data: bytes, index: int) -> UploadResult:
            # distinct stamp per file within one batch
            key = object_key(violation_id, filename, int(time.time() * 1000) + index)
            await self.upload(key, data)
            return UploadResult(filename=filename, key=key)

        outcomes = await asyncio.gather(
            *(one(name, data, i) for i, (name, data) in enumerate(files)),
            return_exceptions=True,
        )
        results = []
        for (name, _), outcome in zip(files, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Evidence upload failed for %s: %s", name, outcome)
                results.append(UploadResult(filename=name, error=str(outcome)))
            else:
                results.append(outcome)
        return results

    # ── Signed URLs ──────────────────────────────────────────────────────────

    def signed_url(self, key: str, expires_in: int | None = None) -> str:
        token = create_evidence_token(self.bucket, key, expires_in)
        return f"{DOWNLOAD_PATH}?token={token}"

    def resolve_token(self, token: str) -> str:
        """Return the object key a download token grants, or raise ValueError."""
        payload = decode_token(token)
        if payload.get("type") != "evidence" or payload.get("bucket") != self.bucket:
            raise ValueError("Not an evidence token")
        return payload["sub"]


_storage: EvidenceStorage | None = None


def get_evidence_storage() -> EvidenceStorage:
    global _storage
    if _storage is None:
        _storage = EvidenceStorage(settings.EVIDENCE_STORAGE_DIR, settings.EVIDENCE_BUCKET)
    return _storage
