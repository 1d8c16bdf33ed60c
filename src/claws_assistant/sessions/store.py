from __future__ import annotations

import json
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_delay, wait_fixed

from claws_assistant.errors import SessionNotFoundError, SessionStoreError

SESSIONS_DIR = Path("chat") / "sessions"
CURRENT_FILE = Path("chat") / "current.json"
CURRENT_LOCK_FILE = Path("chat") / "current.lock"

DIR_MODE = 0o700
FILE_MODE = 0o600
STALE_LOCK_SECONDS = 30.0


class SessionStore:
    """JSON files under <root>/chat: one per session plus a current-session pointer."""

    def __init__(self, root: str | Path, enabled: bool = True):
        self._root = Path(root)
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def sessions_dir(self) -> Path:
        return self._root / SESSIONS_DIR

    @property
    def current_path(self) -> Path:
        return self._root / CURRENT_FILE

    def session_path(self, session_id: str) -> Path:
        if not session_id or "/" in session_id or "\\" in session_id or session_id.startswith("."):
            raise SessionStoreError(f"Invalid session id: {session_id!r}")
        return self.sessions_dir / f"{session_id}.json"

    def read_session(self, session_id: str) -> dict[str, Any]:
        path = self.session_path(session_id)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as ex:
            raise SessionNotFoundError(session_id) from ex
        except (OSError, ValueError) as ex:
            raise SessionStoreError(f"Failed to read session {session_id}: {ex}") from ex
        if not isinstance(data, dict):
            raise SessionStoreError(f"Failed to read session {session_id}: expected a JSON object")
        return data

    def write_session(self, session_id: str, data: dict[str, Any]) -> None:
        self._ensure_dir(self.sessions_dir)
        _atomic_write(self.session_path(session_id), json.dumps(data, indent=2, ensure_ascii=False))

    def session_files(self) -> list[Path]:
        try:
            return [p for p in self.sessions_dir.iterdir() if p.is_file() and p.suffix == ".json"]
        except FileNotFoundError:
            return []

    def read_current_id(self) -> str | None:
        try:
            with open(self.current_path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as ex:
            raise SessionStoreError(f"Failed to read current session pointer: {ex}") from ex
        session_id = data.get("id") if isinstance(data, dict) else None
        return str(session_id) if session_id else None

    def write_current_id(self, session_id: str) -> None:
        self._ensure_dir(self.current_path.parent)
        with self._pointer_lock():
            _atomic_write(self.current_path, json.dumps({"id": session_id}))

    def _ensure_dir(self, path: Path) -> None:
        path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)

    @contextmanager
    def _pointer_lock(self) -> Iterator[None]:
        lock_path = self._root / CURRENT_LOCK_FILE
        fd = _acquire_lock(lock_path)
        try:
            yield
        finally:
            os.close(fd)
            try:
                lock_path.unlink()
            except FileNotFoundError:
                pass


def _atomic_write(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.chmod(tmp_name, FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def _break_stale_lock(lock_path: Path) -> None:
    try:
        age = time.time() - lock_path.stat().st_mtime
    except FileNotFoundError:
        return
    if age > STALE_LOCK_SECONDS:
        logger.warning(f"Removing stale session pointer lock {lock_path} ({age:.0f}s old)")
        try:
            lock_path.unlink()
        except FileNotFoundError:
            pass


@retry(
    retry=retry_if_exception_type(FileExistsError),
    wait=wait_fixed(0.05),
    stop=stop_after_delay(5),
    reraise=True,
)
def _acquire_lock(lock_path: Path) -> int:
    try:
        return os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, FILE_MODE)
    except FileExistsError:
        _break_stale_lock(lock_path)
        raise
