from __future__ import annotations

from pathlib import Path

from loguru import logger


def should_prune(session_count: int, max_sessions: int) -> bool:
    return max_sessions > 0 and session_count > max_sessions


def count_session_files(sessions_dir: Path) -> int:
    try:
        return sum(1 for p in sessions_dir.iterdir() if p.is_file() and p.suffix == ".json")
    except FileNotFoundError:
        return 0


def prune_oldest(sessions_dir: Path, max_sessions: int) -> list[str]:
    """Delete the least recently modified session files beyond max_sessions.

    Returns the ids of the deleted sessions.
    """
    files: list[tuple[int, Path]] = []
    try:
        entries = list(sessions_dir.iterdir())
    except FileNotFoundError:
        return []

    for path in entries:
        if not path.is_file() or path.suffix != ".json":
            continue
        try:
            files.append((path.stat().st_mtime_ns, path))
        except OSError:
            continue

    if not should_prune(len(files), max_sessions):
        return []

    files.sort(key=lambda item: (item[0], item[1].name))
    deleted: list[str] = []
    for _, path in files[: len(files) - max_sessions]:
        try:
            path.unlink()
            deleted.append(path.stem)
        except OSError as ex:
            logger.debug(f"Failed to prune session file {path}: {ex}")

    if deleted:
        logger.info(f"Pruned {len(deleted)} old chat session(s)")
    return deleted
