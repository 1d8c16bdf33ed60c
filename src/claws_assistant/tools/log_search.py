from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

import boto3
from loguru import logger


@dataclass(frozen=True)
class LogLine:
    timestamp: datetime
    message: str


@runtime_checkable
class LogSearch(Protocol):
    async def filter_events(
        self,
        log_group: str,
        *,
        region: str,
        profile: str | None,
        start_time: datetime,
        filter_pattern: str | None,
        limit: int,
    ) -> list[LogLine]:
        """Return matching log events in timestamp order. Raises on errors."""
        ...


class CloudWatchLogSearch:
    def __init__(self) -> None:
        self._clients: dict[tuple[str | None, str], object] = {}

    def _client(self, profile: str | None, region: str):
        key = (profile or None, region)
        if key not in self._clients:
            session = boto3.Session(profile_name=profile or None, region_name=region)
            self._clients[key] = session.client("logs")
        return self._clients[key]

    async def filter_events(
        self,
        log_group: str,
        *,
        region: str,
        profile: str | None,
        start_time: datetime,
        filter_pattern: str | None,
        limit: int,
    ) -> list[LogLine]:
        kwargs = {
            "logGroupName": log_group,
            "startTime": int(start_time.timestamp() * 1000),
            "limit": limit,
        }
        if filter_pattern:
            kwargs["filterPattern"] = filter_pattern

        logger.debug(f"filter_log_events: group={log_group}, region={region}, limit={limit}")
        client = self._client(profile, region)
        response = await asyncio.to_thread(lambda: client.filter_log_events(**kwargs))

        return [
            LogLine(
                timestamp=datetime.fromtimestamp(int(e.get("timestamp", 0)) / 1000, tz=UTC),
                message=str(e.get("message", "")).rstrip("\n"),
            )
            for e in response.get("events", [])
        ]
