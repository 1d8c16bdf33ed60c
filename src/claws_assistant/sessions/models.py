from __future__ import annotations

import secrets
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from claws_assistant.messages import Message


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_session_id(now: datetime | None = None) -> str:
    """Second-precision timestamp plus a short random suffix; sorts chronologically."""
    now = now or datetime.now()
    return f"{now.strftime('%Y%m%d-%H%M%S')}-{secrets.token_hex(4)}"


class ContextMode(str, Enum):
    SINGLE = "single"
    LIST = "list"
    DIFF = "diff"


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v not in (None, "", 0, [], {})}


@dataclass(frozen=True)
class ResourceRef:
    id: str
    name: str = ""
    region: str = ""
    profile: str = ""
    cluster: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **_compact({k: getattr(self, k) for k in ("name", "region", "profile", "cluster")})}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResourceRef:
        return cls(**{f.name: str(data.get(f.name, "")) for f in fields(cls)})


@dataclass(frozen=True)
class Context:
    """What the user was looking at when the session began."""

    mode: ContextMode = ContextMode.SINGLE
    service: str = ""
    resource_type: str = ""
    user_regions: tuple[str, ...] = ()
    user_profiles: tuple[str, ...] = ()
    resource_id: str = ""
    resource_name: str = ""
    resource_region: str = ""
    resource_profile: str = ""
    cluster: str = ""
    log_group: str = ""
    resource_count: int = 0
    filter_text: str = ""
    toggles: dict[str, bool] = field(default_factory=dict)
    diff_left: ResourceRef | None = None
    diff_right: ResourceRef | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", ContextMode(self.mode))
        object.__setattr__(self, "user_regions", tuple(self.user_regions))
        object.__setattr__(self, "user_profiles", tuple(self.user_profiles))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "mode": self.mode.value,
            "service": self.service,
            "resource_type": self.resource_type,
            "user_regions": list(self.user_regions),
            "user_profiles": list(self.user_profiles),
            "resource_id": self.resource_id,
            "resource_name": self.resource_name,
            "resource_region": self.resource_region,
            "resource_profile": self.resource_profile,
            "cluster": self.cluster,
            "log_group": self.log_group,
            "resource_count": self.resource_count,
            "filter_text": self.filter_text,
            "toggles": dict(self.toggles),
            "diff_left": self.diff_left.to_dict() if self.diff_left else None,
            "diff_right": self.diff_right.to_dict() if self.diff_right else None,
        }
        return _compact(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Context:
        left = data.get("diff_left")
        right = data.get("diff_right")
        return cls(
            mode=ContextMode(data.get("mode") or ContextMode.SINGLE.value),
            service=data.get("service", ""),
            resource_type=data.get("resource_type", ""),
            user_regions=tuple(data.get("user_regions") or ()),
            user_profiles=tuple(data.get("user_profiles") or ()),
            resource_id=data.get("resource_id", ""),
            resource_name=data.get("resource_name", ""),
            resource_region=data.get("resource_region", ""),
            resource_profile=data.get("resource_profile", ""),
            cluster=data.get("cluster", ""),
            log_group=data.get("log_group", ""),
            resource_count=int(data.get("resource_count", 0)),
            filter_text=data.get("filter_text", ""),
            toggles={str(k): bool(v) for k, v in (data.get("toggles") or {}).items()},
            diff_left=ResourceRef.from_dict(left) if left else None,
            diff_right=ResourceRef.from_dict(right) if right else None,
        )


@dataclass
class Session:
    id: str
    started_at: datetime
    updated_at: datetime
    messages: list[Message] = field(default_factory=list)
    context: Context | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "started_at": self.started_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "messages": [m.to_dict() for m in self.messages],
        }
        if self.context is not None:
            data["context"] = self.context.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        context = data.get("context")
        return cls(
            id=str(data["id"]),
            started_at=datetime.fromisoformat(data["started_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            messages=[Message.from_dict(m) for m in data.get("messages") or []],
            context=Context.from_dict(context) if context is not None else None,
        )
