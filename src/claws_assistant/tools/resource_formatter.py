from __future__ import annotations

import json

from claws_assistant.collaborators import Resource

MAX_RAW_LINES = 400


def format_resource_summary(r: Resource) -> str:
    line = f"- ID: {r.id}"
    if r.name and r.name != r.id:
        line += f", Name: {r.name}"
    return line


def format_resource_detail(r: Resource, *, max_raw_lines: int = MAX_RAW_LINES) -> str:
    lines = [f"ID: {r.id}"]
    if r.name:
        lines.append(f"Name: {r.name}")
    if r.arn:
        lines.append(f"ARN: {r.arn}")

    tags = dict(r.tags or {})
    if tags:
        lines.append("")
        lines.append("Tags:")
        for key in sorted(tags):
            lines.append(f"  {key}: {tags[key]}")

    if r.raw is not None:
        try:
            raw_lines = json.dumps(r.raw, indent=2, default=str, sort_keys=True).splitlines()
        except (TypeError, ValueError):
            raw_lines = [repr(r.raw)]
        lines.append("")
        lines.append("Raw Data:")
        lines.extend(raw_lines[:max_raw_lines])
        if len(raw_lines) > max_raw_lines:
            lines.append(f"... [raw data truncated: showing {max_raw_lines} of {len(raw_lines)} lines]")

    return "\n".join(lines)
