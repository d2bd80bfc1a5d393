"""Cross-build telemetry: one JSON line per CLI event, opt-out via ``CROSSBUILD_TELEMETRY``.

Events carry the toolchain versions a command switched through, the
projects it ran on and the projects that failed, so the summary can answer
"which versions break most often" without re-running anything.
"""

from __future__ import annotations

import json
import os
import time
from collections import Counter
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Tuple

import jsonschema

from crossbuild.settings import RuntimeSettings

LOG_NAME = "telemetry.jsonl"

_DISABLE_VALUES = {"0", "false", "no", "off"}

_TELEMETRY_VALIDATOR: jsonschema.Draft202012Validator | None = None


def telemetry_enabled() -> bool:
    value = os.getenv("CROSSBUILD_TELEMETRY", "1").lower()
    return value not in _DISABLE_VALUES


@dataclass(frozen=True)
class TelemetryEvent:
    event: str
    status: str
    command: str | None = None
    versions: Tuple[str, ...] = ()
    projects: Tuple[str, ...] = ()
    failed: Tuple[str, ...] = ()
    error: str | None = None
    duration_ms: float | None = None
    payload: Mapping[str, Any] = field(default_factory=dict)

    @property
    def level(self) -> str:
        if self.status == "error":
            return "error"
        return "warn" if self.failed else "info"

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "ts": time.time(),
            "event": self.event,
            "level": self.level,
            "status": self.status,
            "payload": dict(self.payload),
        }
        if self.command is not None:
            record["command"] = self.command
        for key in ("versions", "projects", "failed"):
            values = getattr(self, key)
            if values:
                record[key] = list(dict.fromkeys(values))
        if self.error:
            record["error"] = self.error
        if self.duration_ms is not None:
            record["durationMs"] = round(self.duration_ms, 3)
        return record


class TelemetryLog:
    """Append-only event log under ``settings.log_dir``."""

    def __init__(self, settings: RuntimeSettings) -> None:
        self._settings = settings

    @property
    def path(self) -> Path:
        return self._settings.log_dir / LOG_NAME

    def record(self, event: TelemetryEvent) -> None:
        if not telemetry_enabled():
            return
        record = event.to_record()
        _telemetry_validator().validate(record)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")

    def events(self) -> Iterator[Dict[str, Any]]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError:
                    continue

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def summary(self) -> Dict[str, Any]:
        return summarize(self.events())


def summarize(events: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Count events by name and status, and switches and failures by version and project."""

    total = 0
    by_event: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    by_version: Counter[str] = Counter()
    failures: Counter[str] = Counter()
    for evt in events:
        total += 1
        by_event[evt.get("event", "unknown")] += 1
        by_status[evt.get("status", "unknown")] += 1
        if evt.get("status") == "start":
            continue
        by_version.update(evt.get("versions", []))
        failures.update(evt.get("failed", []))
    return {
        "total": total,
        "by_event": dict(by_event),
        "by_status": dict(by_status),
        "by_version": dict(by_version),
        "failed_projects": dict(failures.most_common()),
    }


def _telemetry_validator() -> jsonschema.Draft202012Validator:
    global _TELEMETRY_VALIDATOR
    if _TELEMETRY_VALIDATOR is None:
        schema_resource = resources.files("crossbuild.resources") / "telemetry.schema.json"
        schema = json.loads(schema_resource.read_text(encoding="utf-8"))
        _TELEMETRY_VALIDATOR = jsonschema.Draft202012Validator(schema)
    return _TELEMETRY_VALIDATOR


__all__ = ["TelemetryEvent", "TelemetryLog", "summarize", "telemetry_enabled"]
