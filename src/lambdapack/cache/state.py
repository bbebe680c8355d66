"""Per-resource state recorded between lifecycle calls."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

STATE_VERSION = 1


@dataclass(frozen=True, slots=True)
class ResourceState:
    """Current ``(digest, path)`` of one logical resource plus computed outputs."""

    digest: str
    path: Path
    size: int
    base64_sha256: str
    md5: str

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["path"] = str(self.path)
        payload["version"] = STATE_VERSION
        return payload


def write_state(path: Path, state: ResourceState) -> None:
    """Persist resource state using deterministic formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(state.to_payload(), ensure_ascii=False, indent=2, sort_keys=True),
        "utf-8",
    )


def read_state(path: Path) -> ResourceState:
    """Load and validate resource state."""

    payload = json.loads(path.read_text("utf-8"))
    if not isinstance(payload, dict):
        raise TypeError(f"Expected JSON object in {path}")

    required = ("digest", "path", "size", "base64_sha256", "md5")
    missing = [key for key in sorted(required) if key not in payload]
    if missing:
        raise ValueError(f"State file missing required fields: {', '.join(missing)}")

    version = payload.get("version", STATE_VERSION)
    if version != STATE_VERSION:
        raise ValueError(f"Unsupported state version in {path}: {version!r}")

    for key in ("digest", "path", "base64_sha256", "md5"):
        if not isinstance(payload[key], str) or not payload[key]:
            raise ValueError(f"state.{key} must be a non-empty string")
    size = payload["size"]
    if not isinstance(size, int) or isinstance(size, bool) or size < 0:
        raise ValueError("state.size must be a non-negative integer")

    return ResourceState(
        digest=payload["digest"],
        path=Path(payload["path"]),
        size=size,
        base64_sha256=payload["base64_sha256"],
        md5=payload["md5"],
    )


def clear_state(path: Path) -> None:
    path.unlink(missing_ok=True)
