"""Target registry — the fixed set of monitored status endpoints.

Built-in defaults cover the public Statuspage endpoints of the tools we
watch. An optional YAML file (``targets_file`` setting) replaces them:

    targets:
      - id: cursor
        name: Cursor
        url: https://status.cursor.com/api/v2/status.json

The set is loaded once at startup and never reloaded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .models import Target

logger = logging.getLogger(__name__)


DEFAULT_TARGETS: tuple[Target, ...] = (
    Target("cursor", "Cursor", "https://status.cursor.com/api/v2/status.json"),
    Target("coderabbit", "CodeRabbit", "https://status.coderabbit.ai/api/v2/status.json"),
    Target("chatgpt", "ChatGPT", "https://status.openai.com/api/v2/status.json"),
    Target("claude", "Claude", "https://status.anthropic.com/api/v2/status.json"),
    Target("copilot", "GitHub Copilot", "https://www.githubstatus.com/api/v2/status.json"),
)


class RegistryError(Exception):
    """Raised when the target set cannot be loaded. Fatal at startup."""


class TargetRegistry:
    """Loads and caches the monitored targets."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path else None
        self._targets: tuple[Target, ...] = ()
        self._loaded = False

    def load(self) -> tuple[Target, ...]:
        """Return the target set, loading it on first call."""
        if self._loaded:
            return self._targets

        if self._path is None:
            self._targets = DEFAULT_TARGETS
        else:
            self._targets = _load_file(self._path)

        self._loaded = True
        logger.info(
            "Loaded %d targets from %s",
            len(self._targets), self._path or "built-in defaults",
        )
        return self._targets

    @property
    def targets(self) -> tuple[Target, ...]:
        return self.load()

    def get(self, target_id: str) -> Target | None:
        return next((t for t in self.targets if t.id == target_id), None)

    def ids(self) -> list[str]:
        return [t.id for t in self.targets]


# ── Parsers ──────────────────────────────────────────────────────────────────


def _load_file(path: Path) -> tuple[Target, ...]:
    if not path.exists():
        raise RegistryError(f"Targets file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise RegistryError(f"Failed to parse {path}: {e}") from e

    entries = raw.get("targets") if isinstance(raw, dict) else None
    if not entries:
        raise RegistryError(f"No targets defined in {path}")

    targets: list[Target] = []
    seen: set[str] = set()
    for entry in entries:
        target = _parse_target(entry)
        if target.id in seen:
            raise RegistryError(f"Duplicate target id: {target.id}")
        seen.add(target.id)
        targets.append(target)
    return tuple(targets)


def _parse_target(raw: Any) -> Target:
    if not isinstance(raw, dict):
        raise RegistryError(f"Malformed target entry: {raw!r}")

    target_id = str(raw.get("id") or "").strip()
    url = str(raw.get("url") or "").strip()
    if not target_id or not url:
        raise RegistryError(f"Target entry needs 'id' and 'url': {raw!r}")

    return Target(
        id=target_id,
        name=str(raw.get("name") or target_id),
        url=url,
    )
