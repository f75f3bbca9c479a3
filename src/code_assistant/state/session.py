"""Session snapshots and JSON file persistence."""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from code_assistant.core.conversation import Message, Role
from code_assistant.errors import SessionFormatError

_log = logging.getLogger(__name__)

DEFAULT_SESSIONS_DIR = Path.home() / ".code-assistant" / "sessions"
DEFAULT_SESSION_CAP = 50
SESSION_FORMAT_VERSION = 1
_MAX_TITLE_LEN = 80


@dataclass(frozen=True)
class SessionSnapshot:
    """Value object holding a copy of the conversation. No back-reference to the agent."""

    id: str
    messages: tuple[Message, ...]
    system_prompt: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    version: int = SESSION_FORMAT_VERSION

    @property
    def title(self) -> str:
        """First user message, truncated to _MAX_TITLE_LEN chars."""
        for message in self.messages:
            if message.role is Role.USER and message.content:
                return message.content[:_MAX_TITLE_LEN]
        return "Untitled Session"

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "id": self.id,
            "timestamp": self.timestamp,
            "title": self.title,
            "system_prompt": self.system_prompt,
            "config": dict(self.config),
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionSnapshot":
        """Decode a snapshot, checking only its structural shape.

        Raises:
            SessionFormatError: Unknown version or missing/malformed fields.
        """
        if not isinstance(data, dict):
            raise SessionFormatError("Session data must be a JSON object")
        version = data.get("version")
        if version != SESSION_FORMAT_VERSION:
            raise SessionFormatError(f"Unsupported session format version: {version!r}")
        try:
            return cls(
                id=str(data["id"]),
                messages=tuple(Message.from_dict(m) for m in data["messages"]),
                system_prompt=data.get("system_prompt") or "",
                config=dict(data.get("config") or {}),
                timestamp=float(data.get("timestamp", time.time())),
                version=version,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SessionFormatError(f"Malformed session data: {e}") from None


class SessionManager:
    """JSON file store for session snapshots, one ``<id>.json`` per session.

    Writes go through a temp file and ``os.replace``. Only the newest
    ``session_cap`` sessions are kept.
    """

    def __init__(self, sessions_dir: Path | None = None, session_cap: int = DEFAULT_SESSION_CAP):
        self._dir = sessions_dir or DEFAULT_SESSIONS_DIR
        self._cap = session_cap
        self._dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_session_id() -> str:
        return str(uuid.uuid4())

    @property
    def sessions_dir(self) -> Path:
        return self._dir

    def _path_for(self, session_id: str) -> Path:
        unsafe = not session_id or session_id.startswith(".") or any(sep in session_id for sep in "/\\")
        if unsafe:
            raise SessionFormatError(f"Invalid session id: {session_id!r}")
        return self._dir / f"{session_id}.json"

    def save(self, snapshot: SessionSnapshot) -> Path:
        """Write the snapshot (stamped with ``updated_at``) and drop sessions beyond the cap."""
        record = snapshot.to_dict()
        record["updated_at"] = datetime.now(timezone.utc).isoformat()

        target = self._path_for(snapshot.id)
        self._dir.mkdir(parents=True, exist_ok=True)
        staging = target.with_suffix(".tmp")
        staging.write_text(json.dumps(record, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(staging, target)
        _log.debug("Saved session %s (%d messages)", snapshot.id, len(snapshot.messages))

        for stale in self.list()[self._cap:]:
            self.delete(stale["id"])
        return target

    def load(self, session_id: str) -> SessionSnapshot | None:
        """Read a snapshot. Missing or unreadable files give None.

        Raises:
            SessionFormatError: Unsafe id, or the file is JSON but not a supported session.
        """
        source = self._path_for(session_id)
        if not source.exists():
            return None
        try:
            record = json.loads(source.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            _log.warning("Could not read session %s: %s", session_id, e)
            return None
        return SessionSnapshot.from_dict(record)

    def load_latest(self) -> SessionSnapshot | None:
        newest = self.list()[:1]
        return self.load(newest[0]["id"]) if newest else None

    @staticmethod
    def _describe(source: Path) -> dict[str, Any]:
        record = json.loads(source.read_text(encoding="utf-8"))
        return {
            "id": record.get("id", source.stem),
            "title": record.get("title", "Untitled"),
            "updated_at": record.get("updated_at", ""),
            "model": (record.get("config") or {}).get("model", "unknown"),
            "message_count": len(record.get("messages", [])),
        }

    def list(self) -> list[dict[str, Any]]:
        """Summaries (id, title, updated_at, model, message_count), newest first."""
        summaries = []
        for source in self._dir.glob("*.json"):
            try:
                summaries.append(self._describe(source))
            except (json.JSONDecodeError, OSError, AttributeError) as e:
                _log.debug("Skipping session %s: %s", source, e)
        return sorted(summaries, key=lambda s: s["updated_at"], reverse=True)

    def delete(self, session_id: str) -> bool:
        target = self._path_for(session_id)
        if not target.exists():
            return False
        target.unlink()
        return True
