"""
File-based session storage.

Acts as the engine's persistence sink and keeps the history of finished
sessions.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from ..core.config import ACTIVE_DIR_NAME, HISTORY_FILE_NAME, SESSIONS_DIR_NAME
from ..core.engine.config_loader import get_data_dir
from ..core.models import WorkoutSession
from .serializers import ValidationError, dict_to_session, json_line_to_session

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Manages live and finished sessions on disk.

    Layout under ``root``:
    - ``active/<session_id>.json``: latest snapshot of a session in progress,
      rewritten on every update
    - ``history.jsonl``: one finished session per line, in the order they ended

    Ending a session appends it to the history and removes its snapshot.
    """

    def __init__(self, root: str | Path):
        """
        Initialize the session store.

        Args:
            root: Directory holding the history file and active snapshots
        """
        self.root = Path(root)
        self.history_path = self.root / HISTORY_FILE_NAME
        self.active_dir = self.root / ACTIVE_DIR_NAME

    def exists(self) -> bool:
        """Check if the history file exists."""
        return self.history_path.exists()

    def init(self) -> None:
        """
        Create the directory layout and an empty history file if missing.
        """
        self.active_dir.mkdir(parents=True, exist_ok=True)
        if not self.history_path.exists():
            self.history_path.touch()

    # ── SessionSink ─────────────────────────────────────────────────────────

    def update_session(self, session_id: str, payload: dict[str, Any]) -> None:
        """
        Replace the active snapshot for ``session_id``.

        The file is swapped in atomically so a crash never leaves a
        half-written snapshot behind.
        """
        self.init()
        self._write_json_atomic(self._active_path(session_id), payload)
        logger.debug("Saved snapshot of %s", session_id)

    def end_session(
        self,
        session_id: str,
        payload: dict[str, Any],
        completed_at: str,
        status: str,
    ) -> None:
        """
        Append a finished session to the history and drop its snapshot.

        Args:
            session_id: Session identifier
            payload: Serialized session
            completed_at: ISO timestamp of the end of the session
            status: Final status ("completed" or "partial")
        """
        self.init()
        record = dict(payload)
        record["session_id"] = session_id
        record["ended_at"] = completed_at
        record["status"] = status
        with open(self.history_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, separators=(",", ":")) + "\n")

        snapshot = self._active_path(session_id)
        if snapshot.exists():
            snapshot.unlink()
        logger.debug("Recorded %s as %s", session_id, status)

    # ── Reading ─────────────────────────────────────────────────────────────

    def load_history(self) -> list[WorkoutSession]:
        """
        Load all finished sessions.

        Returns:
            Sessions in the order they ended (empty if no history yet)

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.history_path.exists():
            return []

        sessions: list[WorkoutSession] = []
        with open(self.history_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    sessions.append(json_line_to_session(line))
                except ValidationError as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.history_path}: {e}"
                    ) from e
        return sessions

    def get_session(self, session_id: str) -> WorkoutSession | None:
        """
        Find a finished session by id (or by a unique id prefix).

        Raises:
            ValidationError: If the prefix is ambiguous
        """
        matches = [s for s in self.load_history() if s.session_id.startswith(session_id)]
        exact = [s for s in matches if s.session_id == session_id]
        if exact:
            return exact[-1]
        if len(matches) > 1:
            raise ValidationError(
                f"Session id prefix '{session_id}' matches {len(matches)} sessions"
            )
        return matches[0] if matches else None

    def list_active(self) -> list[str]:
        """Return ids of sessions with a snapshot but no history entry."""
        if not self.active_dir.is_dir():
            return []
        return sorted(p.stem for p in self.active_dir.glob("*.json"))

    def load_active(self, session_id: str) -> WorkoutSession:
        """
        Load the latest snapshot of a session in progress.

        Raises:
            FileNotFoundError: If there is no snapshot for session_id
            ValidationError: If the snapshot is invalid
        """
        path = self._active_path(session_id)
        if not path.exists():
            raise FileNotFoundError(f"No active session snapshot: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid snapshot {path}: {e}") from e
        return dict_to_session(data)

    # ── Internals ───────────────────────────────────────────────────────────

    def _active_path(self, session_id: str) -> Path:
        if not session_id or "/" in session_id or session_id.startswith("."):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.active_dir / f"{session_id}.json"

    @staticmethod
    def _write_json_atomic(path: Path, data: dict[str, Any]) -> None:
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


def get_default_store_dir() -> Path:
    """Return the default store directory, ~/.catalyft/sessions."""
    return get_data_dir() / SESSIONS_DIR_NAME
