"""
Session Repository - keeps live tracking sessions and writes finished trails.

Sessions live in memory; a stopped session is exported as CSV into the
configured export folder when one is set.
"""

import io
import logging
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from trailsurvey.errors import SessionNotFound
from trailsurvey.models.trail import TrailPoint, TrailSummary
from trailsurvey.services.session import TrackingSession
from trailsurvey.services.trail_csv import read_trail_csv, write_trail_csv


logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def export_filename(name: str, stamp: str) -> str:
    """CSV file name for a stopped session; path separators and dots are replaced."""
    safe = _UNSAFE_FILENAME_CHARS.sub("_", name) or "trail"
    return f"{safe}_{stamp}.csv"


class SessionRepository:
    """
    Repository for tracking sessions.

    Args:
        export_folder: Folder for CSV exports of stopped sessions. If None,
            stopping a session does not write a file.
    """

    def __init__(self, export_folder: Optional[Path] = None):
        self._export_folder: Optional[Path] = export_folder
        self._sessions: dict[str, TrackingSession] = {}
        self._lock = threading.Lock()

    @property
    def export_folder(self) -> Optional[Path]:
        return self._export_folder

    def set_export_folder(self, folder: Optional[Path]) -> None:
        self._export_folder = folder

    def __len__(self) -> int:
        return len(self._sessions)

    def create_session(self, name: Optional[str] = None, **kwargs) -> TrackingSession:
        """Create and register a new session."""
        return self._register(TrackingSession(name=name, **kwargs))

    def get_session(self, session_id: str) -> TrackingSession:
        """
        Get a session by ID.

        Raises:
            SessionNotFound: Unknown id.
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"Session not found: {session_id}")
        return session

    def list_sessions(self) -> list[TrailSummary]:
        """Summaries, newest first."""
        with self._lock:
            sessions = sorted(self._sessions.values(), key=lambda s: s.created_at, reverse=True)
        return [s.summary() for s in sessions]

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFound(f"Session not found: {session_id}")
        logger.info(f"Deleted session {session_id}")

    def stop_session(self, session_id: str) -> tuple[tuple[TrailPoint, ...], Optional[Path]]:
        """
        Stop tracking and export the trail.

        Returns:
            (trail snapshot, path of the written CSV or None)
        """
        session = self.get_session(session_id)
        points = session.stop()

        if self._export_folder is None or not points:
            return points, None

        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        filepath = self._export_folder / export_filename(session.name, stamp)
        try:
            write_trail_csv(points, filepath)
        except OSError as e:
            logger.error(f"Failed to save trail data as CSV: {e}")
            return points, None
        return points, filepath

    def import_trail(
        self,
        source: Union[Path, str, io.StringIO],
        name: Optional[str] = None,
    ) -> TrackingSession:
        """
        Create a stopped session from an exported trail CSV.

        The session is registered only once every row has loaded.
        """
        points = read_trail_csv(source)
        if name is None and isinstance(source, Path):
            name = source.stem
        session = TrackingSession(name=name)
        session.load(points)
        return self._register(session)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
        logger.info("Session repository cleared")

    def _register(self, session: TrackingSession) -> TrackingSession:
        with self._lock:
            self._sessions[session.id] = session
        logger.info(f"Created session {session.id} ({session.name})")
        return session


# Global repository instance (set up by app initialization)
_repository: Optional[SessionRepository] = None


def get_repository() -> SessionRepository:
    """Get the global repository instance."""
    global _repository
    if _repository is None:
        _repository = SessionRepository()
    return _repository


def init_repository(export_folder: Optional[Path] = None) -> SessionRepository:
    """Initialize the global repository with an export folder."""
    global _repository
    _repository = SessionRepository(export_folder)
    return _repository
