from __future__ import annotations

from loguru import logger

from claws_assistant.errors import SessionNotFoundError, SessionStoreError
from claws_assistant.messages import Message
from claws_assistant.sessions.models import Context, Session, generate_session_id, utc_now
from claws_assistant.sessions.pruning import count_session_files, prune_oldest, should_prune
from claws_assistant.sessions.store import SessionStore

DEFAULT_MAX_SESSIONS = 100


class SessionManager:
    """Owns the chat session lifecycle on top of a SessionStore.

    The current-session pointer on disk follows the last session saved. A new
    session that has not been saved yet is current for this process only.
    When the store is disabled nothing touches the filesystem and the current
    session id is kept in memory only.
    """

    def __init__(self, store: SessionStore, max_sessions: int = DEFAULT_MAX_SESSIONS):
        self._store = store
        self._max_sessions = max_sessions if max_sessions > 0 else DEFAULT_MAX_SESSIONS
        self._current_id: str | None = None
        self._unsaved: Session | None = None
        self._memory: dict[str, Session] = {}

    @property
    def enabled(self) -> bool:
        return self._store.enabled

    @property
    def max_sessions(self) -> int:
        return self._max_sessions

    def new_session(self, context: Context | None = None) -> Session:
        now = utc_now()
        session = Session(id=generate_session_id(), started_at=now, updated_at=now, context=context)
        self._current_id = session.id
        if not self.enabled:
            self._memory[session.id] = session
            return session

        # Empty sessions are not written until their first message arrives.
        self._unsaved = session
        logger.debug(f"Started chat session {session.id}")
        return session

    def current_session(self) -> Session | None:
        if not self.enabled:
            return self._memory.get(self._current_id) if self._current_id else None

        if self._unsaved is not None and self._unsaved.id == self._current_id:
            return self._unsaved
        try:
            session_id = self._current_id or self._store.read_current_id()
        except SessionStoreError as ex:
            logger.warning(str(ex))
            return None
        if not session_id:
            return None
        try:
            return self.load_session(session_id)
        except SessionNotFoundError:
            return None
        except SessionStoreError as ex:
            logger.warning(str(ex))
            return None

    def load_session(self, session_id: str) -> Session:
        if not self.enabled:
            session = self._memory.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return session

        data = self._store.read_session(session_id)
        try:
            session = Session.from_dict(data)
        except (KeyError, TypeError, ValueError) as ex:
            raise SessionStoreError(f"Failed to parse session {session_id}: {ex}") from ex
        self._current_id = session.id
        return session

    def add_message(self, session: Session, message: Message) -> None:
        session.messages.append(message)
        session.updated_at = utc_now()
        if not self.enabled:
            return

        try:
            self._store.write_session(session.id, session.to_dict())
        except (OSError, SessionStoreError) as ex:
            logger.error(f"Failed to persist session {session.id}: {ex}")
            return
        self._saved(session)

        if len(session.messages) == 1:
            try:
                self._prune()
            except OSError as ex:
                logger.warning(f"Failed to prune old chat sessions: {ex}")

    def save_messages(self, session: Session) -> None:
        session.updated_at = utc_now()
        if not self.enabled:
            return
        self._store.write_session(session.id, session.to_dict())
        self._saved(session)

    def list_sessions(self) -> list[Session]:
        if not self.enabled:
            sessions = list(self._memory.values())
        else:
            sessions = []
            for path in self._store.session_files():
                try:
                    sessions.append(Session.from_dict(self._store.read_session(path.stem)))
                except (KeyError, TypeError, ValueError, SessionStoreError) as ex:
                    logger.warning(f"Skipping unreadable session file {path.name}: {ex}")
        sessions.sort(key=lambda s: s.updated_at, reverse=True)
        return sessions

    def _saved(self, session: Session) -> None:
        self._current_id = session.id
        if self._unsaved is session:
            self._unsaved = None
        try:
            self._store.write_current_id(session.id)
        except (OSError, SessionStoreError) as ex:
            logger.warning(f"Failed to record current session {session.id}: {ex}")

    def _prune(self) -> None:
        sessions_dir = self._store.sessions_dir
        if not should_prune(count_session_files(sessions_dir), self._max_sessions):
            return
        deleted = prune_oldest(sessions_dir, self._max_sessions)
        if self._current_id in deleted:
            logger.warning(f"Current session {self._current_id} was pruned")
