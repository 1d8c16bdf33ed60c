from claws_assistant.sessions.models import Context, ContextMode, ResourceRef, Session, generate_session_id
from claws_assistant.sessions.pruning import prune_oldest, should_prune
from claws_assistant.sessions.session_manager import SessionManager
from claws_assistant.sessions.store import SessionStore

__all__ = [
    "Context",
    "ContextMode",
    "ResourceRef",
    "Session",
    "SessionManager",
    "SessionStore",
    "generate_session_id",
    "prune_oldest",
    "should_prune",
]
