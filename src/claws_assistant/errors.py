class ClawsAssistantError(Exception):
    """Base class for errors raised by the conversation engine."""


class StreamError(ClawsAssistantError):
    pass


class StreamTransportError(StreamError):
    pass


class StreamCancelled(StreamError):
    def __init__(self, message: str = "stream cancelled"):
        super().__init__(message)


class ToolError(ClawsAssistantError):
    """Expected tool failure; the message is returned to the model as an error result."""


class ToolInputError(ToolError):
    pass


class UnsupportedResourceError(ToolError):
    pass


class CollaboratorError(ToolError):
    pass


class SessionStoreError(ClawsAssistantError):
    pass


class SessionNotFoundError(SessionStoreError):
    def __init__(self, session_id: str):
        super().__init__(f"Session does not exist: {session_id}")
        self.session_id = session_id
