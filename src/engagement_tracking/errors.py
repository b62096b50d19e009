class EngagementError(Exception):
    pass

class ConfigurationError(EngagementError, ValueError):
    pass

class SessionLifecycleError(EngagementError, RuntimeError):
    pass

class SessionNotFoundError(EngagementError, KeyError):

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"
