class BattleError(Exception):
    """Base class for per-session failures. Never fatal to the server."""


class SessionFullError(BattleError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} already has two players")
        self.session_id = session_id
