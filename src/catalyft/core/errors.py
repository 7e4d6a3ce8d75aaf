"""
Error taxonomy for the live workout engine.

SetNotFoundError and InvalidStateError are raised synchronously by engine
operations.  PersistenceError is never raised from an operation: it is
handed to the engine's ``on_persistence_failure`` listener once a background
write has failed.
"""


class SessionError(Exception):
    """Base class for workout session errors."""

    pass


class SetNotFoundError(SessionError, LookupError):
    """A set was referenced by an exercise id / set index that does not exist."""

    def __init__(self, exercise_id: str, set_index: int, detail: str = ""):
        self.exercise_id = exercise_id
        self.set_index = set_index
        message = f"No set {set_index} for exercise '{exercise_id}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidStateError(SessionError):
    """An operation was invoked on a session that has already ended."""

    pass


class PersistenceError(SessionError):
    """A background write to the session sink failed."""

    def __init__(self, session_id: str, operation: str, cause: BaseException | None = None):
        self.session_id = session_id
        self.operation = operation
        message = f"Could not {operation} for session {session_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
