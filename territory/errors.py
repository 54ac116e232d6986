class ClaimError(Exception):
    """Base class for territory engine errors."""


class InvalidStateError(ClaimError):
    """An operation was called in a state that does not allow it."""

    def __init__(self, operation: str, state, expected=None):
        self.operation = operation
        self.state = state
        self.expected = expected
        state_name = getattr(state, "value", state)
        msg = f"Cannot {operation} while {state_name}"
        if expected:
            msg += " (expected " + ", ".join(getattr(s, "value", str(s)) for s in expected) + ")"
        super().__init__(msg)


class InvalidPolygonError(ClaimError, ValueError):
    pass
