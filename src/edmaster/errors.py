class EdMasterError(Exception):
    """Base class for errors raised by edmaster."""


class OutOfRangeError(EdMasterError, IndexError):
    """An answer was evaluated with no current word."""


class InvalidActionError(EdMasterError):
    """The requested action is not allowed in the current mode."""
