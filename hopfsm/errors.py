"""
Exceptions raised by the state machine library.
"""


class FSMError(Exception):
    """Base class for all errors raised by hopfsm"""


class InvalidConfigurationError(FSMError, ValueError):
    """Raised when a state domain or transition refers to invalid states"""


class NullStateError(FSMError, TypeError):
    """Raised when None is given where a state is required"""


class NoPathFoundError(FSMError, LookupError):
    """Raised when no sequence of transitions connects two states"""

    def __init__(self, source, target):
        super().__init__(f"There is no valid transition path from {source} to {target}")
        self.source = source
        self.target = target
