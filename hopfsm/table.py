"""
Transition table storing the configured edges of a state machine.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple, Type

from .errors import InvalidConfigurationError, NullStateError

logger = logging.getLogger(__name__)

Action = Callable[[], None]


class TransitionTable:
    """
    Sparse directed graph over a fixed set of states.

    Every edge carries an ordered list of actions. The presence of an edge,
    even one without actions, means the target state is directly reachable.
    """

    def __init__(self, states: Iterable[Hashable]):
        """
        Create an empty table over the given states.

        Args:
            states: Ordered, duplicate-free collection of valid states

        Raises:
            InvalidConfigurationError: if states is None, empty or has duplicates
            NullStateError: if one of the states is None
        """
        if states is None:
            raise InvalidConfigurationError("State domain must not be None")

        domain = tuple(states)
        if not domain:
            raise InvalidConfigurationError("State domain must not be empty")
        if any(state is None for state in domain):
            raise NullStateError("State domain must not contain None")
        try:
            distinct = set(domain)
        except TypeError as e:
            raise InvalidConfigurationError(f"States must be hashable: {e}") from e
        if len(distinct) != len(domain):
            raise InvalidConfigurationError(f"State domain contains duplicates: {domain}")

        self._states: Tuple[Hashable, ...] = domain
        self._index: Dict[Hashable, int] = {state: i for i, state in enumerate(domain)}
        self._edges: Dict[Hashable, Dict[Hashable, List[Action]]] = {}

    @classmethod
    def create(cls, states: Iterable[Hashable]) -> "TransitionTable":
        return cls(states)

    @classmethod
    def from_enum(cls, enum_cls: Type[Enum]) -> "TransitionTable":
        """Create a table over all members of an Enum class"""
        return cls(list(enum_cls))

    @property
    def states(self) -> Tuple[Hashable, ...]:
        return self._states

    def contains(self, state: Hashable) -> bool:
        return state is not None and state in self._index

    def __contains__(self, state: Hashable) -> bool:
        return self.contains(state)

    def __len__(self) -> int:
        return sum(len(row) for row in self._edges.values())

    def validate(self, state: Hashable, role: str = "state") -> Hashable:
        """
        Check that a state belongs to this table's domain.

        Returns:
            The state itself, so calls can be chained inline

        Raises:
            NullStateError: if state is None
            InvalidConfigurationError: if state is not part of the domain
        """
        if state is None:
            raise NullStateError(f"{role} must not be None")
        try:
            known = state in self._index
        except TypeError:
            known = False
        if not known:
            raise InvalidConfigurationError(f"Unknown {role}: {state!r}")
        return state

    def add_transition(self,
                       from_state: Hashable,
                       to_state: Hashable,
                       action: Optional[Action] = None):
        """
        Add a transition from from_state to to_state, with an optional action.

        May be called multiple times for the same pair; actions are appended in
        call order.
        """
        self.validate(from_state, "from state")
        self.validate(to_state, "to state")
        if action is not None and not callable(action):
            raise InvalidConfigurationError(f"Action for {from_state} -> {to_state} is not callable")

        actions = self._edges.setdefault(from_state, {}).setdefault(to_state, [])
        if action is not None:
            actions.append(action)

        logger.debug(f"Added transition: {from_state} -> {to_state} ({len(actions)} actions)")

    def get(self, from_state: Hashable, to_state: Hashable) -> Optional[List[Action]]:
        """
        Return the actions of the direct transition, or None if there is none.

        An empty list means the transition exists but has no actions.
        """
        self.validate(from_state, "from state")
        self.validate(to_state, "to state")
        return self._edges.get(from_state, {}).get(to_state)

    def has_transition(self, from_state: Hashable, to_state: Hashable) -> bool:
        return self.get(from_state, to_state) is not None

    def get_reachable_states(self, from_state: Hashable) -> List[Hashable]:
        """Return all states with a direct transition from from_state, in domain order"""
        self.validate(from_state, "from state")
        row = self._edges.get(from_state, {})
        return sorted(row, key=self._index.__getitem__)

    def copy(self) -> "TransitionTable":
        """
        Return an independent copy of this table.

        Action callables are shared, action lists are not: adding transitions
        or actions to one table never shows up in the other.
        """
        clone = TransitionTable.__new__(TransitionTable)
        clone._states = self._states
        clone._index = self._index
        clone._edges = {
            from_state: {to_state: list(actions) for to_state, actions in row.items()}
            for from_state, row in self._edges.items()
        }
        return clone

    def __copy__(self) -> "TransitionTable":
        return self.copy()

    def __str__(self) -> str:
        lines = []
        for state in self._states:
            reachable = " ".join(str(s) for s in self.get_reachable_states(state))
            lines.append(f"{state}: {reachable}".rstrip())
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"TransitionTable(states={len(self._states)}, transitions={len(self)})"
