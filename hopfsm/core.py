"""
State machine able to choose the shortest path between two states.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict, Hashable, List, Optional

from .errors import NoPathFoundError
from .sinks import DiagnosticSink, NullSink
from .table import TransitionTable

logger = logging.getLogger(__name__)

HISTORY_SIZE = 20


@dataclass(frozen=True)
class HopRecord:
    """A single hop taken by a state machine"""
    from_state: Hashable
    to_state: Hashable
    timestamp: datetime = field(default_factory=datetime.now)


class StateMachine:
    """
    A state machine that resolves multi-hop moves automatically.

    Calling go(target) takes the fewest configured transitions from the
    current state to target, executing every action of every hop in order.

    Machines are normally created by StateMachineBuilder.start_at(), which
    hands each machine its own copy of the transition table.
    """

    def __init__(self,
                 transitions: TransitionTable,
                 initial_state: Hashable,
                 name: Optional[str] = None,
                 sink: Optional[DiagnosticSink] = None):
        """
        Initialize state machine.

        Args:
            transitions: Transition table owned by this machine
            initial_state: State the machine starts in and returns to on reset
            name: Name used in diagnostics
            sink: Optional diagnostic sink notified of state changes
        """
        if transitions is None:
            raise TypeError("transitions must not be None")
        self._transitions = transitions
        self._initial_state = transitions.validate(initial_state, "initial state")
        self._current_state = self._initial_state
        self._transitions_done = 0
        self._history: List[HopRecord] = []
        self.name = name or "fsm"
        self.sink = sink if sink is not None else NullSink()

    @property
    def initial_state(self) -> Hashable:
        return self._initial_state

    @property
    def current_state(self) -> Hashable:
        return self._current_state

    @property
    def transitions_done(self) -> int:
        return self._transitions_done

    def get_current_state(self) -> Hashable:
        """Get current state"""
        return self._current_state

    def get_transitions_done(self) -> int:
        """Get the number of hops taken since creation or the last reset"""
        return self._transitions_done

    def go(self, state: Hashable) -> "StateMachine":
        """
        Go to state using the shortest path, executing all transition actions.

        Going to the current state does nothing. Exceptions raised by actions
        propagate unchanged; hops completed before the failing action are kept.

        Args:
            state: The state to go to

        Returns:
            This machine

        Raises:
            NoPathFoundError: if state cannot be reached; nothing is changed
        """
        self._transitions.validate(state, "target state")

        if state == self._current_state:
            return self

        actions = self._transitions.get(self._current_state, state)
        if actions is not None:
            self._hop(state, actions)
            return self

        path = self.find_path(state)
        if path is None:
            raise NoPathFoundError(self._current_state, state)

        logger.debug(f"[SM:{self.name}] Route to {state}: {' -> '.join(str(s) for s in path)}")
        # path[0] is the current state, which go() ignores
        for intermediate in path[1:]:
            self.go(intermediate)

        return self

    def _hop(self, state: Hashable, actions: List) -> None:
        previous = self._current_state
        logger.debug(f"[SM:{self.name}] Going to state {state}")

        for action in actions:
            action()

        self._current_state = state
        self._transitions_done += 1

        self._history.append(HopRecord(from_state=previous, to_state=state))
        if len(self._history) > HISTORY_SIZE:
            self._history.pop(0)

        self._notify("on_transition", previous, state)

    def find_path(self, state: Hashable) -> Optional[List[Hashable]]:
        """
        Look for the shortest path from the current state to state.

        Given the transitions A -> B -> C -> D, with the machine in B,
        find_path(D) returns [B, C, D].

        Returns:
            The states along the path including both ends, or None if there is
            no path. Among several shortest paths the one found first in
            domain order wins.
        """
        self._transitions.validate(state, "target state")
        return self._shortest_path(self._current_state, state)

    def _shortest_path(self, source: Hashable, target: Hashable) -> Optional[List[Hashable]]:
        if source == target:
            return [source]

        # breadth-first: the first time target is seen, its path is minimal
        parents: Dict[Hashable, Hashable] = {source: source}
        queue: Deque[Hashable] = deque([source])

        while queue:
            node = queue.popleft()
            for reachable in self._transitions.get_reachable_states(node):
                if reachable in parents:
                    continue
                parents[reachable] = node
                if reachable == target:
                    return self._unwind(parents, source, target)
                queue.append(reachable)

        return None

    @staticmethod
    def _unwind(parents: Dict[Hashable, Hashable], source: Hashable, target: Hashable) -> List[Hashable]:
        path = [target]
        while path[-1] != source:
            path.append(parents[path[-1]])
        path.reverse()
        return path

    def get_reachable_states(self) -> List[Hashable]:
        """Get the states reachable from the current state in a single hop"""
        return self._transitions.get_reachable_states(self._current_state)

    def get_history(self, limit: int = 10) -> List[HopRecord]:
        """Get the most recent hops, oldest first"""
        if limit <= 0:
            return []
        return self._history[-limit:]

    def reset(self):
        """
        Reset the current state to the initial state without doing any transitions.

        Also sets the transition counter back to 0 and clears the history.
        """
        logger.debug(f"[SM:{self.name}] Reset to {self._initial_state}")
        self._current_state = self._initial_state
        self._transitions_done = 0
        self._history = []
        self._notify("on_reset", self._initial_state)

    def set_state(self, state: Hashable):
        """
        Set the state without doing any transitions or reachability checks.

        Useful if the state was altered externally. The transition counter is
        not changed.
        """
        self._transitions.validate(state, "state")
        previous = self._current_state
        self._current_state = state
        logger.debug(f"[SM:{self.name}] State set to {state}")
        self._notify("on_state_set", previous, state)

    def _notify(self, event: str, *args) -> None:
        try:
            getattr(self.sink, event)(self, *args)
        except Exception as e:
            logger.warning(f"Diagnostic sink failed on {event}: {e}")

    def __repr__(self) -> str:
        return (f"StateMachine(name={self.name!r}, state={self._current_state!r}, "
                f"transitions_done={self._transitions_done})")
