"""
Fluent configuration of state machines.

Example usage::

    builder = StateMachineBuilder.from_enum(Door)

    machine = (builder
               .from_(Door.CLOSED).to(Door.OPEN, ring_bell)
               .from_(Door.OPEN).to(Door.CLOSED).to(Door.LOCKED)
               .start_at(Door.CLOSED))

Another from_() or start_at() is only possible after at least one to().
"""

import logging
from enum import Enum
from typing import Hashable, Iterable, Optional, Type

from .core import StateMachine
from .sinks import DiagnosticSink
from .table import Action, TransitionTable

logger = logging.getLogger(__name__)


class StateMachineBuilder:
    """Configures transitions and creates independent state machines from them"""

    def __init__(self,
                 states: Iterable[Hashable],
                 name: Optional[str] = None,
                 sink: Optional[DiagnosticSink] = None):
        """
        Create a new builder.

        Args:
            states: Possible states for machines created by this builder
            name: Name given to created machines
            sink: Default diagnostic sink for created machines
        """
        self._transitions = TransitionTable.create(states)
        self.name = name
        self.sink = sink

    @classmethod
    def from_enum(cls,
                  enum_cls: Type[Enum],
                  name: Optional[str] = None,
                  sink: Optional[DiagnosticSink] = None) -> "StateMachineBuilder":
        """Create a builder using all members of an Enum class as states"""
        return cls(list(enum_cls), name=name or enum_cls.__name__, sink=sink)

    @property
    def table(self) -> TransitionTable:
        return self._transitions

    def from_(self, state: Hashable) -> "TransitionFrom":
        """
        Enter the configuration of transitions starting at state.

        Raises:
            InvalidConfigurationError: if state is not a valid state
        """
        self._transitions.validate(state, "from state")
        return TransitionFrom(self, state)

    def start_at(self,
                 initial_state: Hashable,
                 sink: Optional[DiagnosticSink] = None) -> StateMachine:
        """
        Create a new StateMachine using the current configuration.

        The machine gets its own copy of the transitions; configuring this
        builder further does not change machines already started.
        """
        machine = StateMachine(
            self._transitions.copy(),
            initial_state,
            name=self.name,
            sink=sink if sink is not None else self.sink
        )
        logger.debug(f"Started machine {machine.name} at {initial_state} "
                     f"with {len(self._transitions)} transitions")
        return machine


class TransitionFrom:
    """Configuration context returned by StateMachineBuilder.from_()"""

    def __init__(self, builder: StateMachineBuilder, from_state: Hashable):
        self._builder = builder
        self._from_state = from_state

    @property
    def from_state(self) -> Hashable:
        return self._from_state

    def to(self, state: Hashable, action: Optional[Action] = None) -> "TransitionTo":
        """
        Create a transition to state, executing action when taking it.

        Calling to() again for the same state adds another action.
        """
        self._builder.table.add_transition(self._from_state, state, action)
        return TransitionTo(self._builder, self._from_state)


class TransitionTo(TransitionFrom):
    """Configuration context returned by to(), allowing to continue or finish"""

    def from_(self, state: Hashable) -> TransitionFrom:
        """See StateMachineBuilder.from_()"""
        return self._builder.from_(state)

    def start_at(self,
                 initial_state: Hashable,
                 sink: Optional[DiagnosticSink] = None) -> StateMachine:
        """See StateMachineBuilder.start_at()"""
        return self._builder.start_at(initial_state, sink=sink)
