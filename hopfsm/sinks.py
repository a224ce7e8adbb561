"""
Diagnostic sinks notified of state changes, with Prometheus metrics support.

Sinks are purely observational: a failing sink is logged and ignored.
"""

import logging
from typing import TYPE_CHECKING, Any, Hashable, Iterable, Optional

from prometheus_client import CollectorRegistry, Counter, Enum as PrometheusEnum
from typing_extensions import Protocol, runtime_checkable

from .errors import InvalidConfigurationError

if TYPE_CHECKING:
    from .core import StateMachine

logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticSink(Protocol):
    """Receives notifications about what a state machine does"""

    def on_transition(self, machine: "StateMachine", from_state: Hashable, to_state: Hashable) -> None:
        ...

    def on_reset(self, machine: "StateMachine", state: Hashable) -> None:
        ...

    def on_state_set(self, machine: "StateMachine", previous: Hashable, state: Hashable) -> None:
        ...


class NullSink:
    """Sink that ignores every notification"""

    def on_transition(self, machine, from_state, to_state):
        pass

    def on_reset(self, machine, state):
        pass

    def on_state_set(self, machine, previous, state):
        pass


class LoggingSink:
    """Sink writing every notification to a logger"""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.log = log or logger
        self.level = level

    def on_transition(self, machine, from_state, to_state):
        self.log.log(self.level, f"[SM:{machine.name}] TRANSITION: {from_state} -> {to_state}")

    def on_reset(self, machine, state):
        self.log.log(self.level, f"[SM:{machine.name}] RESET: state={state}")

    def on_state_set(self, machine, previous, state):
        self.log.log(self.level, f"[SM:{machine.name}] STATE: {previous} -> {state} (set externally)")


class CompositeSink:
    """Sink forwarding every notification to several sinks, in order"""

    def __init__(self, *sinks: DiagnosticSink):
        self.sinks = list(sinks)

    def on_transition(self, machine, from_state, to_state):
        for sink in self.sinks:
            sink.on_transition(machine, from_state, to_state)

    def on_reset(self, machine, state):
        for sink in self.sinks:
            sink.on_reset(machine, state)

    def on_state_set(self, machine, previous, state):
        for sink in self.sinks:
            sink.on_state_set(machine, previous, state)


def _label(state: Hashable) -> str:
    return getattr(state, "name", str(state))


class PrometheusSink:
    """
    Sink exporting Prometheus metrics for a state machine.

    Exposes:
    - <name>_transitions_total{from_state, to_state}: hops taken
    - <name>_resets_total: calls to reset()
    - <name>_state: current state as an enum metric
    """

    def __init__(self,
                 name: str,
                 states: Iterable[Hashable],
                 registry: Optional[CollectorRegistry] = None):
        """
        Args:
            name: Metric prefix, dashes are replaced with underscores
            states: The machine's state domain
            registry: Registry to register metrics with (default registry if None)
        """
        metric_name = name.lower().replace('-', '_')
        labels = [_label(s) for s in states]
        if len(set(labels)) != len(labels):
            raise InvalidConfigurationError(f"State labels for metrics are not unique: {labels}")
        kwargs: Any = {} if registry is None else {"registry": registry}

        self.transition_counter = Counter(
            f'{metric_name}_transitions_total',
            f'Total state transitions of {name}',
            labelnames=['from_state', 'to_state'],
            **kwargs
        )
        self.reset_counter = Counter(
            f'{metric_name}_resets_total',
            f'Total resets of {name}',
            **kwargs
        )
        self.state_metric = PrometheusEnum(
            f'{metric_name}_state',
            f'Current state of {name}',
            states=labels,
            **kwargs
        )

    def on_transition(self, machine, from_state, to_state):
        self.transition_counter.labels(
            from_state=_label(from_state),
            to_state=_label(to_state)
        ).inc()
        self.state_metric.state(_label(to_state))

    def on_reset(self, machine, state):
        self.reset_counter.inc()
        self.state_metric.state(_label(state))

    def on_state_set(self, machine, previous, state):
        self.state_metric.state(_label(state))
