"""
Loading state machine definitions from YAML.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from .builder import StateMachineBuilder
from .core import StateMachine
from .errors import InvalidConfigurationError
from .sinks import DiagnosticSink
from .table import Action

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "HOPFSM_LOG_LEVEL"
METRICS_ENV = "HOPFSM_METRICS"


class _DefinitionLoader(yaml.SafeLoader):
    """SafeLoader that reads yes/no/on/off as strings, so they can name states"""


_DefinitionLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:bool"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_DefinitionLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _state_name(value: Any, role: str = "state") -> str:
    """States from definitions are always strings, whatever YAML made of them"""
    if value is None:
        raise InvalidConfigurationError(f"{role} must not be empty")
    if isinstance(value, (list, dict)):
        raise InvalidConfigurationError(f"{role} must be a scalar: {value!r}")
    return str(value)


def log_level_from_env(default: str = "WARNING") -> int:
    """Read the log level name from HOPFSM_LOG_LEVEL"""
    name = os.getenv(LOG_LEVEL_ENV, default).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def metrics_enabled() -> bool:
    return os.getenv(METRICS_ENV, 'false').lower() == 'true'


class ActionRegistry:
    """Maps action names used in definitions to zero-argument callables"""

    def __init__(self, default: Optional[Callable[[str], Action]] = None):
        """
        Args:
            default: Factory creating an action for names that were never
                registered. Without it, unknown names are a configuration error.
        """
        self._actions: Dict[str, Action] = {}
        self._default = default

    def register(self, name: str, fn: Action) -> None:
        """Register a named action. Overwrites if already registered."""
        self._actions[name] = fn

    def get(self, name: str) -> Action:
        if name in self._actions:
            return self._actions[name]
        if self._default is not None:
            return self._default(name)
        raise InvalidConfigurationError(f"Unknown action: {name}")

    def has(self, name: str) -> bool:
        return name in self._actions

    def names(self) -> List[str]:
        return list(self._actions)


@dataclass
class TransitionDefinition:
    """Transition as written in a definition file"""
    from_state: str
    to_state: str
    actions: List[str] = field(default_factory=list)


@dataclass
class MachineDefinition:
    """State machine definition"""
    name: str
    states: List[str]
    initial_state: str
    transitions: List[TransitionDefinition] = field(default_factory=list)

    def to_builder(self,
                   registry: Optional[ActionRegistry] = None,
                   sink: Optional[DiagnosticSink] = None) -> StateMachineBuilder:
        """Create a builder configured with all transitions of this definition"""
        registry = registry or ActionRegistry()
        builder = StateMachineBuilder(self.states, name=self.name, sink=sink)

        for transition in self.transitions:
            context = builder.from_(transition.from_state)
            if not transition.actions:
                context.to(transition.to_state)
            for action_name in transition.actions:
                context.to(transition.to_state, registry.get(action_name))

        return builder

    def create_machine(self,
                       registry: Optional[ActionRegistry] = None,
                       sink: Optional[DiagnosticSink] = None) -> StateMachine:
        """Create a machine starting at the definition's initial state"""
        return self.to_builder(registry, sink).start_at(self.initial_state)


class MachineParser:
    """Parser for state machine definitions"""

    @staticmethod
    def from_file(filepath: Union[str, Path]) -> MachineDefinition:
        """Load a machine definition from a YAML file"""
        filepath = Path(filepath)

        with open(filepath, 'r') as f:
            return MachineParser.from_string(f.read())

    @staticmethod
    def from_string(text: str) -> MachineDefinition:
        try:
            data = yaml.load(text, Loader=_DefinitionLoader)
        except yaml.YAMLError as e:
            raise InvalidConfigurationError(f"Invalid YAML: {e}") from e
        return MachineParser.from_dict(data)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> MachineDefinition:
        """Parse a machine definition from a dictionary"""
        if isinstance(data, dict):
            data = data.get('state_machine', data)
        if not isinstance(data, dict):
            raise InvalidConfigurationError("Machine definition must be a mapping")

        states = data.get('states')
        if not isinstance(states, list) or not states:
            raise InvalidConfigurationError("Machine definition needs a non-empty 'states' list")

        definition = MachineDefinition(
            name=str(data.get('name', 'fsm')),
            states=[_state_name(s) for s in states],
            initial_state=_state_name(data.get('initial_state', states[0]), "initial state")
        )

        for trans_data in data.get('transitions') or []:
            definition.transitions.append(MachineParser._parse_transition(trans_data))

        logger.debug(f"Parsed machine {definition.name}: {len(definition.states)} states, "
                     f"{len(definition.transitions)} transitions")
        return definition

    @staticmethod
    def _parse_transition(data: Dict[str, Any]) -> TransitionDefinition:
        try:
            from_state = data['from']
            to_state = data['to']
        except (KeyError, TypeError) as e:
            raise InvalidConfigurationError(f"Transition needs 'from' and 'to': {data!r}") from e

        actions = data.get('actions') or []
        if isinstance(actions, str):
            actions = [actions]
        if not isinstance(actions, list):
            raise InvalidConfigurationError(f"Transition actions must be a name or a list: {actions!r}")
        if 'action' in data:
            actions = [data['action']] + list(actions)
        if any(isinstance(a, (list, dict)) for a in actions):
            raise InvalidConfigurationError(f"Action names must be scalars: {actions!r}")

        return TransitionDefinition(
            from_state=_state_name(from_state, "from state"),
            to_state=_state_name(to_state, "to state"),
            actions=[str(a) for a in actions]
        )
