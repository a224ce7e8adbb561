"""
hopfsm

A finite state machine library that resolves shortest transition paths.
"""

__version__ = "0.1.0"

from .errors import (
    FSMError,
    InvalidConfigurationError,
    NoPathFoundError,
    NullStateError,
)

from .table import TransitionTable
from .core import HopRecord, StateMachine
from .builder import StateMachineBuilder, TransitionFrom, TransitionTo
from .sinks import CompositeSink, DiagnosticSink, LoggingSink, NullSink, PrometheusSink
from .config import ActionRegistry, MachineDefinition, MachineParser, TransitionDefinition

__all__ = [
    "FSMError",
    "InvalidConfigurationError",
    "NoPathFoundError",
    "NullStateError",
    "TransitionTable",
    "StateMachine",
    "HopRecord",
    "StateMachineBuilder",
    "TransitionFrom",
    "TransitionTo",
    "DiagnosticSink",
    "NullSink",
    "CompositeSink",
    "LoggingSink",
    "PrometheusSink",
    "ActionRegistry",
    "MachineDefinition",
    "MachineParser",
    "TransitionDefinition",
]
