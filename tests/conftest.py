from enum import Enum

import pytest

from hopfsm import StateMachineBuilder


class States(Enum):
    A = "a"
    B = "b"
    C = "c"
    D = "d"
    E = "e"
    F = "f"


@pytest.fixture
def builder():
    return StateMachineBuilder.from_enum(States)


@pytest.fixture
def register():
    return []
