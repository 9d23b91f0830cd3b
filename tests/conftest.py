"""Shared fixtures for the dicebot tests."""

import random
import typing

import pytest


@pytest.fixture
def rolls(monkeypatch: pytest.MonkeyPatch) -> typing.Callable[..., None]:
    """Make `random.randint` return the given values, in order."""

    def set_rolls(*values: int) -> None:
        queue = list(values)

        def randint(a: int, b: int) -> int:
            value = queue.pop(0)
            assert a <= value <= b
            return value

        monkeypatch.setattr(random, "randint", randint)

    return set_rolls
