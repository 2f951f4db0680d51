from __future__ import annotations

from collections.abc import Callable

import pytest

from pyloto_fsm.config.settings import Settings, get_settings
from pyloto_fsm.domain.context import TransitionContext


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def lenient_settings() -> Settings:
    return Settings(strict_handlers=False, strict_transitions=False)


@pytest.fixture()
def calls() -> list[str]:
    """Lista compartilhada onde os handlers registram sua execução."""
    return []


@pytest.fixture()
def recorder(calls: list[str]) -> Callable[[str], Callable[[TransitionContext], None]]:
    """Fábrica de handlers que só anotam o próprio rótulo em ``calls``."""

    def make(label: str) -> Callable[[TransitionContext], None]:
        def handler(ctx: TransitionContext) -> None:
            calls.append(label)

        return handler

    return make
