"""Registro de handlers por convenção de nomes.

Formas aceitas (em ordem de disparo):
- before_<EVENT> / before_event
- leave_<STATE> / leave_state
- enter_<STATE> / enter_state
- after_<EVENT> / after_event
- Shorthand: <STATE> → enter_<STATE>; <EVENT> → after_<EVENT>

Nomes que não resolvem para nenhum evento/estado conhecido são ignorados.
Dois nomes que resolvem para a mesma chave são conflito de construção.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, NamedTuple

from pyloto_fsm.domain.errors import HandlerConflictError
from pyloto_fsm.domain.phases import GENERIC_TARGET, Phase
from pyloto_fsm.observability.logging import get_logger

if TYPE_CHECKING:
    from pyloto_fsm.domain.context import TransitionContext

logger: logging.Logger = get_logger(__name__)

Handler = Callable[["TransitionContext"], None]


class HandlerKey(NamedTuple):
    """Chave (alvo, fase). Alvo vazio = handler genérico da fase."""

    target: str
    phase: Phase

    @property
    def is_generic(self) -> bool:
        return self.target == GENERIC_TARGET


def classify_handler_name(
    name: str,
    events: frozenset[str] | set[str],
    states: frozenset[str] | set[str],
) -> HandlerKey | None:
    """Classifica um nome bruto de handler em HandlerKey.

    Função pura: depende apenas do nome e dos conjuntos conhecidos.

    Returns:
        HandlerKey correspondente, ou None se o nome não resolve.
    """
    for phase in Phase:
        if not name.startswith(phase.prefix):
            continue
        rest = name[len(phase.prefix):]
        if rest == phase.generic_suffix:
            return HandlerKey(GENERIC_TARGET, phase)
        known = events if phase.targets_events else states
        if rest in known:
            return HandlerKey(rest, phase)
        return None

    # Shorthand: estado tem precedência sobre evento
    if name in states:
        return HandlerKey(name, Phase.ENTER_STATE)
    if name in events:
        return HandlerKey(name, Phase.AFTER_EVENT)
    return None


class HandlerRegistry:
    """Mapeamento imutável HandlerKey → callback, construído uma única vez."""

    __slots__ = ("_handlers", "_names", "_ignored")

    def __init__(
        self,
        handlers: Mapping[str, Handler],
        events: frozenset[str] | set[str],
        states: frozenset[str] | set[str],
        *,
        strict: bool = True,
    ) -> None:
        resolved: dict[HandlerKey, Handler] = {}
        names: dict[HandlerKey, str] = {}
        ignored: list[str] = []

        for name, handler in handlers.items():
            if not callable(handler):
                raise TypeError(f"handler {name!r} is not callable")

            key = classify_handler_name(name, events, states)
            if key is None:
                ignored.append(name)
                logger.debug("fsm_handler_ignored", extra={"handler": name})
                continue

            # Shorthand que é estado e evento ao mesmo tempo: estado vence
            if key.target == name and name in states and name in events:
                logger.warning(
                    "fsm_handler_ambiguous_shorthand",
                    extra={"handler": name, "resolved_phase": key.phase.value},
                )

            if key in resolved:
                first = names[key]
                if strict:
                    raise HandlerConflictError(key.target, key.phase, (first, name))
                # Modo leniente: primeiro registro (ordem de inserção) vence
                logger.warning(
                    "fsm_handler_conflict",
                    extra={
                        "target": key.target,
                        "phase": key.phase.value,
                        "kept": first,
                        "dropped": name,
                    },
                )
                continue

            resolved[key] = handler
            names[key] = name

        self._handlers = resolved
        self._names = names
        self._ignored = tuple(ignored)

    def get(self, target: str, phase: Phase) -> Handler | None:
        """Retorna o handler da chave, ou None."""
        return self._handlers.get(HandlerKey(target, phase))

    def name_of(self, key: HandlerKey) -> str | None:
        """Nome bruto que produziu a chave (útil para logs)."""
        return self._names.get(key)

    @property
    def ignored(self) -> tuple[str, ...]:
        """Nomes que não resolveram para nenhuma chave."""
        return self._ignored

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __iter__(self) -> Iterator[HandlerKey]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
