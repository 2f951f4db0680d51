"""Tabela de transições do FSM.

- TransitionDescriptor: declaração do chamador (evento, origens, destino)
- TransitionTable: (evento, origem) → destino, construída uma única vez
- Um descritor com N origens equivale a N descritores de origem única
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyloto_fsm.domain.errors import DuplicateTransitionError
from pyloto_fsm.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class TransitionDescriptor(BaseModel):
    """Transição declarada: ``event`` leva de qualquer ``sources`` a ``destination``."""

    model_config = ConfigDict(frozen=True)

    event: str = Field(min_length=1)
    sources: frozenset[str] = Field(min_length=1)
    destination: str = Field(min_length=1)

    @field_validator("sources", mode="before")
    @classmethod
    def _coerce_sources(cls, value: Any) -> Any:
        # Origem única pode vir como string simples
        if isinstance(value, str):
            return frozenset({value})
        return value

    @field_validator("sources")
    @classmethod
    def _reject_empty_source(cls, value: frozenset[str]) -> frozenset[str]:
        if any(not src for src in value):
            raise ValueError("source state names must be non-empty")
        return value


class TransitionTable:
    """Mapeamento imutável (evento, origem) → destino.

    Também coleta, como subproduto, os conjuntos de todos os eventos e
    estados conhecidos (usados na classificação de handlers).
    """

    __slots__ = ("_table", "_events", "_states")

    def __init__(
        self,
        descriptors: Iterable[TransitionDescriptor],
        *,
        strict: bool = True,
    ) -> None:
        table: dict[tuple[str, str], str] = {}
        events: set[str] = set()
        states: set[str] = set()

        for descriptor in descriptors:
            events.add(descriptor.event)
            states.add(descriptor.destination)
            # sorted: ordem determinística para o last-write-wins do modo leniente
            for source in sorted(descriptor.sources):
                states.add(source)
                key = (descriptor.event, source)
                existing = table.get(key)
                if existing is not None and existing != descriptor.destination:
                    if strict:
                        raise DuplicateTransitionError(
                            descriptor.event, source, existing, descriptor.destination
                        )
                    logger.warning(
                        "fsm_duplicate_transition",
                        extra={
                            "event": descriptor.event,
                            "source": source,
                            "replaced": existing,
                            "destination": descriptor.destination,
                        },
                    )
                table[key] = descriptor.destination

        self._table = table
        self._events = frozenset(events)
        self._states = frozenset(states)

    @classmethod
    def from_specs(
        cls,
        specs: Iterable[TransitionDescriptor | dict[str, Any]],
        *,
        strict: bool = True,
    ) -> TransitionTable:
        """Constrói a tabela aceitando descritores ou dicts equivalentes."""
        descriptors = [
            spec if isinstance(spec, TransitionDescriptor)
            else TransitionDescriptor.model_validate(spec)
            for spec in specs
        ]
        return cls(descriptors, strict=strict)

    @property
    def events(self) -> frozenset[str]:
        """Todos os nomes de evento declarados."""
        return self._events

    @property
    def states(self) -> frozenset[str]:
        """Todos os estados que aparecem como origem ou destino."""
        return self._states

    def destination(self, event: str, source: str) -> str | None:
        """Destino de ``event`` a partir de ``source`` (None se não declarado)."""
        return self._table.get((event, source))

    def has_event(self, event: str) -> bool:
        """True se ``event`` aparece em algum descritor."""
        return event in self._events

    def __contains__(self, key: object) -> bool:
        return key in self._table

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return (
            f"TransitionTable(entries={len(self._table)}, "
            f"events={len(self._events)}, states={len(self._states)})"
        )
