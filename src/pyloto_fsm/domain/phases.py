"""Fases do ciclo de vida de uma transição.

Cada callback registrado roda em exatamente uma fase:
- BEFORE_EVENT: antes do evento (pode cancelar)
- LEAVE_STATE: ao sair do estado de origem (pode cancelar ou adiar)
- ENTER_STATE: após entrar no estado de destino
- AFTER_EVENT: após o evento concluir
"""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """4 fases fixas, na ordem em que são disparadas."""

    BEFORE_EVENT = "before"
    LEAVE_STATE = "leave"
    ENTER_STATE = "enter"
    AFTER_EVENT = "after"

    @property
    def prefix(self) -> str:
        """Prefixo do nome de handler (ex: ``before_``)."""
        return f"{self.value}_"

    @property
    def generic_suffix(self) -> str:
        """Sufixo reservado para o handler genérico da fase."""
        return "event" if self.targets_events else "state"

    @property
    def targets_events(self) -> bool:
        """True se o alvo da fase é nome de evento (senão, nome de estado)."""
        return self in (Phase.BEFORE_EVENT, Phase.AFTER_EVENT)


GENERIC_TARGET = ""
"""Alvo vazio: handler aplicado a todos os eventos/estados da fase."""
