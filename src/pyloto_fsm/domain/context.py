"""Contexto de uma tentativa de transição (o objeto "evento" dos callbacks).

Criado uma vez por chamada a fire() e compartilhado por todas as fases,
para que cancelamento e adiamento sejam visíveis entre callbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pyloto_fsm.domain.phases import Phase
from pyloto_fsm.observability.logging import get_logger

if TYPE_CHECKING:
    from pyloto_fsm.application.machine import StateMachine

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True, eq=False)
class TransitionContext:
    """Estado mutável de uma transição em andamento.

    Callbacks podem:
    - ler machine/event/source/destination/args
    - escrever ``error`` para reportar falha (acompanha o resultado)
    - chamar cancel() (fases before/leave)
    - chamar defer() (somente na fase leave)
    """

    machine: StateMachine = field(repr=False)
    event: str
    source: str
    destination: str
    args: tuple[Any, ...] = ()
    error: Any = None
    phase: Phase | None = None
    _canceled: bool = field(default=False, repr=False)
    _deferred: bool = field(default=False, repr=False)

    def cancel(self) -> None:
        """Cancela a transição antes que ela aconteça.

        Só tem efeito nas fases before/leave; depois da troca de estado é ignorado.
        """
        self._canceled = True

    def defer(self) -> None:
        """Suspende a transição após a fase leave até StateMachine.resume().

        Fora da fase leave a chamada é ignorada.
        """
        if self.phase is not Phase.LEAVE_STATE:
            logger.warning(
                "fsm_defer_ignored",
                extra={"event": self.event, "phase": self.phase.value if self.phase else None},
            )
            return
        self._deferred = True

    @property
    def canceled(self) -> bool:
        return self._canceled

    @property
    def deferred(self) -> bool:
        return self._deferred
