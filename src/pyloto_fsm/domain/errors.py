"""Erros do motor de máquina de estados.

Hierarquia:
- StateMachineError: base de todos os erros do motor
  - TransitionInProgressError / NoTransitionInProgressError
  - UnknownEventError / IllegalTransitionError
  - CallbackCanceledError
  - InternalStateMachineError
  - StateMachineConfigError (erros de construção)
    - DuplicateTransitionError / HandlerConflictError
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pyloto_fsm.domain.context import TransitionContext
    from pyloto_fsm.domain.phases import Phase


class StateMachineError(Exception):
    """Erro base do motor FSM."""

    pass


class TransitionInProgressError(StateMachineError):
    """fire() chamado enquanto há transição adiada pendente."""

    def __init__(self, event: str, pending_event: str | None = None) -> None:
        self.event = event
        self.pending_event = pending_event
        super().__init__(
            f"event {event} inappropriate because previous transition did not complete"
        )


class NoTransitionInProgressError(StateMachineError):
    """resume() chamado sem transição pendente."""

    def __init__(self) -> None:
        super().__init__("transition inappropriate because no state change in progress")


class UnknownEventError(StateMachineError):
    """Evento não declarado em nenhuma transição."""

    def __init__(self, event: str) -> None:
        self.event = event
        super().__init__(f"event {event} does not exist")


class IllegalTransitionError(StateMachineError):
    """Evento conhecido, mas sem transição a partir do estado atual."""

    def __init__(self, event: str, state: str) -> None:
        self.event = event
        self.state = state
        super().__init__(f"event {event} inappropriate in current state {state}")


class CallbackCanceledError(StateMachineError):
    """Um handler before/leave cancelou a transição.

    ``error`` é o valor que o callback deixou no contexto (pode ser None).
    """

    def __init__(self, context: TransitionContext) -> None:
        self.context = context
        self.error: Any = context.error
        detail = f": {self.error}" if self.error is not None else ""
        super().__init__(
            f"event {context.event} canceled by callback "
            f"({context.source} -> {context.destination}){detail}"
        )


class InternalStateMachineError(StateMachineError):
    """Falha interna ao concluir transição síncrona.

    Nunca deve ocorrer; indica violação de invariante do motor.
    """

    def __init__(self) -> None:
        super().__init__("internal error on state transition")


class StateMachineConfigError(StateMachineError):
    """Erro de construção (tabela de transições ou handlers inválidos)."""

    pass


class DuplicateTransitionError(StateMachineConfigError):
    """Mesmo par (evento, origem) declarado com destinos diferentes."""

    def __init__(self, event: str, source: str, existing: str, duplicate: str) -> None:
        self.event = event
        self.source = source
        self.existing = existing
        self.duplicate = duplicate
        super().__init__(
            f"event {event} from {source} declared with conflicting "
            f"destinations {existing!r} and {duplicate!r}"
        )


class HandlerConflictError(StateMachineConfigError):
    """Dois nomes de handler resolvem para a mesma chave (alvo, fase)."""

    def __init__(self, target: str, phase: Phase, names: tuple[str, str]) -> None:
        self.target = target
        self.phase = phase
        self.names = names
        label = target or "<generic>"
        super().__init__(
            f"handlers {names[0]!r} and {names[1]!r} both resolve to "
            f"{phase.value} {label}"
        )
