"""StateMachine: motor de transições com callbacks de ciclo de vida.

Ordem de disparo numa transição síncrona:
before(nome) → before(genérico) → leave(nome) → leave(genérico)
→ [estado muda] → enter(nome) → enter(genérico) → after(nome) → after(genérico)

Invariante: no máximo uma transição em andamento por máquina, do before
ao fim do after (ou até resume(), se adiada).
Sem sincronização interna; em ambiente multithread, serialize externamente.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, NoReturn

from pyloto_fsm.config.settings import Settings, get_settings
from pyloto_fsm.domain.context import TransitionContext
from pyloto_fsm.domain.errors import (
    CallbackCanceledError,
    IllegalTransitionError,
    InternalStateMachineError,
    NoTransitionInProgressError,
    StateMachineConfigError,
    TransitionInProgressError,
    UnknownEventError,
)
from pyloto_fsm.domain.handlers import Handler, HandlerRegistry
from pyloto_fsm.domain.phases import GENERIC_TARGET, Phase
from pyloto_fsm.domain.transitions import TransitionDescriptor, TransitionTable
from pyloto_fsm.observability.logging import get_logger, machine_context

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PendingTransition:
    """Transição adiada: contexto + dados para concluí-la no resume()."""

    context: TransitionContext

    @property
    def event(self) -> str:
        return self.context.event

    @property
    def source(self) -> str:
        return self.context.source

    @property
    def destination(self) -> str:
        return self.context.destination


@dataclass(slots=True)
class TransitionResult:
    """Resultado de fire()/resume() bem-sucedido.

    Contém:
    - event/source/destination: a transição tentada
    - error: valor deixado no contexto por algum callback (pode ser None)
    - deferred: True se a transição ficou suspensa aguardando resume()
    - noop: True se destino == origem (nenhum callback executado)
    """

    event: str
    source: str
    destination: str
    error: Any = None
    deferred: bool = False
    noop: bool = False

    @property
    def completed(self) -> bool:
        """True se o estado atual já é o destino."""
        return not self.deferred


class StateMachine:
    """Máquina de estados finitos construída a partir de descritores e handlers."""

    def __init__(
        self,
        initial: str,
        transitions: Iterable[TransitionDescriptor | dict[str, Any]],
        handlers: Mapping[str, Handler] | None = None,
        *,
        name: str = "fsm",
        settings: Settings | None = None,
    ) -> None:
        """Constrói tabela e registro de handlers (uma única vez).

        Args:
            initial: estado inicial
            transitions: descritores (ou dicts com event/sources/destination)
            handlers: nome do handler → callback(TransitionContext)
            name: identificação da máquina nos logs
            settings: configuração (padrão: get_settings())

        Raises:
            DuplicateTransitionError / HandlerConflictError em modo estrito
            StateMachineConfigError se settings.validate_config() reporta erros
            ValueError se ``initial`` é vazio
        """
        if not initial:
            raise ValueError("initial state must be a non-empty string")

        if settings is None:
            settings = get_settings()
        validation_errors = settings.validate_config()
        if validation_errors:
            raise StateMachineConfigError(
                f"Configuração inválida: {'; '.join(validation_errors)}"
            )

        self.name = name
        self._current = initial
        self._table = TransitionTable.from_specs(
            transitions, strict=settings.strict_transitions
        )
        self._handlers = HandlerRegistry(
            handlers or {},
            self._table.events,
            self._table.states,
            strict=settings.strict_handlers,
        )
        self._pending: PendingTransition | None = None
        self._in_flight: TransitionContext | None = None

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------

    @property
    def current(self) -> str:
        """Estado atual (durante transição adiada, ainda o estado de origem)."""
        return self._current

    def is_state(self, state: str) -> bool:
        """True se ``state`` é o estado atual."""
        return state == self._current

    def can(self, event: str) -> bool:
        """True se ``event`` pode ocorrer agora (declarado e nenhuma transição em andamento)."""
        return (event, self._current) in self._table and self._in_flight is None

    def cannot(self, event: str) -> bool:
        """Negação de can()."""
        return not self.can(event)

    @property
    def pending(self) -> PendingTransition | None:
        """Transição adiada aguardando resume(), se houver."""
        return self._pending

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    @property
    def events(self) -> frozenset[str]:
        return self._table.events

    @property
    def states(self) -> frozenset[str]:
        return self._table.states

    # ------------------------------------------------------------------
    # Mutação
    # ------------------------------------------------------------------

    def fire(self, event: str, *args: Any) -> TransitionResult:
        """Dispara ``event`` a partir do estado atual.

        ``args`` são opacos e repassados aos callbacks via ``context.args``.

        Returns:
            TransitionResult (completed, deferred ou noop)

        Raises:
            TransitionInProgressError: há transição em andamento (adiada ou em execução)
            UnknownEventError: evento não declarado
            IllegalTransitionError: evento não permitido no estado atual
            CallbackCanceledError: before/leave cancelou
            InternalStateMachineError: falha interna (bug do motor)
        """
        if self._in_flight is not None:
            self._log_rejected(event, "transition_in_progress")
            raise TransitionInProgressError(event, self._in_flight.event)

        source = self._current
        destination = self._table.destination(event, source)
        if destination is None:
            if self._table.has_event(event):
                self._log_rejected(event, "illegal_transition")
                raise IllegalTransitionError(event, source)
            self._log_rejected(event, "unknown_event")
            raise UnknownEventError(event)

        if destination == source:
            logger.debug(
                "fsm_transition_noop",
                extra={"machine": self.name, "event": event, "state": source},
            )
            return TransitionResult(event, source, destination, noop=True)

        context = TransitionContext(
            machine=self,
            event=event,
            source=source,
            destination=destination,
            args=args,
        )

        # Máquina ocupada até concluir, cancelar ou falhar; permanece ocupada se adiada
        self._in_flight = context
        try:
            with machine_context(self.name):
                for handler in self._handlers_for(event, Phase.BEFORE_EVENT, context):
                    handler(context)
                    if context.canceled:
                        self._cancel(context)

                # Continuação preparada; só vira pendente se algum leave adiar
                pending = PendingTransition(context)

                for handler in self._handlers_for(source, Phase.LEAVE_STATE, context):
                    handler(context)
                    if context.canceled:
                        self._cancel(context)
                    if context.deferred:
                        self._pending = pending
                        logger.info(
                            "fsm_transition_deferred",
                            extra=self._log_extra(context),
                        )
                        return self._result(context, deferred=True)
        except BaseException:
            self._in_flight = None
            raise

        self._pending = pending
        try:
            return self._execute_pending()
        except NoTransitionInProgressError as exc:
            self._pending = None
            self._in_flight = None
            raise InternalStateMachineError() from exc

    def resume(self) -> TransitionResult:
        """Conclui a transição adiada por um handler leave.

        Raises:
            NoTransitionInProgressError: nenhuma transição pendente
        """
        result = self._execute_pending()
        logger.debug("fsm_transition_resumed", extra=self._log_extra(result))
        return result

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    def _execute_pending(self) -> TransitionResult:
        pending = self._pending
        if pending is None:
            raise NoTransitionInProgressError()

        context = pending.context
        try:
            with machine_context(self.name):
                self._current = context.destination
                for handler in self._handlers_for(context.destination, Phase.ENTER_STATE, context):
                    handler(context)
                for handler in self._handlers_for(context.event, Phase.AFTER_EVENT, context):
                    handler(context)
        finally:
            self._pending = None
            self._in_flight = None
            context.phase = None

        logger.debug("fsm_transition_completed", extra=self._log_extra(context))
        return self._result(context)

    def _handlers_for(
        self, target: str, phase: Phase, context: TransitionContext
    ) -> list[Handler]:
        """Handlers da fase: primeiro o nomeado, depois o genérico."""
        context.phase = phase
        found = (
            self._handlers.get(target, phase),
            self._handlers.get(GENERIC_TARGET, phase),
        )
        return [handler for handler in found if handler is not None]

    def _cancel(self, context: TransitionContext) -> NoReturn:
        context.phase = None
        logger.info(
            "fsm_transition_canceled",
            extra={**self._log_extra(context), "has_error": context.error is not None},
        )
        error = CallbackCanceledError(context)
        if isinstance(context.error, BaseException):
            raise error from context.error
        raise error

    def _result(self, context: TransitionContext, *, deferred: bool = False) -> TransitionResult:
        return TransitionResult(
            event=context.event,
            source=context.source,
            destination=context.destination,
            error=context.error,
            deferred=deferred,
        )

    def _log_extra(self, item: TransitionContext | TransitionResult) -> dict[str, Any]:
        extra: dict[str, Any] = {
            "machine": self.name,
            "event": item.event,
            "source": item.source,
            "destination": item.destination,
        }
        if isinstance(item, TransitionContext):
            extra["args_count"] = len(item.args)
        return extra

    def _log_rejected(self, event: str, reason: str) -> None:
        logger.debug(
            "fsm_transition_rejected",
            extra={"machine": self.name, "event": event, "state": self._current, "reason": reason},
        )

    def __repr__(self) -> str:
        pending = f", pending={self._pending.event!r}" if self._pending else ""
        return f"StateMachine(name={self.name!r}, current={self._current!r}{pending})"
