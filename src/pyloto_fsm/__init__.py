"""pyloto_fsm: máquina de estados finitos com callbacks de ciclo de vida.

Exporta:
- StateMachine: motor de transições (fire/resume/can/cannot)
- TransitionDescriptor: declaração de transição (evento, origens, destino)
- TransitionContext: objeto recebido pelos callbacks
- Phase: before/leave/enter/after
- Erros: StateMachineError e subclasses
- setup_logging: configura logging a partir de Settings
"""

from pyloto_fsm.application.machine import (
    PendingTransition,
    StateMachine,
    TransitionResult,
)
from pyloto_fsm.domain.context import TransitionContext
from pyloto_fsm.domain.errors import (
    CallbackCanceledError,
    DuplicateTransitionError,
    HandlerConflictError,
    IllegalTransitionError,
    InternalStateMachineError,
    NoTransitionInProgressError,
    StateMachineConfigError,
    StateMachineError,
    TransitionInProgressError,
    UnknownEventError,
)
from pyloto_fsm.domain.handlers import Handler, HandlerKey, HandlerRegistry
from pyloto_fsm.domain.phases import Phase
from pyloto_fsm.domain.transitions import TransitionDescriptor, TransitionTable
from pyloto_fsm.observability.logging import configure_logging, setup_logging

__all__ = [
    "StateMachine",
    "TransitionResult",
    "PendingTransition",
    "TransitionContext",
    "TransitionDescriptor",
    "TransitionTable",
    "Handler",
    "HandlerKey",
    "HandlerRegistry",
    "Phase",
    "StateMachineError",
    "StateMachineConfigError",
    "TransitionInProgressError",
    "NoTransitionInProgressError",
    "UnknownEventError",
    "IllegalTransitionError",
    "CallbackCanceledError",
    "InternalStateMachineError",
    "DuplicateTransitionError",
    "HandlerConflictError",
    "configure_logging",
    "setup_logging",
]
