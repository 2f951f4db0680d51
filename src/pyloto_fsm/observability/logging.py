"""Configuração de logging estruturado (JSON ou texto).

O nome da máquina em execução é propagado por ContextVar durante fire()/resume(),
de modo que logs emitidos dentro dos callbacks também saem com ``machine``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from pyloto_fsm.config.settings import Settings, get_settings
from pyloto_fsm.domain.errors import StateMachineConfigError

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(machine)s] %(message)s"
_JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s %(machine)s %(service)s"

_machine_name: ContextVar[str] = ContextVar("machine_name", default="")


def get_machine_name() -> str:
    """Retorna o nome da máquina em transição (ou vazio)."""

    return _machine_name.get()


@contextmanager
def machine_context(name: str) -> Iterator[None]:
    """Marca ``name`` como máquina corrente enquanto o bloco executa."""

    token = _machine_name.set(name)
    try:
        yield
    finally:
        _machine_name.reset(token)


class ServiceNameFilter(logging.Filter):
    """Preenche ``service`` e ``machine`` em todo record.

    ``machine`` vem do ``extra`` quando presente; senão, da máquina em transição.
    Importante: nunca adicionar os args opacos das transições nos logs.
    """

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        explicit = getattr(record, "machine", None)
        record.machine = explicit or get_machine_name() or "-"
        record.service = self._service_name
        return True


def configure_logging(level: str, service_name: str, log_format: str = "json") -> None:
    """Instala um único handler no root logger (json | text)."""

    formatter: logging.Formatter
    if log_format == "text":
        formatter = logging.Formatter(_TEXT_FORMAT)
    else:
        formatter = JsonFormatter(
            _JSON_FIELDS,
            rename_fields={"levelname": "level", "name": "logger"},
        )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(ServiceNameFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def setup_logging(settings: Settings | None = None) -> Settings:
    """Valida settings e configura logging a partir deles.

    Raises:
        StateMachineConfigError: settings.validate_config() reportou erros
    """
    if settings is None:
        settings = get_settings()

    errors = settings.validate_config()
    if errors:
        raise StateMachineConfigError(f"Configuração inválida: {'; '.join(errors)}")

    configure_logging(
        settings.log_level.upper(),
        settings.service_name,
        settings.log_format.lower(),
    )
    return settings


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
