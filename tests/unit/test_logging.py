"""Testes para logging estruturado e eventos de log do motor."""

from __future__ import annotations

import io
import json
import logging

import pytest

from pyloto_fsm.application.machine import StateMachine
from pyloto_fsm.config.settings import Settings
from pyloto_fsm.domain.errors import (
    CallbackCanceledError,
    StateMachineConfigError,
    UnknownEventError,
)
from pyloto_fsm.observability.logging import (
    ServiceNameFilter,
    configure_logging,
    get_machine_name,
    machine_context,
    setup_logging,
)

RUN = [{"event": "run", "sources": ["start"], "destination": "end"}]


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """configure_logging instala um único handler no root."""

    def test_json_output(self, restore_root_logger) -> None:
        configure_logging("INFO", "svc-test")
        handler = restore_root_logger.handlers[0]
        stream = io.StringIO()
        handler.setStream(stream)

        logging.getLogger("pyloto_fsm.test").info("hello", extra={"machine": "door"})

        payload = json.loads(stream.getvalue())
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "pyloto_fsm.test"
        assert payload["service"] == "svc-test"
        assert payload["machine"] == "door"

    def test_text_output(self, restore_root_logger) -> None:
        configure_logging("DEBUG", "svc-test", log_format="text")
        handler = restore_root_logger.handlers[0]
        stream = io.StringIO()
        handler.setStream(stream)

        logging.getLogger("pyloto_fsm.test").debug("hello")

        line = stream.getvalue()
        assert "DEBUG" in line
        assert "[-] hello" in line

    def test_single_handler(self, restore_root_logger) -> None:
        configure_logging("INFO", "svc-test")
        configure_logging("INFO", "svc-test")
        assert len(restore_root_logger.handlers) == 1


class TestServiceNameFilter:
    def test_injects_defaults(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert ServiceNameFilter("svc").filter(record) is True
        assert record.service == "svc"  # type: ignore[attr-defined]
        assert record.machine == "-"  # type: ignore[attr-defined]

    def test_machine_from_context(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        with machine_context("door"):
            ServiceNameFilter("svc").filter(record)
        assert record.machine == "door"  # type: ignore[attr-defined]

    def test_explicit_extra_wins_over_context(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        record.machine = "light"
        with machine_context("door"):
            ServiceNameFilter("svc").filter(record)
        assert record.machine == "light"  # type: ignore[attr-defined]


class TestMachineContext:
    def test_reset_on_exit(self) -> None:
        with machine_context("door"):
            assert get_machine_name() == "door"
            with machine_context("light"):
                assert get_machine_name() == "light"
            assert get_machine_name() == "door"
        assert get_machine_name() == ""

    def test_handler_logs_carry_machine_name(self, restore_root_logger) -> None:
        """Log emitido dentro de um callback sai com o nome da máquina."""
        configure_logging("INFO", "svc-test", log_format="text")
        stream = io.StringIO()
        restore_root_logger.handlers[0].setStream(stream)

        def enter(ctx) -> None:
            logging.getLogger("app.handlers").info("door opened")

        fsm = StateMachine("start", RUN, {"enter_end": enter}, name="door")
        fsm.fire("run")

        assert "[door] door opened" in stream.getvalue()
        assert get_machine_name() == ""


class TestSetupLogging:
    """setup_logging aplica log_level/log_format/service_name de Settings."""

    def test_applies_settings(self, restore_root_logger) -> None:
        settings = Settings(log_level="debug", log_format="TEXT", service_name="svc-fsm")
        assert setup_logging(settings) is settings

        handler = restore_root_logger.handlers[0]
        stream = io.StringIO()
        handler.setStream(stream)
        logging.getLogger("pyloto_fsm.test").debug("hello")

        assert restore_root_logger.level == logging.DEBUG
        assert "[-] hello" in stream.getvalue()

    def test_json_service_name(self, restore_root_logger) -> None:
        setup_logging(Settings(service_name="svc-fsm"))
        stream = io.StringIO()
        restore_root_logger.handlers[0].setStream(stream)
        logging.getLogger("pyloto_fsm.test").info("hello")

        assert json.loads(stream.getvalue())["service"] == "svc-fsm"

    def test_invalid_settings_rejected(self, restore_root_logger) -> None:
        handlers = restore_root_logger.handlers[:]
        with pytest.raises(StateMachineConfigError):
            setup_logging(Settings(log_level="LOUD"))
        assert restore_root_logger.handlers == handlers


class TestMachineLogEvents:
    """Eventos de log emitidos pelo motor (sem args opacos)."""

    def test_completed_transition_logged(self, caplog) -> None:
        fsm = StateMachine("start", RUN, name="door")
        with caplog.at_level(logging.DEBUG, logger="pyloto_fsm"):
            fsm.fire("run", {"secret": "value"})

        record = next(r for r in caplog.records if r.message == "fsm_transition_completed")
        assert record.machine == "door"  # type: ignore[attr-defined]
        assert record.source == "start"  # type: ignore[attr-defined]
        assert record.destination == "end"  # type: ignore[attr-defined]
        assert record.args_count == 1  # type: ignore[attr-defined]
        assert "secret" not in caplog.text

    def test_rejected_transition_logged(self, caplog) -> None:
        fsm = StateMachine("start", RUN)
        with caplog.at_level(logging.DEBUG, logger="pyloto_fsm"):
            with pytest.raises(UnknownEventError):
                fsm.fire("lock")

        record = next(r for r in caplog.records if r.message == "fsm_transition_rejected")
        assert record.reason == "unknown_event"  # type: ignore[attr-defined]

    def test_canceled_transition_logged(self, caplog) -> None:
        fsm = StateMachine("start", RUN, {"before_event": lambda ctx: ctx.cancel()})
        with caplog.at_level(logging.INFO, logger="pyloto_fsm"):
            with pytest.raises(CallbackCanceledError):
                fsm.fire("run")

        record = next(r for r in caplog.records if r.message == "fsm_transition_canceled")
        assert record.levelno == logging.INFO
        assert record.has_error is False  # type: ignore[attr-defined]

    def test_deferred_transition_logged(self, caplog) -> None:
        fsm = StateMachine("start", RUN, {"leave_state": lambda ctx: ctx.defer()})
        with caplog.at_level(logging.INFO, logger="pyloto_fsm"):
            fsm.fire("run")

        assert any(r.message == "fsm_transition_deferred" for r in caplog.records)
