"""Configurações do motor FSM via variáveis de ambiente.

Todas as variáveis usam o prefixo PYLOTO_FSM_ (ex: PYLOTO_FSM_LOG_LEVEL).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_LOG_FORMATS = frozenset({"json", "text"})


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="PYLOTO_FSM_",
        case_sensitive=False,
    )

    # Aplicação
    service_name: str = "pyloto_fsm"
    environment: str = "development"

    # Observabilidade
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Validação na construção da máquina
    strict_handlers: bool = True  # Conflito de handlers levanta erro (senão: warning)
    strict_transitions: bool = True  # (evento, origem) com destinos diferentes levanta erro

    def validate_config(self) -> list[str]:
        """Valida configuração de observabilidade e modo de validação.

        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(
                f"PYLOTO_FSM_LOG_LEVEL '{self.log_level}' inválido. "
                f"Valores válidos: {sorted(VALID_LOG_LEVELS)}"
            )
        if self.log_format.lower() not in VALID_LOG_FORMATS:
            errors.append(
                f"PYLOTO_FSM_LOG_FORMAT '{self.log_format}' inválido. "
                f"Valores válidos: {sorted(VALID_LOG_FORMATS)}"
            )
        if self.is_production and not (self.strict_handlers and self.strict_transitions):
            errors.append(
                "Modo leniente (STRICT_HANDLERS/STRICT_TRANSITIONS=false) é proibido em produção"
            )
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna instância única (cacheada) de Settings."""
    return Settings()
