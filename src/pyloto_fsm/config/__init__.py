"""Configurações centralizadas do pyloto_fsm.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única

Uso típico:
    from pyloto_fsm.config import get_settings
"""

from pyloto_fsm.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
