"""Configurações centralizadas do leadzap.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- SESSION_DOCUMENT_ID: id do documento de sessão persistido por tenant

Uso típico:
    from leadzap.config import get_settings
"""

from leadzap.config.settings import SESSION_DOCUMENT_ID, Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "SESSION_DOCUMENT_ID",
]
