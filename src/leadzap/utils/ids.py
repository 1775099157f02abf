"""Geradores e normalizadores de identificadores."""

from __future__ import annotations

import uuid


def new_session_id() -> str:
    """Gera um session_id único."""

    return str(uuid.uuid4())


def contact_id_from_jid(jid: str) -> str:
    """Extrai o número de um JID do WhatsApp (5511...@s.whatsapp.net → 5511...)."""

    return jid.split("@", 1)[0]


def mask_identifier(value: str | None) -> str:
    """Mascara identificadores com PII (telefones) para logging."""

    if not value:
        return ""
    if len(value) <= 4:
        return "***"
    return "***" + value[-4:]
