"""Paths de documentos escopados por tenant.

Todo path começa em {root}/{tenant_id}; nenhum write de um tenant alcança
documentos de outro.
"""

from __future__ import annotations

from dataclasses import dataclass

from leadzap.config.settings import SESSION_DOCUMENT_ID
from leadzap.domain.errors import InvalidIdentifier


def validate_segment(value: str, field: str) -> str:
    """Garante que `value` é um único segmento de path seguro."""
    if not value or not value.strip():
        raise InvalidIdentifier(f"{field} vazio")
    if "/" in value:
        raise InvalidIdentifier(f"{field} não pode conter '/'")
    if value in (".", "..") or value.startswith("__"):
        raise InvalidIdentifier(f"{field} reservado: {value!r}")
    return value


@dataclass(frozen=True, slots=True)
class TenantPaths:
    """Construtor de paths por tenant.

    Layout:
        {root}/{tenant_id}/sessions/whatsapp
        {root}/{tenant_id}/conversations/{remote_contact_id}
        {root}/{tenant_id}/conversations/{remote_contact_id}/messages/{auto_id}
    """

    root: str = "tenant"

    def tenant(self, tenant_id: str) -> str:
        return f"{self.root}/{validate_segment(tenant_id, 'tenant_id')}"

    def session_document(self, tenant_id: str) -> str:
        return f"{self.tenant(tenant_id)}/sessions/{SESSION_DOCUMENT_ID}"

    def conversation(self, tenant_id: str, remote_contact_id: str) -> str:
        contact = validate_segment(remote_contact_id, "remote_contact_id")
        return f"{self.tenant(tenant_id)}/conversations/{contact}"

    def messages(self, tenant_id: str, remote_contact_id: str) -> str:
        return f"{self.conversation(tenant_id, remote_contact_id)}/messages"
