"""Testes da tabela de transições do ciclo de vida da sessão."""

from __future__ import annotations

import pytest

from leadzap.domain.session import (
    NON_TERMINAL_STATES,
    STATUS_BY_STATE,
    TERMINAL_STATES,
    ClientEventKind,
    PersistedStatus,
    SessionState,
    validate_transition,
)


class TestHappyPath:
    def test_init_to_awaiting_pairing(self) -> None:
        ok, nxt, _ = validate_transition(SessionState.INIT, ClientEventKind.PAIRING_ARTIFACT_ISSUED)
        assert ok is True
        assert nxt is SessionState.AWAITING_PAIRING

    def test_pairing_refresh_is_self_transition(self) -> None:
        ok, nxt, _ = validate_transition(
            SessionState.AWAITING_PAIRING, ClientEventKind.PAIRING_ARTIFACT_ISSUED
        )
        assert ok is True
        assert nxt is SessionState.AWAITING_PAIRING

    @pytest.mark.parametrize("origin", [SessionState.INIT, SessionState.AWAITING_PAIRING])
    def test_authenticated_from_init_or_pairing(self, origin: SessionState) -> None:
        ok, nxt, _ = validate_transition(origin, ClientEventKind.AUTHENTICATED)
        assert ok is True
        assert nxt is SessionState.AUTHENTICATED

    def test_authenticated_to_ready(self) -> None:
        ok, nxt, _ = validate_transition(SessionState.AUTHENTICATED, ClientEventKind.READY)
        assert ok is True
        assert nxt is SessionState.READY


class TestFaults:
    @pytest.mark.parametrize("origin", sorted(NON_TERMINAL_STATES))
    def test_disconnect_from_any_non_terminal(self, origin: SessionState) -> None:
        ok, nxt, _ = validate_transition(origin, ClientEventKind.DISCONNECTED)
        assert ok is True
        assert nxt is SessionState.DISCONNECTED

    @pytest.mark.parametrize("origin", sorted(NON_TERMINAL_STATES))
    def test_client_error_from_any_non_terminal(self, origin: SessionState) -> None:
        ok, nxt, _ = validate_transition(origin, ClientEventKind.CLIENT_ERROR)
        assert ok is True
        assert nxt is SessionState.FAILED

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATES))
    @pytest.mark.parametrize("event", list(ClientEventKind))
    def test_terminal_states_have_no_transitions(
        self, terminal: SessionState, event: ClientEventKind
    ) -> None:
        ok, nxt, reason = validate_transition(terminal, event)
        assert ok is False
        assert nxt is None
        assert "Terminal" in reason


class TestInvalidEvents:
    def test_ready_before_authenticated_is_rejected(self) -> None:
        ok, nxt, reason = validate_transition(SessionState.INIT, ClientEventKind.READY)
        assert ok is False
        assert nxt is None
        assert reason

    def test_pairing_after_ready_is_rejected(self) -> None:
        ok, _, _ = validate_transition(SessionState.READY, ClientEventKind.PAIRING_ARTIFACT_ISSUED)
        assert ok is False

    def test_message_received_never_changes_state(self) -> None:
        for state in SessionState:
            ok, _, _ = validate_transition(state, ClientEventKind.MESSAGE_RECEIVED)
            assert ok is False


def test_persisted_status_mapping() -> None:
    assert STATUS_BY_STATE[SessionState.INIT] is PersistedStatus.LOADING
    assert STATUS_BY_STATE[SessionState.AWAITING_PAIRING] is PersistedStatus.QR_CODE
    assert STATUS_BY_STATE[SessionState.AUTHENTICATED] is PersistedStatus.LOADING
    assert STATUS_BY_STATE[SessionState.READY] is PersistedStatus.CONNECTED
    assert STATUS_BY_STATE[SessionState.DISCONNECTED] is PersistedStatus.DISCONNECTED
    assert STATUS_BY_STATE[SessionState.FAILED] is PersistedStatus.DISCONNECTED
    assert PersistedStatus.QR_CODE == "qrCode"
    assert PersistedStatus.CONNECTED == "conectado"
