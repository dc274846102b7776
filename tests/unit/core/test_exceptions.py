"""Unit tests for the exception hierarchy."""

import pytest

from src.core.exceptions import (
    AbortedOperationError,
    ErrorCode,
    MaintenanceModeError,
    OperationTimeoutError,
    PersistenceError,
    RemoteStoreError,
    SaveInProgressError,
    Severity,
    ValidationError,
    VatCalcError,
)


@pytest.mark.unit
class TestVatCalcError:
    """The base exception."""

    def test_accepts_enum_or_string_code(self) -> None:
        """Codes are normalized to their string value."""
        assert VatCalcError(ErrorCode.NOT_FOUND, "x").error_code == "NOT_FOUND"
        assert VatCalcError("CUSTOM", "x").error_code == "CUSTOM"

    def test_str_and_repr(self) -> None:
        """String forms carry the code, message and context."""
        error = VatCalcError(
            ErrorCode.INTERNAL_ERROR, "Boom", context={"field": "rate"}
        )

        assert str(error) == "[INTERNAL_ERROR] Boom"
        assert repr(error) == (
            "VatCalcError(error_code='INTERNAL_ERROR', message='Boom', "
            "severity=MEDIUM, context={'field': 'rate'})"
        )

    def test_cause_is_chained(self) -> None:
        """The original exception becomes __cause__."""
        cause = OSError("disk full")
        error = PersistenceError("Failed to save settings", cause=cause)

        assert error.cause is cause
        assert error.__cause__ is cause

    def test_stack_trace_is_captured(self) -> None:
        """The creation stack is kept for debug responses."""
        assert VatCalcError(ErrorCode.INTERNAL_ERROR, "x").stack_trace

    def test_context_defaults_to_empty(self) -> None:
        """A missing context is an empty dict, never None."""
        assert VatCalcError(ErrorCode.INTERNAL_ERROR, "x").context == {}


@pytest.mark.unit
class TestSpecializedErrors:
    """Codes and severities of the concrete exceptions."""

    @pytest.mark.parametrize(
        ("error", "code", "severity"),
        [
            (ValidationError("bad"), ErrorCode.VALIDATION_ERROR, Severity.LOW),
            (SaveInProgressError(), ErrorCode.SAVE_IN_PROGRESS, Severity.LOW),
            (
                OperationTimeoutError("Save settings", 5000),
                ErrorCode.OPERATION_TIMEOUT,
                Severity.MEDIUM,
            ),
            (
                AbortedOperationError("Save settings"),
                ErrorCode.OPERATION_ABORTED,
                Severity.LOW,
            ),
            (RemoteStoreError("down"), ErrorCode.REMOTE_UNAVAILABLE, Severity.MEDIUM),
            (PersistenceError("lost"), ErrorCode.PERSISTENCE_FAILED, Severity.HIGH),
            (MaintenanceModeError(), ErrorCode.MAINTENANCE_MODE, Severity.LOW),
        ],
    )
    def test_code_and_severity(
        self, error: VatCalcError, code: ErrorCode, severity: Severity
    ) -> None:
        """Each exception carries its fixed code and severity."""
        assert error.error_code == code.value
        assert error.severity is severity

    def test_only_persistence_failures_alert(self) -> None:
        """Losing a change pages someone; contention does not."""
        assert PersistenceError("lost").should_alert is True
        assert SaveInProgressError().should_alert is False
        assert SaveInProgressError().is_expected is True

    def test_timeout_message_uses_label(self) -> None:
        """The timeout message is the operation label plus 'timeout'."""
        error = OperationTimeoutError("Create initial document", 5000)

        assert error.message == "Create initial document timeout"
        assert error.context == {
            "operation": "Create initial document",
            "timeout_ms": 5000,
        }

    def test_default_messages(self) -> None:
        """Errors shown to end users have ready-made messages."""
        assert SaveInProgressError().message == (
            "A settings save is already in progress"
        )
        assert "under maintenance" in MaintenanceModeError().message
