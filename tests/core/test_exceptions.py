"""
Test suite for the orchestrator exception hierarchy.

System role: Verification of error messages persisted on jobs
"""

from ai_orchestrator.core.exceptions import (
    BatchFailedError,
    JobNotFoundError,
    RemoteError,
    ValidationError,
    error_text,
)


def test_error_text_should_drop_details_of_domain_exceptions() -> None:
    # Arrange
    error = BatchFailedError("remote said no", batch_index=2)

    # Act / Assert
    assert "Details" in str(error)
    assert error_text(error) == "remote said no"
    assert error.details == {"batch_index": 2}


def test_error_text_should_fall_back_to_type_name() -> None:
    assert error_text(ValueError("bad value")) == "bad value"
    assert error_text(RuntimeError()) == "RuntimeError"


def test_remote_error_should_record_status_code() -> None:
    # Act
    error = RemoteError("AI labeling API error (503): down", status_code=503, body="down")

    # Assert
    assert error.status_code == 503
    assert error.details["status_code"] == 503


def test_not_found_and_validation_messages() -> None:
    assert JobNotFoundError("abc").message == "Job not found: abc"
    assert ValidationError("bad", field="taxonomy_key").details == {"field": "taxonomy_key"}
