"""
Test suite for remote status normalization and labeling result parsing.

System role: Verification of external service response interpretation
"""

import pytest

from ai_orchestrator.application.services.batch_runner import parse_label_response
from ai_orchestrator.boundary.ai_service.poll_result import (
    PollResult,
    RemoteJobState,
    extract_error,
    normalize_state,
)


class TestNormalizeState:
    """Test suite for normalize_state()."""

    @pytest.mark.parametrize("raw", ["success", "Succeeded", "COMPLETED", "complete", "done"])
    def test_success_synonyms(self, raw: str) -> None:
        assert normalize_state(raw) is RemoteJobState.SUCCESS

    @pytest.mark.parametrize("raw", ["failed", "failure", "error", "cancelled", "Canceled"])
    def test_failure_synonyms(self, raw: str) -> None:
        assert normalize_state(raw) is RemoteJobState.FAILURE

    @pytest.mark.parametrize("raw", ["running", "queued", "", None, "processing"])
    def test_anything_else_is_running(self, raw) -> None:
        assert normalize_state(raw) is RemoteJobState.RUNNING


class TestExtractError:
    """Test suite for extract_error()."""

    def test_top_level_error_wins(self) -> None:
        assert extract_error({"error": "boom", "result": {"error": "inner"}}) == "boom"

    def test_nested_result_error(self) -> None:
        assert extract_error({"result": {"error": {"message": "inner"}}}) == "inner"

    def test_default_message(self) -> None:
        assert extract_error({"status": "failed"}) == "AI job failed"


def test_poll_result_without_nested_result_returns_payload() -> None:
    result = PollResult(success=True, data={"status": "done", "count": 3})
    assert result.result == {"status": "done", "count": 3}


class TestParseLabelResponse:
    """Test suite for parse_label_response()."""

    def test_should_split_suggestions_and_failures(self) -> None:
        # Arrange
        response = {
            "suggestions": [
                {
                    "sentenceId": "s1",
                    "annotations": [
                        {"level": 1, "nodeCode": 10, "confidence": 0.8},
                        {"level": 2, "nodeCode": "11"},
                    ],
                },
                {"sentence_id": "s2", "annotations": []},
                {"sentenceId": "outside", "annotations": [{"level": 1, "nodeCode": "10"}]},
            ],
            "errors": [{"sentenceId": "s2", "error": "unreadable"}],
        }

        # Act
        suggestions, failed = parse_label_response(response, ["s1", "s2", "s3"])

        # Assert
        assert suggestions["s1"] == [
            {"level": 1, "node_code": "10", "confidence_score": 0.8},
            {"level": 2, "node_code": "11", "confidence_score": 0.0},
        ]
        assert "outside" not in suggestions
        assert failed == {"s2", "s3"}

    def test_empty_response_fails_every_sentence(self) -> None:
        suggestions, failed = parse_label_response({}, ["a", "b"])
        assert suggestions == {}
        assert failed == {"a", "b"}
