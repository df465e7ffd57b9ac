"""
Tests for RequestLoggingMiddleware.
"""
import logging
from unittest.mock import patch

from app.core.logging_config import request_id_context


class TestRequestId:
    def test_generated_when_absent(self, client):
        response = client.get("/v1/questions")

        assert len(response.headers["X-Request-ID"]) == 36

    def test_client_value_echoed(self, client):
        response = client.get("/v1/ping", headers={"X-Request-ID": "quiz-tab-7"})

        assert response.headers["X-Request-ID"] == "quiz-tab-7"

    def test_context_reset_after_request(self, client):
        client.get("/v1/ping", headers={"X-Request-ID": "quiz-tab-7"})

        assert request_id_context.get() is None


class TestRequestLogLines:
    def test_successful_request_logged_at_info(self, client):
        with patch("app.middleware.request_logging.logger") as mock_logger:
            client.get("/v1/questions")

        levels = [c.args[0] for c in mock_logger.log.call_args_list]
        assert levels == [logging.INFO, logging.INFO]

        completed = mock_logger.log.call_args_list[-1]
        assert completed.args[1] == "Request completed"
        fields = completed.kwargs["extra"]
        assert fields["method"] == "GET"
        assert fields["path"] == "/v1/questions"
        assert fields["status_code"] == 200
        assert fields["duration_ms"] >= 0

    def test_probe_paths_logged_at_debug(self, client):
        with patch("app.middleware.request_logging.logger") as mock_logger:
            client.get("/v1/ping")

        levels = [c.args[0] for c in mock_logger.log.call_args_list]
        assert levels == [logging.DEBUG, logging.DEBUG]

    def test_client_error_logged_as_warning(self, client):
        with patch("app.middleware.request_logging.logger") as mock_logger:
            client.get("/v1/session/does-not-exist")

        mock_logger.warning.assert_called_once()
        fields = mock_logger.warning.call_args.kwargs["extra"]
        assert fields["status_code"] == 404
        mock_logger.error.assert_not_called()
