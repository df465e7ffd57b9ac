"""
Tests for exception handlers in main.py.
"""
from unittest.mock import patch

from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.main import create_application


class TestExceptionHandlersRegistered:
    def test_handlers_exist(self):
        from app.main import app

        for exc_class in (StarletteHTTPException, RequestValidationError, Exception):
            assert exc_class in app.exception_handlers


class TestExceptionHandlerResponses:
    """Response bodies produced by the handlers."""

    def test_unhandled_exception_returns_error_id(self):
        app = create_application()

        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret internals")

        with patch("app.main.logger") as mock_logger:
            # No context manager: the lifespan (table creation) is not run
            response = TestClient(app, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        data = response.json()
        assert data["detail"] == "Internal server error"
        assert "secret internals" not in response.text
        assert len(data["error_id"]) == 36
        mock_logger.exception.assert_called_once()
        assert data["error_id"] in mock_logger.exception.call_args[0][0]

    def test_validation_error_shape(self, client):
        response = client.put("/v1/session", json={"current_question": -1})

        assert response.status_code == 422
        errors = response.json()["detail"]
        locations = [tuple(error["loc"]) for error in errors]
        assert ("body", "session_id") in locations
        assert ("body", "current_question") in locations
        for error in errors:
            assert set(error) == {"loc", "msg", "type"}
