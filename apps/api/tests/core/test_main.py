"""
Tests for the application entry point.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from app import main


def test_health_check():
    client = TestClient(main.app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_run_serves_app_with_uvicorn():
    with patch("uvicorn.run") as serve:
        main.run()

    serve.assert_called_once()
    assert serve.call_args.args == ("app.main:app",)
    assert serve.call_args.kwargs["port"] == 8000
