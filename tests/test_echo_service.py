# =============================================================================
# tests/test_echo_service.py - Echo Service Tests
# =============================================================================

from unittest.mock import MagicMock

import pytest

from core.models.echo import EchoRequest, EchoResponse
from core.services.echo_service import EchoService


@pytest.fixture
def mock_logger():
    return MagicMock()


@pytest.fixture
def service(mock_logger):
    return EchoService(mock_logger)


class TestEcho:
    """Tests for EchoService.echo."""

    @pytest.mark.parametrize("message,author", [
        ("Hello, World!", "Alice"),
        ("Hello! @#$%^&*()", "User123"),
        ("こんにちは", "山田"),
        ("line one\nline two", "Bob"),
        ("x" * 10000, "long"),
    ])
    def test_reflects_input_unchanged(self, service, message, author):
        response = service.echo(EchoRequest(message=message, author=author))

        assert response == EchoResponse(message=message, author=author)

    def test_repeated_calls_are_identical(self, service):
        request = EchoRequest(message="again", author="Alice")

        assert service.echo(request) == service.echo(request)

    def test_logs_message_and_author(self, service, mock_logger):
        service.echo(EchoRequest(message="Hi", author="Bob"))

        mock_logger.info.assert_called_once()
        _, kwargs = mock_logger.info.call_args
        assert kwargs["extra"] == {"echo_message": "Hi", "author": "Bob"}
