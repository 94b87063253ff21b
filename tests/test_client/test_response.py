"""Tests for the response formatting bridge."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from authhook.client.response import extract_response_data, format_api_response
from authhook.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_response(
    status_code: int = 200,
    content: bytes | None = None,
    json_data: object | None = None,
    text: str | None = None,
) -> httpx.Response:
    request = httpx.Request("GET", "https://billing.example.com/invoices")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    if text is not None:
        return httpx.Response(status_code, text=text, request=request)
    return httpx.Response(status_code, content=content or b"", request=request)


@pytest.fixture
def mock_output() -> MagicMock:
    output = MagicMock(spec=OutputManager)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# format_api_response
# ---------------------------------------------------------------------------


class TestFormatApiResponse:
    def test_json_response_formatting(self, mock_output: MagicMock) -> None:
        format_api_response(_make_response(json_data={"invoices": [{"id": 1}]}))

        status_line = mock_output.info.call_args_list[0].args[0]
        assert status_line.startswith("HTTP 200")
        mock_output.format_response.assert_called_once_with({"invoices": [{"id": 1}]})

    def test_plain_text_response_formatting(self, mock_output: MagicMock) -> None:
        format_api_response(_make_response(text="Hello, plain text response"))
        mock_output.format_response.assert_called_once_with("Hello, plain text response")

    def test_empty_response_body(self, mock_output: MagicMock) -> None:
        format_api_response(_make_response(status_code=204))
        mock_output.info.assert_called()
        mock_output.format_response.assert_not_called()

    def test_status_line_includes_reason(self, mock_output: MagicMock) -> None:
        format_api_response(_make_response(status_code=201, json_data={"id": 42}))
        assert mock_output.info.call_args_list[0].args[0] == "HTTP 201 Created"


# ---------------------------------------------------------------------------
# extract_response_data
# ---------------------------------------------------------------------------


class TestExtractResponseData:
    def test_json_parse(self) -> None:
        data = extract_response_data(_make_response(json_data={"key": "value", "nested": {"a": 1}}))
        assert data == {"key": "value", "nested": {"a": 1}}

    def test_json_list_parse(self) -> None:
        assert extract_response_data(_make_response(json_data=[1, 2, 3])) == [1, 2, 3]

    def test_fallback_to_text(self) -> None:
        assert extract_response_data(_make_response(text="This is not JSON")) == "This is not JSON"

    def test_empty_body_returns_none(self) -> None:
        assert extract_response_data(_make_response(status_code=204)) is None

    def test_malformed_json_falls_back_to_text(self) -> None:
        data = extract_response_data(_make_response(content=b'{"broken": json'))
        assert data == '{"broken": json'
