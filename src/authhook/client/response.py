"""Response formatting bridge -- maps :class:`httpx.Response` to the output system.

After ``authhook call`` completes, :func:`format_api_response` writes the
status line to stderr and routes the body through
:meth:`~authhook.output.OutputManager.format_response`.
"""

from __future__ import annotations

from typing import Any

import httpx

from authhook.output import get_output


def format_api_response(response: httpx.Response) -> None:
    """Format and print an API response using the global output system.

    Args:
        response: The :class:`httpx.Response` to format and display.
    """
    output = get_output()
    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}")

    data = extract_response_data(response)
    if data is not None:
        output.format_response(data)


def extract_response_data(response: httpx.Response) -> Any:
    """Return the JSON-decoded body, the raw text, or ``None`` when empty."""
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        return response.text
