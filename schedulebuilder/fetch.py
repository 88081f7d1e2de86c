"""
Acquire the catalog HTML, either from a saved page or from a URL.
"""

from __future__ import annotations

from pathlib import Path

import requests

from schedulebuilder.errors import FetchError

TIMEOUT_SECONDS = 30


def fetch_html(url: str, timeout: float = TIMEOUT_SECONDS) -> str:
    """
    Download the schedule page.
    """
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"Could not download {url}: {e}") from e
    return resp.text


def read_html(source: str | Path) -> str:
    """
    Read a saved page from disk, or download it if `source` is an http(s) URL.
    """
    text = str(source)
    if text.startswith(("http://", "https://")):
        return fetch_html(text)

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FetchError(f"Could not read {path}: {e}") from e
