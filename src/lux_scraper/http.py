from __future__ import annotations

import requests

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 20


def create_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def get_page(session: requests.Session, url: str, timeout: int = DEFAULT_TIMEOUT) -> requests.Response:
    """Fetch an HTML page, decoding it with the sniffed charset rather than the header."""
    response = session.get(url, timeout=timeout)
    response.raise_for_status()
    response.encoding = response.apparent_encoding
    return response


def get_bytes(session: requests.Session, url: str, timeout: int = DEFAULT_TIMEOUT) -> bytes:
    response = session.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content
