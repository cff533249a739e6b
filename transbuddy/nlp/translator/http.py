from __future__ import annotations

from typing import Any, Sequence, Union

import requests

from .errors import ProviderError, TransportError

DEFAULT_TIMEOUT = 15.0


def new_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": "transbuddy/0.1"})
    return session


def send(
    session: Any,
    method: str,
    url: str,
    *,
    provider: str,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs: Any,
) -> requests.Response:
    try:
        return session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise TransportError(f"{provider} request failed: {e}") from e


def read_json(resp: requests.Response, *, provider: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise ProviderError(
            f"{provider} returned a non-JSON response (HTTP {resp.status_code})"
        ) from e


def unwrap(data: Any, path: Sequence[Union[str, int]], *, provider: str) -> str:
    """Walk keys/indices in `path` and return the string found there."""
    node = data
    for step in path:
        try:
            node = node[step]
        except (KeyError, IndexError, TypeError) as e:
            where = ".".join(str(p) for p in path)
            raise ProviderError(f"{provider} response is missing '{where}'") from e
    if not isinstance(node, str):
        raise ProviderError(f"{provider} response did not contain translated text")
    return node
