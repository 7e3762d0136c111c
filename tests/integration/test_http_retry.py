"""Integration tests retrying httpx requests.

These tests run real httpx clients against a ``MockTransport`` so the
whole request/response/error path is exercised without network.
"""

from __future__ import annotations

from unittest.mock import Mock

import httpx
import pytest

from arecur import (
    MaxAttemptsExceededError,
    NoDelay,
    do,
    iterate,
    retry,
)
from arecur.http import match_http_errors, match_status_codes

URL = "https://api.example.com/data"


def make_client(*results: int | Exception) -> tuple[httpx.Client, Mock]:
    """Create a client whose transport returns the given status codes or
    raises the given errors, in order."""

    def respond(result: int | Exception, request: httpx.Request) -> httpx.Response:
        if isinstance(result, Exception):
            raise result
        return httpx.Response(result, json={"status": result}, request=request)

    results_iter = iter(results)
    handler = Mock(side_effect=lambda request: respond(next(results_iter), request))
    return httpx.Client(transport=httpx.MockTransport(handler)), handler


def fetch(client: httpx.Client) -> dict:
    response = client.get(URL)
    response.raise_for_status()
    return response.json()


###########################################
#     Integration tests for do/retry      #
###########################################


def test_do_retries_server_errors() -> None:
    client, handler = make_client(503, 502, 200)
    with client:
        data = (
            do(lambda: fetch(client))
            .with_max_attempts(5)
            .with_backoff(NoDelay())
            .retry_if(match_http_errors())
            .run()
        )
    assert data == {"status": 200}
    assert handler.call_count == 3


def test_do_retries_transport_errors() -> None:
    client, handler = make_client(httpx.ConnectError("connection refused"), 200)
    with client:
        data = do(lambda: fetch(client)).with_backoff(NoDelay()).retry_if(match_http_errors()).run()
    assert data == {"status": 200}
    assert handler.call_count == 2


def test_do_does_not_retry_client_errors() -> None:
    client, handler = make_client(404, 200)
    with client, pytest.raises(httpx.HTTPStatusError) as exc_info:
        do(lambda: fetch(client)).with_backoff(NoDelay()).retry_if(match_http_errors()).run()
    assert exc_info.value.response.status_code == 404
    assert handler.call_count == 1


def test_do_exhausted_server_errors() -> None:
    client, handler = make_client(500, 500, 500)
    with client, pytest.raises(MaxAttemptsExceededError) as exc_info:
        do(lambda: fetch(client)).with_backoff(NoDelay()).retry_if(match_http_errors()).run()
    assert isinstance(exc_info.value.last_error, httpx.HTTPStatusError)
    assert handler.call_count == 3


def test_retry_decorator_rate_limited() -> None:
    client, handler = make_client(429, 429, 200)

    @retry(max_attempts=3, backoff=NoDelay(), matcher=match_status_codes(429))
    def get_data() -> dict:
        return fetch(client)

    with client:
        assert get_data() == {"status": 200}
    assert handler.call_count == 3


#######################################
#     Integration tests for iterate   #
#######################################


def test_iterate_http_requests() -> None:
    client, handler = make_client(503, 200)
    builder = iterate().with_backoff(NoDelay()).retry_if(match_http_errors()).with_metrics("api")
    data = None
    with client, builder.seq() as attempts:
        for attempt in attempts:
            try:
                data = fetch(client)
            except httpx.HTTPError as exc:
                attempt.report(exc)
            else:
                attempt.report()
                break

    assert data == {"status": 200}
    assert handler.call_count == 2
    assert builder.metrics().snapshot() == {
        "name": "api",
        "total_attempts": 1,
        "success_count": 1,
        "failure_count": 0,
        "total_retries": 1,
    }


def test_iterate_http_non_retryable() -> None:
    client, handler = make_client(400, 200)
    builder = iterate().with_backoff(NoDelay()).retry_if(match_http_errors()).with_metrics("api")
    with client, builder.seq() as attempts:
        for attempt in attempts:
            try:
                fetch(client)
            except httpx.HTTPError as exc:
                attempt.report(exc)
            else:
                attempt.report()
                break

    assert handler.call_count == 1
    assert builder.metrics().failure_count.load() == 1
