r"""Error matchers for HTTP calls made with httpx.

These matchers select which httpx errors are transient. They are
regular matchers and compose with the combinators of
``arecur.matcher``.

Example:
    ```pycon
    >>> import httpx
    >>> from arecur.http import match_http_errors
    >>> from arecur.retrier import do
    >>> def fetch():
    ...     response = httpx.get("https://api.example.com/data")
    ...     response.raise_for_status()
    ...     return response.json()
    ...
    >>> data = do(fetch).retry_if(match_http_errors()).run()  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "RETRY_STATUS_CODES",
    "match_http_errors",
    "match_status_codes",
    "match_transport_errors",
]

import httpx

from arecur.exceptions import iter_error_chain
from arecur.matcher import ErrorMatcher, match_types, or_

# HTTP status codes that usually indicate a transient failure
# 429: Too Many Requests - Rate limiting
# 500: Internal Server Error - Temporary server issue
# 502: Bad Gateway - Upstream server error
# 503: Service Unavailable - Server overloaded or down
# 504: Gateway Timeout - Upstream server timeout
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# Network level httpx errors (connect, read, write, timeout, protocol...)
match_transport_errors: ErrorMatcher = match_types(httpx.TransportError)


def match_status_codes(*status_codes: int) -> ErrorMatcher:
    """Create a matcher for ``httpx.HTTPStatusError`` with specific
    status codes.

    Args:
        *status_codes: The HTTP status codes to retry. Defaults to
            ``RETRY_STATUS_CODES`` when none is given.

    Returns:
        The matcher.

    Example:
        ```pycon
        >>> import httpx
        >>> from arecur.http import match_status_codes
        >>> request = httpx.Request("GET", "https://example.com")
        >>> response = httpx.Response(503, request=request)
        >>> error = httpx.HTTPStatusError("unavailable", request=request, response=response)
        >>> match_status_codes()(error)
        True
        >>> match_status_codes(429)(error)
        False

        ```
    """
    codes = frozenset(status_codes or RETRY_STATUS_CODES)

    def matcher(error: BaseException | None) -> bool:
        return any(
            isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code in codes
            for exc in iter_error_chain(error)
        )

    return matcher


def match_http_errors(status_codes: tuple[int, ...] = RETRY_STATUS_CODES) -> ErrorMatcher:
    """Create a matcher for transient httpx errors.

    Args:
        status_codes: The HTTP status codes to retry.

    Returns:
        A matcher accepting transport errors and HTTP status errors
            with one of the status codes.
    """
    return or_(match_transport_errors, match_status_codes(*status_codes))
