r"""Error matchers deciding whether an error warrants a retry.

An error matcher is a plain predicate ``(error) -> bool``. The engine
retries an attempt only when the configured matcher returns ``True``
for the error raised by the operation. Matchers compose with
``and_``, ``or_`` and ``not_``.

Example:
    ```pycon
    >>> from arecur.matcher import and_, match_types, not_
    >>> matcher = and_(match_types(OSError), not_(match_types(PermissionError)))
    >>> matcher(ConnectionError("reset"))
    True
    >>> matcher(PermissionError("denied"))
    False
    >>> matcher(None)
    False

    ```
"""

from __future__ import annotations

__all__ = [
    "ErrorMatcher",
    "and_",
    "match_any",
    "match_errors",
    "match_func",
    "match_none",
    "match_types",
    "not_",
    "or_",
]

from collections.abc import Callable
from typing import TypeAlias

from arecur.exceptions import iter_error_chain

ErrorMatcher: TypeAlias = Callable[[BaseException | None], bool]


def match_any(error: BaseException | None) -> bool:
    """Match any error.

    This is the default matcher: every error is retried.

    Args:
        error: The error to evaluate.

    Returns:
        ``True`` if ``error`` is not ``None``.

    Example:
        ```pycon
        >>> from arecur.matcher import match_any
        >>> match_any(ValueError("boom"))
        True
        >>> match_any(None)
        False

        ```
    """
    return error is not None


def match_none(error: BaseException | None) -> bool:  # noqa: ARG001
    """Match no error, which disables retries.

    Args:
        error: The error to evaluate (unused).

    Returns:
        Always ``False``.
    """
    return False


def match_errors(*targets: BaseException) -> ErrorMatcher:
    """Create a matcher that retries only specific error values.

    An error matches a target if it is the target (or compares equal to
    it), or if an error on its cause/context chain does. This is useful
    with module-level sentinel errors.

    Args:
        *targets: The error values to retry.

    Returns:
        The matcher.

    Example:
        ```pycon
        >>> from arecur.matcher import match_errors
        >>> TEMPORARY = ConnectionError("temporary")
        >>> matcher = match_errors(TEMPORARY)
        >>> matcher(TEMPORARY)
        True
        >>> matcher(ConnectionError("temporary"))
        False
        >>> matcher(None)
        False

        ```
    """

    def matcher(error: BaseException | None) -> bool:
        for exc in iter_error_chain(error):
            for target in targets:
                if exc is target or exc == target:
                    return True
        return False

    return matcher


def match_types(*types: type[BaseException]) -> ErrorMatcher:
    """Create a matcher that retries only specific error types.

    An error matches if it, or an error on its cause/context chain, is
    an instance of one of the types.

    Args:
        *types: The error types to retry.

    Returns:
        The matcher.

    Example:
        ```pycon
        >>> from arecur.matcher import match_types
        >>> matcher = match_types(TimeoutError, ConnectionError)
        >>> matcher(TimeoutError())
        True
        >>> matcher(ValueError())
        False

        ```
    """

    def matcher(error: BaseException | None) -> bool:
        return any(isinstance(exc, types) for exc in iter_error_chain(error))

    return matcher


def match_func(predicate: Callable[[BaseException | None], bool]) -> ErrorMatcher:
    """Create a matcher from a custom predicate.

    Args:
        predicate: The predicate to use. It receives the error (or
            ``None``) and returns whether to retry.

    Returns:
        The matcher.

    Example:
        ```pycon
        >>> from arecur.matcher import match_func
        >>> matcher = match_func(lambda error: "retry" in str(error))
        >>> matcher(RuntimeError("please retry"))
        True

        ```
    """

    def matcher(error: BaseException | None) -> bool:
        return bool(predicate(error))

    return matcher


def not_(matcher: ErrorMatcher) -> ErrorMatcher:
    """Invert a matcher.

    Args:
        matcher: The matcher to invert.

    Returns:
        The inverted matcher.
    """

    def inverted(error: BaseException | None) -> bool:
        return not matcher(error)

    return inverted


def and_(*matchers: ErrorMatcher) -> ErrorMatcher:
    """Combine matchers with AND logic.

    The matchers are evaluated from left to right and the evaluation
    stops at the first matcher returning ``False``.

    Args:
        *matchers: The matchers to combine.

    Returns:
        A matcher returning ``True`` if all the matchers return ``True``.
    """

    def combined(error: BaseException | None) -> bool:
        return all(matcher(error) for matcher in matchers)

    return combined


def or_(*matchers: ErrorMatcher) -> ErrorMatcher:
    """Combine matchers with OR logic.

    The matchers are evaluated from left to right and the evaluation
    stops at the first matcher returning ``True``.

    Args:
        *matchers: The matchers to combine.

    Returns:
        A matcher returning ``True`` if at least one matcher returns
            ``True``.
    """

    def combined(error: BaseException | None) -> bool:
        return any(matcher(error) for matcher in matchers)

    return combined
