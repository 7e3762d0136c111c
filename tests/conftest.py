from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import pytest

from arecur.context import Context

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_wait() -> Generator[Mock, None, None]:
    """Patch Context.wait to make tests run faster.

    The mock returns ``False``, meaning the full delay elapsed. It is
    created with ``autospec`` so each call records the context as first
    argument and the delay as second argument.
    """
    with patch.object(Context, "wait", autospec=True, return_value=False) as mock:
        yield mock


@pytest.fixture
def mock_operation() -> Mock:
    """Create a mock operation that succeeds on the first call."""
    return Mock(return_value="ok")


@pytest.fixture
def mock_hook() -> Mock:
    """Create a mock hook for testing hook invocations."""
    return Mock()
