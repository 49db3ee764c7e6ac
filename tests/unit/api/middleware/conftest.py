"""Shared fixtures for pipeline stage tests."""

import pytest
from pytest_mock import MockerFixture, MockType
from starlette.responses import PlainTextResponse

from gov2biz.api.middleware.classification import FaultClassifier


@pytest.fixture
def classifier() -> FaultClassifier:
    """Provide the default fault classifier."""
    return FaultClassifier()


@pytest.fixture
def ok_handler(mocker: MockerFixture) -> MockType:
    """Provide a downstream handler answering 200 OK.

    Returns:
        MockType: AsyncMock recording its calls.
    """
    return mocker.AsyncMock(return_value=PlainTextResponse("ok"))
