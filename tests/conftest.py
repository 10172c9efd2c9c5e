"""Shared fixtures for docsync tests."""

import pytest
from loguru import logger

from docsync.models.api import APIElement, ElementKind, Parameter


@pytest.fixture
def make_api():
    """Factory for API elements with sensible defaults."""

    def _make(name, signature=None, is_public=True, kind=ElementKind.FUNCTION, parameters=None, **kwargs):
        return APIElement(
            kind=kind,
            name=name,
            signature=signature or f"def {name}()",
            is_public=is_public,
            parameters=parameters,
            **kwargs,
        )

    return _make


@pytest.fixture
def param():
    def _make(name, type=None, optional=False, default_value=None):
        return Parameter(name=name, type=type, optional=optional, default_value=default_value)

    return _make


@pytest.fixture
def captured_logs():
    """Collect loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record), level="DEBUG")
    yield messages
    logger.remove(handler_id)
