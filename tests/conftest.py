"""Shared fixtures."""

import pytest

from constants import Constants

from pom_builders import FakeRepositoryClient


@pytest.fixture
def fake_client():
    """Repository with org.a:lib 1.2.0/1.3.0/1.4.0/2.0.0 and no POMs."""
    return FakeRepositoryClient(versions={("org.a", "lib"): ["1.2.0", "1.3.0", "1.4.0", "2.0.0"]})


@pytest.fixture(autouse=True)
def restore_constants():
    """Undo any Constants mutation made by config/CLI code under test."""
    saved = {k: v for k, v in vars(Constants).items() if not k.startswith("__")}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
