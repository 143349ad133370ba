import pytest

from app.core.config import Settings
from tests.fakes import make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()
