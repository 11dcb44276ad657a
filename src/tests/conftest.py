import pytest

from src.tests.helpers import VALID_KEY, RecordingSleep


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def api_key():
    return VALID_KEY
