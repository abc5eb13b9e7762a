import pytest

from tests.helpers import read_fixture


@pytest.fixture
def fixture_xml():
    """Return the raw bytes of an XML sample under tests/fixtures."""
    return read_fixture
