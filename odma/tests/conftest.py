import pytest

from odma.builder import ObjectFactory
from odma.tests.records import FakeTransport


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def factory(transport):
    return ObjectFactory(transport)
