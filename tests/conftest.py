import pytest

from auth.client_registry import MemoryClientRegistry
from auth.models import ClientRecord


@pytest.fixture
def c1() -> ClientRecord:
    return ClientRecord(
        client_id="c1",
        secret="c1-secret",
        allowed_callbacks=frozenset({"https://app.example/cb"}),
    )


@pytest.fixture
def c2() -> ClientRecord:
    return ClientRecord(
        client_id="c2",
        secret="c2-secret",
        allowed_callbacks=frozenset({"https://app.example/default"}),
        default_callback="https://app.example/default",
    )


@pytest.fixture
def registry(c1: ClientRecord, c2: ClientRecord) -> MemoryClientRegistry:
    return MemoryClientRegistry([c1, c2])
