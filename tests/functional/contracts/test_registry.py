import pytest

from pvmkit.runtime.codec import Str
from pvmkit.runtime.types import Address
from pvmkit.selectors import mapping_key, namespace_key

ALICE = Address(b"\xa1" * 20)
BOB = Address(b"\xb0" * 20)


@pytest.fixture
def registry(deploy_example):
    return deploy_example("registry")


def test_no_init_reads_defaults(registry):
    assert registry.count() == 0
    assert registry.names() == []
    assert registry.owner_of("alice") is None


def test_register(registry):
    assert registry.register("alice", sender=ALICE) is True
    assert registry.register("bob", sender=BOB) is True
    assert registry.count() == 2
    assert registry.names() == ["alice", "bob"]
    assert registry.owner_of("alice") == ALICE
    assert registry.owner_of("bob") == BOB


def test_register_twice(registry):
    assert registry.register("alice", sender=ALICE) is True
    assert registry.register("alice", sender=BOB) is False
    assert registry.owner_of("alice") == ALICE
    assert registry.count() == 1


def test_owner_storage_key(registry, chain):
    registry.register("alice", sender=ALICE)
    key = mapping_key(namespace_key("registry.owners"), Str().encode("alice"))
    assert chain.get_storage(registry.address, key) == bytes(ALICE)


def test_registered_event(registry, get_logs, keccak):
    registry.register("carol", sender=ALICE)
    (log,) = get_logs(registry)
    assert log.topics == [keccak(b"Registered")[:4] + bytes(28)]
    assert log.data == Str().encode("carol") + bytes(ALICE)


def test_dry_run(registry):
    assert registry.register.call("dave", sender=ALICE) is True
    assert registry.owner_of("dave") is None
    assert registry.count() == 0
