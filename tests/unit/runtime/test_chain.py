import pytest

from pvmkit.runtime.chain import ExecutionReverted
from pvmkit.runtime.entry import UNKNOWN_SELECTOR
from pvmkit.runtime.types import Address

counter_code = """
from pvmkit.lang import Mut, Ref, call, init, storage, u32


@storage
class Counter:
    value: u32


@init
def new() -> Counter:
    return Counter(value=u32(0))


@call
def bump(state: Mut[Counter]) -> u32:
    state.value += 1
    return state.value


@call
def get(state: Ref[Counter]) -> u32:
    return state.value


@call
def fail(state: Mut[Counter]):
    state.value += 100
    raise ValueError("boom")
"""


def test_deploy_and_transact(get_contract):
    c = get_contract(counter_code)
    assert c.get() == 0
    assert c.bump() == 1
    assert c.bump() == 2
    assert c.get() == 2
    assert c.state().value == 2


def test_dry_run_discards_changes(get_contract):
    c = get_contract(counter_code)
    assert c.bump.call() == 1
    assert c.get() == 0


def test_anchor(get_contract, chain):
    c = get_contract(counter_code)
    with chain.anchor():
        c.bump()
        assert c.get() == 1
    assert c.get() == 0


def test_trap_restores_state(get_contract, tx_failed):
    c = get_contract(counter_code)
    c.bump()
    with tx_failed(exc_text="trap: ValueError: boom") as excinfo:
        c.fail()
    assert excinfo.value.result.is_trap
    assert c.get() == 1


def test_unknown_selector_reverts(get_contract, chain):
    c = get_contract(counter_code)
    result = chain.transact(c.address, b"\xde\xad\xbe\xef")
    assert result.is_revert
    assert result.output == UNKNOWN_SELECTOR


def test_call_missing_contract(chain):
    result = chain.transact(Address(b"\x02" * 20), b"")
    assert result.is_trap
    assert not result.is_success


def test_unknown_method(get_contract):
    c = get_contract(counter_code)
    with pytest.raises(AttributeError):
        c.missing
    with pytest.raises(AttributeError, match="has no method 'missing'"):
        c.fn.missing
    with pytest.raises(KeyError):
        c.fn["missing"]


shadowed_code = """
from pvmkit.lang import Ref, call, storage, u32


@storage
class Ledger:
    value: u32 = 5


@call
def state(state: Ref[Ledger]) -> u32:
    return state.value


@call
def chain() -> u32:
    return 7


@call
def get_logs() -> bool:
    return True
"""


def test_methods_shadowed_by_handle(get_contract, chain):
    ledger = get_contract(shadowed_code)
    # handle attributes win over attribute access
    assert ledger.chain is chain
    assert ledger.state().value == 5
    assert ledger.get_logs() == []

    assert ledger.fn.state() == 5
    assert ledger.fn.chain() == 7
    assert ledger.fn["get_logs"]() is True
    assert ledger.fn.state.call() == 5
    assert sorted(ledger.fn) == ["chain", "get_logs", "state"]


def test_wrong_arity(get_contract):
    c = get_contract(counter_code)
    with pytest.raises(TypeError):
        c.get(1)


def test_addresses_are_distinct(get_contract):
    a = get_contract(counter_code)
    b = get_contract(counter_code)
    assert a.address != b.address
    a.bump()
    assert b.get() == 0


def test_mine(chain):
    chain.mine(3, seconds=2)
    assert chain.block_number == 4
    assert chain.timestamp == 6


def test_failing_init(get_contract, tx_failed):
    code = """
from pvmkit.lang import init, storage, u32


@storage
class S:
    value: u32


@init
def new() -> S:
    raise RuntimeError("nope")
"""
    with tx_failed(ExecutionReverted, "nope"):
        get_contract(code)


recursive_code = """
from pvmkit import env
from pvmkit.lang import call, interface


@interface
class Recursive:
    def recurse(self): ...


@call
def recurse():
    RecursiveRef(env.address()).recurse()
"""


def test_call_depth_limit(get_contract, tx_failed):
    c = get_contract(recursive_code)
    with tx_failed() as excinfo:
        c.recurse()
    assert excinfo.value.result.is_trap
