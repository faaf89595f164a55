import pytest

from pvmkit.runtime.codec import Int, Str, Tuple
from pvmkit.runtime.entry import INVALID_ARGUMENTS
from pvmkit.warnings import SharedStateMutation

code = """
from pvmkit.lang import *


@storage
class Ledger:
    total: u64
    note: str = "empty"


@init
def new() -> Ledger:
    return Ledger(total=u64(5))


@call
def touch():
    pass


@call
def add(a: u32, b: u32) -> u64:
    return a + b


@call
def peek(state: Ref[Ledger]):
    # discarded: shared state is never persisted
    state.total = 999


@call
def total(state: Ref[Ledger]) -> u64:
    return state.total


@call
def annotate(state: Mut[Ledger], note: str):
    state.note = note


@call
def deposit(state: Mut[Ledger], amount: u64) -> u64:
    state.total += amount
    return state.total


@call
def note(state: Ref[Ledger]) -> str:
    return state.note
"""


@pytest.fixture
def ledger(get_contract):
    with pytest.warns(SharedStateMutation):
        return get_contract(code)


def test_stateless_no_return(ledger, chain):
    assert ledger.touch() is None
    assert chain.last_result.output == b""


def test_stateless_with_return(ledger, chain):
    assert ledger.add(2, 3) == 5
    assert chain.last_result.output == (5).to_bytes(8, "little")


def test_shared_no_return_does_not_persist(ledger, chain):
    assert ledger.peek() is None
    assert chain.last_result.output == b""
    assert ledger.total() == 5


def test_shared_with_return(ledger):
    assert ledger.total() == 5


def test_exclusive_no_return(ledger):
    assert ledger.annotate("hello") is None
    assert ledger.note() == "hello"


def test_exclusive_with_return(ledger):
    assert ledger.deposit(10) == 15
    assert ledger.total() == 15
    assert ledger.state().total == 15


def test_argument_tuple_encoding(ledger, chain):
    data = ledger.contract.methods["add"].selector + Tuple(Int(32, False), Int(32, False)).encode(
        (7, 8)
    )
    result = chain.transact(ledger.address, data)
    assert Int(64, False).decode_exact(result.output) == 15


@pytest.mark.parametrize("args", [b"", b"\x01", b"\x80"])
def test_malformed_arguments_revert(ledger, chain, args):
    data = ledger.contract.methods["annotate"].selector + args
    result = chain.transact(ledger.address, data)
    assert result.is_revert
    assert result.output == INVALID_ARGUMENTS
    assert ledger.note() == "empty"


def test_return_value_overflow_traps(ledger, tx_failed):
    with tx_failed():
        ledger.deposit(2**64 - 1)
    assert ledger.total() == 5


def test_string_argument(ledger):
    ledger.annotate("ünïcödé")
    assert ledger.note() == "ünïcödé"
    assert ledger.chain.get_storage(ledger.address, ledger.contract.Ledger.STORAGE_KEY).endswith(
        Str().encode("ünïcödé")
    )
