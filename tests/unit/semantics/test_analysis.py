import pytest

from pvmkit.ast import parse_to_ast
from pvmkit.exceptions import (
    EventDeclarationException,
    FunctionDeclarationException,
    GenerationError,
    InterfaceDeclarationException,
    NamespaceCollision,
    SelectorCollision,
    StorageDeclarationException,
    UnknownType,
)
from pvmkit.runtime.entry import StateAccess
from pvmkit.semantics import analyze_module
from pvmkit.semantics.types import IntegerT, ListT, StringT
from pvmkit.utils import keccak256
from pvmkit.warnings import SharedStateMutation

HEADER = "from pvmkit.lang import *\n"


def _analyze(code, name="contract"):
    return analyze_module(parse_to_ast(HEADER + code), name)


def test_analyze_module():
    module_t = _analyze(
        """
@storage
class Token:
    supply: u128
    holders: list[Address]
    name: str = "token"


@init
def new() -> Token:
    return Token()


@call
def total(state: Ref[Token]) -> u128:
    return state.supply


@call
def mint(state: Mut[Token], to: Address, amount: u128) -> bool:
    state.supply += amount
    return True


@call
def version() -> str:
    return "1"


@event
class Minted:
    to: Address
    amount: u128 = 0
"""
    )
    storage = module_t.storage
    assert storage.name == "Token"
    assert [f.name for f in storage.fields] == ["supply", "holders", "name"]
    assert storage.fields[2].default == '"token"'
    assert storage.key == keccak256(b"Token")

    total, mint, version = module_t.calls
    assert total.state == StateAccess.SHARED
    assert total.return_type == IntegerT(False, 128)
    assert mint.state == StateAccess.EXCLUSIVE
    assert [a.name for a in mint.args] == ["to", "amount"]
    assert mint.arity == 2
    assert mint.signature() == "mint(to: Address, amount: u128) -> bool"
    assert version.state == StateAccess.NONE
    assert not version.has_state
    assert version.return_type == StringT()

    assert module_t.init.name == "new"
    assert module_t.events[0].topic == keccak256(b"Minted")[:4] + bytes(28)
    assert module_t.proxy_name == "TokenRef"
    assert module_t.method_identifiers == {
        c: "0x" + keccak256(c.encode())[:4].hex() for c in ("total", "mint", "version")
    }


def test_stateless_module_proxy_name():
    module_t = _analyze("@call\ndef f():\n    pass\n", name="my_token")
    assert module_t.storage is None
    assert module_t.proxy_name == "MyTokenRef"


def test_interface():
    module_t = _analyze(
        """
@interface
class Registry:
    def names(self) -> list[str]: ...

    def register(self, name: str) -> bool:
        ...

    LIMIT = 3
"""
    )
    (iface,) = module_t.interfaces
    assert iface.proxy_name == "RegistryRef"
    assert [m.name for m in iface.methods] == ["names", "register"]
    assert iface.methods[0].return_type == ListT(StringT())


def test_empty_interface():
    module_t = _analyze("@interface\nclass Beacon:\n    pass\n")
    (iface,) = module_t.interfaces
    assert iface.proxy_name == "BeaconRef"
    assert iface.methods == []


fail_list = [
    # init
    ("@init\ndef new() -> u8:\n    pass\n", FunctionDeclarationException),
    (
        "@storage\nclass S:\n    x: u8\n\n@init\ndef new(x: u8) -> S:\n    pass\n",
        FunctionDeclarationException,
    ),
    (
        "@storage\nclass S:\n    x: u8\n\n@init\ndef new():\n    pass\n",
        FunctionDeclarationException,
    ),
    # call arguments
    ("@call\ndef f(*args):\n    pass\n", FunctionDeclarationException),
    ("@call\ndef f(**kw):\n    pass\n", FunctionDeclarationException),
    ("@call\ndef f(*, x: u8):\n    pass\n", FunctionDeclarationException),
    ("@call\ndef f(x: u8, /):\n    pass\n", FunctionDeclarationException),
    ("@call\ndef f(x: u8 = 1):\n    pass\n", FunctionDeclarationException),
    ("@call\ndef f(x):\n    pass\n", FunctionDeclarationException),
    ("@call\ndef f(host: u8):\n    pass\n", NamespaceCollision),
    ("@call\ndef f(x: Foo):\n    pass\n", UnknownType),
    ("@call\ndef f(state: Ref[S]):\n    pass\n", FunctionDeclarationException),
    (
        "@storage\nclass S:\n    x: u8\n\n@call\ndef f(state: Mut[T]):\n    pass\n",
        FunctionDeclarationException,
    ),
    # storage and events
    ("@storage\nclass S:\n    x: int\n", GenerationError),
    ("@storage\nclass S: x: u8\n", StorageDeclarationException),
    ("@storage\nclass S:\n    x: u8\n    def load(self): ...\n", NamespaceCollision),
    ("@event\nclass E:\n    TOPIC = 1\n", NamespaceCollision),
    ("@event\nclass E:\n    x: u8 = 0\n    y: u8\n", EventDeclarationException),
    # interfaces
    ("@interface\nclass I:\n    x: u8\n", InterfaceDeclarationException),
    ("@interface\nclass I:\n    def f(x: u8): ...\n", InterfaceDeclarationException),
    ("@interface\nclass I:\n    async def f(self): ...\n", InterfaceDeclarationException),
    ("@interface\nclass I:\n    def f(self, y): ...\n", InterfaceDeclarationException),
    ("@interface\nclass I:\n    def f(self): ...\n    def f(self): ...\n", NamespaceCollision),
    # generated names
    ("@call\ndef address():\n    pass\n", NamespaceCollision),
    ("@call\ndef __init__():\n    pass\n", NamespaceCollision),
    ("@call\ndef f():\n    pass\n\n@call\ndef f():\n    pass\n", NamespaceCollision),
    ("@call\ndef f():\n    pass\n\n@call\ndef F():\n    pass\n", NamespaceCollision),
    ("@call\ndef f():\n    pass\n\nContractRef = 1\n", NamespaceCollision),
    (
        "@storage\nclass S:\n    x: u8\n\n@call\ndef f():\n    pass\n\nclass SRef:\n    pass\n",
        NamespaceCollision,
    ),
    ("@interface\nclass I:\n    def f(self): ...\n\nIRef = None\n", NamespaceCollision),
    (
        "@storage\nclass Ping:\n    x: u8\n\n@event\nclass PING:\n    x: u8\n",
        NamespaceCollision,
    ),
]


@pytest.mark.parametrize("bad_code, exc", fail_list)
def test_analysis_fail(bad_code, exc):
    with pytest.raises(exc):
        _analyze(bad_code)


def test_multiple_errors_are_collected():
    code = """
@call
def f(x):
    pass


@call
def g(*args):
    pass
"""
    with pytest.raises(GenerationError) as excinfo:
        _analyze(code)
    msg = str(excinfo.value)
    assert msg.startswith("Generation failed with the following errors:")
    assert "`x` of `f`" in msg
    assert "`*args`" in msg


def _colliding_names():
    # brute-force two names whose selectors collide
    seen = {}
    i = 0
    while True:
        name = f"f{i}"
        sel = keccak256(name.encode())[:2]
        if sel in seen:
            return seen[sel], name
        seen[sel] = name
        i += 1


def test_selector_collision(monkeypatch):
    a, b = _colliding_names()
    # only two selector bytes are compared above, so narrow the derived selector
    monkeypatch.setattr(
        "pvmkit.semantics.analysis.selector", lambda name: keccak256(name.encode())[:2]
    )
    code = f"@call\ndef {a}():\n    pass\n\n@call\ndef {b}():\n    pass\n"
    with pytest.raises(SelectorCollision) as excinfo:
        _analyze(code)
    assert excinfo.value.prev_decl is not None


shared_mutations = [
    "state.value = 1",
    "state.value += 1",
    "state.items.append(1)",
    "state.items[0] = 2",
    "del state.items[0]",
]


@pytest.mark.parametrize("stmt", shared_mutations)
def test_shared_state_mutation_warns(stmt):
    code = f"""
@storage
class S:
    value: u8
    items: list[u8]


@call
def f(state: Ref[S]):
    {stmt}
"""
    with pytest.warns(SharedStateMutation):
        _analyze(code)


def test_exclusive_state_mutation_does_not_warn(recwarn):
    code = """
@storage
class S:
    value: u8


@call
def f(state: Mut[S]):
    state.value = 1


@call
def g(state: Ref[S]) -> u8:
    value = state.value
    value += 1
    return value
"""
    _analyze(code)
    assert not [w for w in recwarn if issubclass(w.category, SharedStateMutation)]
