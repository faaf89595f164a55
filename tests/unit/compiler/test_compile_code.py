import ast
import json

import cbor2
import pytest

import pvmkit
from pvmkit.compiler import OUTPUT_FORMATS, compile_code
from pvmkit.compiler.phases import CompilerData
from pvmkit.compiler.settings import Settings
from pvmkit.exceptions import FunctionDeclarationException
from pvmkit.utils import sha256sum

code = """
from pvmkit.lang import *


@storage
class Vault:
    owner: Address
    balance: u128


@init
def new() -> Vault:
    return Vault()


@call
def deposit(state: Mut[Vault], amount: u128):
    state.balance += amount


@call
def balance(state: Ref[Vault]) -> u128:
    return state.balance


@event
class Deposited:
    amount: u128
"""


def test_default_output_is_module():
    out = compile_code(code)
    assert list(out) == ["module"]
    ast.parse(out["module"])


@pytest.mark.parametrize("output_format", OUTPUT_FORMATS.keys())
def test_every_output_format(output_format):
    out = compile_code(code, output_formats=[output_format])
    assert out[output_format]
    # everything must be serializable for the cli
    json.dumps(out[output_format])


def test_text_outputs_parse():
    out = compile_code(code, output_formats=["storage", "deploy", "dispatch", "proxy", "interface"])
    for output_format, text in out.items():
        assert text.endswith("\n"), output_format
        ast.parse(text)


def test_unknown_format():
    with pytest.raises(ValueError, match="Unsupported format type"):
        compile_code(code, output_formats=["bytecode"])


def test_method_identifiers(keccak):
    out = compile_code(code, output_formats=["method_identifiers"])
    assert out["method_identifiers"] == {
        "deposit": "0x" + keccak(b"deposit")[:4].hex(),
        "balance": "0x" + keccak(b"balance")[:4].hex(),
    }


def test_layout(keccak):
    layout = compile_code(code, output_formats=["layout"])["layout"]
    assert layout == {
        "storage": {
            "type": "Vault",
            "key": "0x" + keccak(b"Vault").hex(),
            "fields": [{"name": "owner", "type": "Address"}, {"name": "balance", "type": "u128"}],
        }
    }


def test_events(keccak):
    events = compile_code(code, output_formats=["events"])["events"]
    assert events == {
        "Deposited": {
            "topic": "0x" + (keccak(b"Deposited")[:4] + bytes(28)).hex(),
            "fields": [{"name": "amount", "type": "u128"}],
        }
    }


def test_interface_output():
    out = compile_code(code, contract_path="vault.py", output_formats=["interface"])
    assert out["interface"].splitlines()[3:] == [
        "@interface",
        "class Vault:",
        "    def deposit(self, amount: u128) -> None: ...",
        "    def balance(self) -> u128: ...",
    ]


def test_interface_output_round_trips():
    iface = compile_code(code, output_formats=["interface"])["interface"]
    caller = iface + "\n\n@call\ndef poke(target: Address):\n    VaultRef(target).deposit(1)\n"
    out = compile_code(caller, output_formats=["proxy"])
    assert "class VaultRef:" in out["proxy"]


def test_interface_output_without_calls_round_trips():
    source = "from pvmkit.lang import *\n\n\n@storage\nclass Beacon:\n    x: u8\n"
    iface = compile_code(source, output_formats=["interface"])["interface"]
    assert iface.splitlines()[3:] == ["@interface", "class Beacon:", "    pass"]

    caller = iface + "\n\n@call\ndef ping(target: Address) -> Address:\n"
    caller += "    return BeaconRef(target).address\n"
    out = compile_code(caller, output_formats=["proxy"])
    assert "class BeaconRef:" in out["proxy"]


def test_metadata():
    metadata = compile_code(code, contract_path="vault.py", output_formats=["metadata"])[
        "metadata"
    ]
    assert metadata["compiler"] == "pvmkit"
    assert metadata["version"] == pvmkit.__version__
    assert metadata["name"] == "vault"
    assert metadata["source_sha256"] == sha256sum(code)
    assert set(metadata["selectors"]) == {"deposit", "balance"}
    assert metadata["settings"] == {"debug": False}


def test_metadata_is_embedded():
    data = CompilerData(code)
    assert cbor2.loads(data.metadata_bytes) == data.metadata
    assert f'bytes.fromhex("{data.metadata_bytes.hex()}")' in data.artifact


@pytest.mark.parametrize(
    "path, name",
    [("vault.py", "vault"), ("dir/my-vault.py", "my_vault"), ("1st.py", "_1st")],
)
def test_contract_name_from_path(path, name):
    out = compile_code(code, contract_path=path, output_formats=["metadata"])
    assert out["metadata"]["name"] == name


def test_contract_name_setting():
    out = compile_code(code, settings=Settings(contract_name="bank"), output_formats=["proxy"])
    # the storage type names the proxy, not the contract
    assert "class VaultRef:" in out["proxy"]
    assert "`bank`" in out["proxy"]


def test_debug_setting():
    plain = compile_code(code)["module"]
    debug = compile_code(code, settings=Settings(debug=True))["module"]
    assert "# deposit(amount: u128), line 17" not in plain
    assert "    # deposit(amount: u128), line 17" in debug


def test_exc_handler():
    bad = "from pvmkit.lang import *\n\n\n@call\ndef f(x):\n    pass\n"
    seen = []

    def handler(path, exc):
        seen.append((path, exc))

    compile_code(bad, contract_path="bad.py", exc_handler=handler)
    [(path, exc)] = seen
    assert path == "bad.py"
    assert isinstance(exc, FunctionDeclarationException)


def test_artifact_is_deterministic():
    assert compile_code(code)["module"] == compile_code(code)["module"]
