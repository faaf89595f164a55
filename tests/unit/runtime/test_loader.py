import pytest

import pvmkit
from pvmkit.compiler import compile_code
from pvmkit.runtime.loader import load_contract
from pvmkit.warnings import ArtifactVersionMismatch

code = """
from pvmkit.lang import call


@call
def ping() -> bool:
    return True
"""


def test_load_from_output_dict():
    out = compile_code(code, contract_path="ping.py")
    contract = load_contract(out)
    assert contract.name == "ping"
    assert list(contract.methods) == ["ping"]
    assert contract.storage_class is None
    assert contract.metadata["version"] == pvmkit.__version__
    selector = contract.methods["ping"].selector
    assert contract.metadata["selectors"] == {"ping": "0x" + selector.hex()}


def test_load_from_source_text():
    out = compile_code(code, contract_path="ping.py")
    contract = load_contract(out["module"], name="other")
    assert contract.name == "other"
    # generated members are reachable through the contract
    assert contract.PingRef.__name__ == "PingRef"
    with pytest.raises(AttributeError):
        contract.not_there


def test_version_mismatch_warns(monkeypatch):
    out = compile_code(code, contract_path="ping.py")
    monkeypatch.setattr(pvmkit, "__version__", "0.0.0-other")
    with pytest.warns(ArtifactVersionMismatch):
        load_contract(out)


def test_broken_source_is_not_registered():
    import sys

    before = set(sys.modules)
    with pytest.raises(SyntaxError):
        load_contract("def (", name="broken")
    assert set(sys.modules) == before
