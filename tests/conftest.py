from contextlib import contextmanager

import hypothesis
import pytest

from pvmkit.compiler.settings import Settings
from pvmkit.runtime.chain import Chain, ExecutionReverted
from pvmkit.utils import keccak256

############
# PATCHING #
############


# disable hypothesis deadline globally
hypothesis.settings.register_profile("ci", deadline=None)
hypothesis.settings.load_profile("ci")


def pytest_addoption(parser):
    parser.addoption("--enable-compiler-debug-mode", action="store_true")


@pytest.fixture(scope="session")
def debug(pytestconfig):
    debug = pytestconfig.getoption("enable_compiler_debug_mode")
    assert isinstance(debug, bool)
    return debug


@pytest.fixture(scope="module")
def compiler_settings(debug):
    settings = Settings()
    if debug:
        settings.debug = True
    return settings


@pytest.fixture
def keccak():
    return keccak256


@pytest.fixture
def make_file(tmp_path):
    # writes file_contents to file_name, creating it in the
    # tmp_path directory. returns final path.
    def fn(file_name, file_contents):
        path = tmp_path / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w") as f:
            f.write(file_contents)

        return path

    return fn


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def get_contract(chain, compiler_settings):
    def fn(source_code, *args, **kwargs):
        kwargs.setdefault("settings", compiler_settings)
        return chain.deploy_source(source_code, *args, **kwargs)

    return fn


@pytest.fixture
def get_logs(chain):
    def fn(contract=None):
        address = None if contract is None else contract.address
        return chain.get_logs(address)

    return fn


@pytest.fixture
def tx_failed():
    @contextmanager
    def fn(exception=ExecutionReverted, exc_text=None):
        with pytest.raises(exception) as excinfo:
            yield excinfo

        if exc_text:
            assert exc_text in str(excinfo.value), (exc_text, excinfo.value)

    return fn
