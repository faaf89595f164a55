from pathlib import Path

import pytest

EXAMPLES_DIR = Path(__file__).parents[3] / "examples" / "contracts"


@pytest.fixture
def example_source():
    def fn(name):
        return (EXAMPLES_DIR / f"{name}.py").read_text()

    return fn


@pytest.fixture
def deploy_example(get_contract, example_source):
    def fn(name, **kwargs):
        return get_contract(example_source(name), name=name, **kwargs)

    return fn
