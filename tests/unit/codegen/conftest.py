import pytest

from pvmkit.ast import parse_to_ast
from pvmkit.semantics import analyze_module


@pytest.fixture
def module_t():
    def fn(code, name="contract"):
        return analyze_module(parse_to_ast(code), name)

    return fn
