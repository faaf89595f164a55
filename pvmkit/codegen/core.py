import ast as python_ast
from typing import List, Optional

from pvmkit.ast import source_lines_of
from pvmkit.semantics.types import ADDRESS, CODEC, HASH, PvmType, TupleT
from pvmkit.utils import bytes_literal

INDENT = "    "

# aliases under which generated code reaches the runtime
COPY = "_pvm_copy"
DATACLASSES = "_pvm_dataclasses"
ENV = "_pvm_env"
CALL = "_pvm_call"
ENTRY = "_pvm_entry"
STORAGE = "_pvm_storage"

HEADER_IMPORTS = [
    f"import copy as {COPY}",
    f"import dataclasses as {DATACLASSES}",
    "",
    f"from pvmkit import env as {ENV}",
    f"from pvmkit.runtime import call as {CALL}",
    f"from pvmkit.runtime import codec as {CODEC}",
    f"from pvmkit.runtime import entry as {ENTRY}",
    f"from pvmkit.runtime import storage as {STORAGE}",
    f"from pvmkit.runtime.types import Address as {ADDRESS}",
    f"from pvmkit.runtime.types import Hash as {HASH}",
]


def const_name(kind: str, name: str) -> str:
    return f"_PVM_{kind}_{name.upper()}"


def selector_const(name: str) -> str:
    return const_name("SELECTOR", name)


def args_const(name: str) -> str:
    return const_name("ARGS", name)


def ret_const(name: str) -> str:
    return const_name("RET", name)


def codec_const(name: str) -> str:
    return const_name("CODEC", name)


def args_codec_expr(arg_types: List[PvmType]) -> Optional[str]:
    """
    Codec for a call's arguments: none without arguments, the argument's
    own codec for exactly one, an ordered tuple otherwise.
    """
    if len(arg_types) == 0:
        return None
    if len(arg_types) == 1:
        return arg_types[0].codec_expr()
    return TupleT(tuple(arg_types)).codec_expr()


def literal(value: bytes) -> str:
    return bytes_literal(value)


def indent_lines(lines: List[str], level: int = 1) -> List[str]:
    return [INDENT * level + line if line else line for line in lines]


def verbatim(node: python_ast.stmt, skip=()) -> List[str]:
    """The author's source lines for ``node``, minus the lines of ``skip``."""
    return source_lines_of(node, skip)


def without_marker(node: python_ast.stmt, marker: Optional[python_ast.expr]) -> List[str]:
    """The author's definition with its role marker removed."""
    skip = () if marker is None else (marker,)
    return verbatim(node, skip)


def is_mutable_literal(node: Optional[python_ast.expr]) -> bool:
    return isinstance(
        node,
        (
            python_ast.List,
            python_ast.Dict,
            python_ast.Set,
            python_ast.ListComp,
            python_ast.DictComp,
            python_ast.SetComp,
        ),
    )
