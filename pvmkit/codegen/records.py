"""
Shared generation for classes whose fields form their encoding.
"""
import ast as python_ast
from typing import Callable, List

from pvmkit.ast import start_lineno
from pvmkit.codegen.core import (
    CODEC,
    COPY,
    DATACLASSES,
    codec_const,
    is_mutable_literal,
    verbatim,
)
from pvmkit.semantics.analysis import FieldT, RecordT
from pvmkit.semantics.types import ListT, OptionT, TupleT


def _is_docstring(stmt) -> bool:
    return (
        isinstance(stmt, python_ast.Expr)
        and isinstance(stmt.value, python_ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def _holds_list(typ) -> bool:
    if isinstance(typ, ListT):
        return True
    if isinstance(typ, TupleT):
        return any(_holds_list(t) for t in typ.member_types)
    if isinstance(typ, OptionT):
        return _holds_list(typ.value_type)
    return False


def field_line(f: FieldT, fill_default: bool) -> str:
    default = f.default
    if default is None and fill_default:
        default = f.typ.default_expr()

    line = f"{f.name}: {f.annotation}"
    if default is None:
        return line
    value = f.node.value
    if is_mutable_literal(value):
        return f"{line} = {DATACLASSES}.field(default_factory=lambda: {default})"
    if value is not None and not isinstance(value, python_ast.Constant) and _holds_list(f.typ):
        # a named or computed default is copied so instances never share it
        return f"{line} = {DATACLASSES}.field(default_factory=lambda: {COPY}.deepcopy({default}))"
    if f.typ.needs_factory:
        return f"{line} = {DATACLASSES}.field(default_factory=lambda: {default})"
    return f"{line} = {default}"


def generate_record_class(
    record: RecordT,
    class_constants: List[str],
    fill_defaults: bool,
    extra_members: Callable[[str], List[str]],
) -> List[str]:
    """
    Re-emit the author's class as a dataclass. Field lines are rebuilt so
    that every field carries its default; every other statement of the
    body is kept verbatim. ``class_constants`` go first in the body,
    after the docstring; ``extra_members(indent)`` go last.
    """
    node = record.node
    source = node.full_source_code.splitlines()
    fields = {f.node: f for f in record.fields}
    body = node.body
    indent = " " * body[0].col_offset

    ret = []
    # decorators other than the marker, then the dataclass decorator
    for d in node.decorator_list:
        if d is not record.marker:
            ret.extend(source[d.lineno - 1 : d.end_lineno])
    ret.append(f"@{DATACLASSES}.dataclass")

    # the class header, up to the first statement of the body
    prev_end = start_lineno(body[0]) - 1
    ret.extend(source[node.lineno - 1 : prev_end])

    constants_done = False
    for stmt in body:
        # comments and blank lines between statements
        gap = source[prev_end : start_lineno(stmt) - 1]
        prev_end = stmt.end_lineno

        if not constants_done and not _is_docstring(stmt):
            ret.extend(indent + c for c in class_constants)
            if not gap or gap[0].strip():
                ret.append("")
            constants_done = True
        ret.extend(gap)

        if stmt in fields:
            ret.append(indent + field_line(fields[stmt], fill_defaults))
        elif isinstance(stmt, python_ast.Pass):
            continue
        else:
            ret.extend(verbatim(stmt))

    if not constants_done:
        ret.extend(indent + c for c in class_constants)

    if ret[-1]:
        ret.append("")
    ret.extend(extra_members(indent))
    return ret


def record_codec_line(record: RecordT) -> str:
    fields = "".join(f'("{f.name}", {f.typ.codec_expr()}), ' for f in record.fields).rstrip()
    return f"{codec_const(record.name)} = {CODEC}.Record({record.name}, ({fields}))"
