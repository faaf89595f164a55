"""
Assemble the artifact: the author's module with its declarations
expanded, followed by everything generated for it.

Author statements keep their source order and text. Comments and blank
lines between them are preserved. Role markers are stripped; storage and
event classes are re-emitted as dataclasses with their generated members.
"""
import ast as python_ast
from typing import List

from pvmkit.ast import start_lineno
from pvmkit.codegen.calls import (
    generate_call_constants,
    generate_call_wrapper,
    generate_init_wrapper,
)
from pvmkit.codegen.core import HEADER_IMPORTS, literal, verbatim, without_marker
from pvmkit.codegen.dispatch import (
    generate_call_entry,
    generate_deploy_entry,
    generate_method_table,
)
from pvmkit.codegen.events import generate_event
from pvmkit.codegen.proxy import generate_interface_proxy, generate_module_proxy
from pvmkit.codegen.storage import generate_storage
from pvmkit.exceptions import CodegenPanic
from pvmkit.runtime import entry
from pvmkit.semantics.analysis import ModuleT
from pvmkit.semantics.classify import Item, Role


def _is_future_import(node) -> bool:
    return isinstance(node, python_ast.ImportFrom) and node.module == "__future__"


def join_blocks(blocks: List[List[str]], gap: int = 2) -> List[str]:
    ret: List[str] = []
    for block in blocks:
        if not block:
            continue
        if ret:
            ret.extend([""] * gap)
        ret.extend(block)
    return ret


def _expand_item(item: Item, module_t: ModuleT) -> List[str]:
    if item.role == Role.STORAGE:
        return generate_storage(module_t.storage)
    if item.role == Role.EVENT:
        (event,) = [e for e in module_t.events if e.node is item.node]
        return generate_event(event)
    if item.role in (Role.INIT, Role.CALL, Role.INTERFACE):
        return without_marker(item.node, item.marker)
    if item.role == Role.OTHER:
        return verbatim(item.node)
    raise CodegenPanic(f"unhandled role {item.role}", item.node)


def generate_author_section(module_t: ModuleT) -> List[str]:
    """The author's statements, expanded in place."""
    classified = module_t.classified
    docstring = classified.docstring

    source = classified.items[0].node.full_source_code.splitlines()

    ret: List[str] = []
    prev_end = docstring.end_lineno if docstring is not None else 0
    for item in classified.items:
        node = item.node
        gap = source[prev_end : start_lineno(node) - 1]
        prev_end = node.end_lineno

        if _is_future_import(node):
            # the artifact header already carries its own future import
            continue

        if not ret:
            while gap and not gap[0].strip():
                gap.pop(0)
        ret.extend(gap)
        ret.extend(_expand_item(item, module_t))

    return ret


def generate_generated_section(module_t: ModuleT, metadata: bytes) -> List[str]:
    storage = module_t.storage

    constants = []
    for call in module_t.calls:
        constants.extend(generate_call_constants(call))

    blocks = [constants]
    blocks.extend(generate_call_wrapper(call, storage) for call in module_t.calls)
    if module_t.init is not None:
        blocks.append(generate_init_wrapper(module_t.init, storage))

    blocks.append(generate_module_proxy(module_t))
    blocks.extend(generate_interface_proxy(i) for i in module_t.interfaces)

    blocks.append(generate_method_table(module_t))
    blocks.append(generate_deploy_entry(module_t))
    blocks.append(generate_call_entry(module_t))
    blocks.append([f"{entry.METADATA} = {literal(metadata)}"])

    return join_blocks(blocks)


def generate_module(module_t: ModuleT, metadata: bytes, version: str) -> str:
    """
    Generate the artifact source for ``module_t``. ``metadata`` is the
    CBOR blob embedded in the artifact.
    """
    header = [f"# Generated by pvmkit {version} from `{module_t.name}`. Do not edit."]

    docstring = module_t.docstring
    if docstring is not None:
        source = docstring.full_source_code.splitlines()
        header.extend(source[: docstring.end_lineno])

    header.append("from __future__ import annotations")
    header.append("")
    header.extend(HEADER_IMPORTS)

    lines = join_blocks(
        [
            header,
            generate_author_section(module_t),
            ["# " + "-" * 20 + " generated " + "-" * 20],
            generate_generated_section(module_t, metadata),
        ]
    )
    return "\n".join(lines) + "\n"
