"""
First pass over a contract module: tag every top-level statement with
the role its marker gives it.
"""
import ast as python_ast
import enum
from dataclasses import dataclass, field
from typing import List, Optional

from pvmkit.exceptions import (
    DuplicateDeclaration,
    ExceptionList,
    NamespaceCollision,
    StructureException,
)
from pvmkit.lang import MARKERS

RESERVED_PREFIX = "_pvm_"


class Role(enum.Enum):
    STORAGE = "storage"
    INIT = "init"
    CALL = "call"
    EVENT = "event"
    INTERFACE = "interface"
    OTHER = "other"


# which kind of statement each marker may decorate
_CLASS_ROLES = (Role.STORAGE, Role.EVENT, Role.INTERFACE)
_FUNCTION_ROLES = (Role.INIT, Role.CALL)


@dataclass
class Item:
    node: python_ast.stmt
    role: Role
    marker: Optional[python_ast.expr] = None

    @property
    def name(self) -> Optional[str]:
        return getattr(self.node, "name", None)


@dataclass
class ClassifiedModule:
    items: List[Item]
    docstring: Optional[python_ast.Expr] = None
    storage: Optional[Item] = None
    init: Optional[Item] = None
    calls: List[Item] = field(default_factory=list)
    events: List[Item] = field(default_factory=list)
    interfaces: List[Item] = field(default_factory=list)

    @property
    def other(self) -> List[Item]:
        return [i for i in self.items if i.role == Role.OTHER]


def marker_role(decorator: python_ast.expr) -> Optional[Role]:
    """
    The role named by ``decorator``: `@call` or `@<pkg>.call`. Returns
    ``None`` for any other decorator.
    """
    target = decorator.func if isinstance(decorator, python_ast.Call) else decorator
    if isinstance(target, python_ast.Name):
        name = target.id
    elif isinstance(target, python_ast.Attribute):
        name = target.attr
    else:
        return None

    if name not in MARKERS:
        return None
    if isinstance(decorator, python_ast.Call):
        raise StructureException(f"`@{name}` does not take arguments", decorator)
    return Role(name)


def _is_docstring(node) -> bool:
    return (
        isinstance(node, python_ast.Expr)
        and isinstance(node.value, python_ast.Constant)
        and isinstance(node.value.value, str)
    )


def _classify_item(node: python_ast.stmt) -> Item:
    decorators = getattr(node, "decorator_list", [])
    marked = [(d, r) for d in decorators if (r := marker_role(d)) is not None]

    if not marked:
        return Item(node, Role.OTHER)

    if len(marked) > 1:
        names = ", ".join(f"@{r.value}" for _, r in marked)
        raise StructureException(
            f"`{node.name}` has more than one role marker ({names})", *(d for d, _ in marked)
        )

    marker, role = marked[0]

    if isinstance(node, python_ast.AsyncFunctionDef):
        raise StructureException(f"`@{role.value}` cannot be applied to an async function", node)
    if role in _CLASS_ROLES and not isinstance(node, python_ast.ClassDef):
        raise StructureException(f"`@{role.value}` can only be applied to a class", marker)
    if role in _FUNCTION_ROLES and not isinstance(node, python_ast.FunctionDef):
        raise StructureException(f"`@{role.value}` can only be applied to a function", marker)

    return Item(node, role, marker)


def check_reserved_names(module: python_ast.Module) -> None:
    """Author code may not use names with the prefix generated code uses."""
    errors = ExceptionList()
    for node in python_ast.walk(module):
        names = []
        if isinstance(node, python_ast.Name):
            names.append(node.id)
        elif isinstance(node, (python_ast.FunctionDef, python_ast.AsyncFunctionDef)):
            names.append(node.name)
        elif isinstance(node, python_ast.ClassDef):
            names.append(node.name)
        elif isinstance(node, python_ast.arg):
            names.append(node.arg)
        elif isinstance(node, python_ast.alias):
            names.append(node.asname or node.name.split(".")[0])
        elif isinstance(node, python_ast.Attribute):
            names.append(node.attr)

        for name in names:
            if name.lower().startswith(RESERVED_PREFIX):
                errors.append(
                    NamespaceCollision(
                        f"`{name}` uses the reserved prefix `{RESERVED_PREFIX}`", node
                    )
                )
    errors.raise_if_not_empty()


def classify_module(module: python_ast.Module) -> ClassifiedModule:
    """
    Bucket the top-level statements of ``module`` by role, preserving
    source order in ``items``.
    """
    body = list(module.body)

    docstring = None
    if body and _is_docstring(body[0]):
        docstring = body.pop(0)

    if not body:
        raise StructureException("Contract module is empty", module)

    check_reserved_names(module)

    ret = ClassifiedModule(items=[], docstring=docstring)
    for node in body:
        item = _classify_item(node)
        ret.items.append(item)

        if item.role == Role.STORAGE:
            if ret.storage is not None:
                raise DuplicateDeclaration(
                    "Contract can only have one storage declaration",
                    item.node,
                    prev_decl=ret.storage.node,
                )
            ret.storage = item
        elif item.role == Role.INIT:
            if ret.init is not None:
                raise DuplicateDeclaration(
                    "Contract can only have one init declaration",
                    item.node,
                    prev_decl=ret.init.node,
                )
            ret.init = item
        elif item.role == Role.CALL:
            ret.calls.append(item)
        elif item.role == Role.EVENT:
            ret.events.append(item)
        elif item.role == Role.INTERFACE:
            ret.interfaces.append(item)

    return ret
