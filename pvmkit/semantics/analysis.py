"""
Second pass: validate the classified declarations and resolve their types.
"""
import ast as python_ast
from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, List, Optional

from pvmkit.ast import get_text
from pvmkit.exceptions import (
    EventDeclarationException,
    ExceptionList,
    FunctionDeclarationException,
    GenerationError,
    InterfaceDeclarationException,
    NamespaceCollision,
    SelectorCollision,
    StorageDeclarationException,
    tag_exceptions,
)
from pvmkit.runtime.entry import StateAccess
from pvmkit.selectors import event_topic, selector, storage_key
from pvmkit.semantics.classify import ClassifiedModule, Item, classify_module
from pvmkit.semantics.types import PvmType, return_type_from_annotation, type_from_annotation
from pvmkit.utils import camel_case
from pvmkit.warnings import SharedStateMutation, pvm_warn

# members the generator adds to storage classes and event classes
STORAGE_MEMBERS = ("STORAGE_KEY", "load", "save")
EVENT_MEMBERS = ("TOPIC", "topics", "encode")

# parameter names the generated proxy methods need for themselves
PROXY_RESERVED_ARGS = ("self", "host")
# members of the generated proxy class itself
PROXY_RESERVED_METHODS = ("address",)

_MUTATING_METHODS = frozenset(
    ("append", "extend", "insert", "pop", "remove", "clear", "sort", "reverse", "update")
)


@dataclass
class FieldT:
    name: str
    typ: PvmType
    node: python_ast.AnnAssign
    # author-supplied default, as source text
    default: Optional[str] = None

    @property
    def annotation(self) -> str:
        return get_text(self.node.annotation)


@dataclass
class RecordT:
    """A class whose annotated fields form its encoding: storage or event."""

    name: str
    fields: List[FieldT]
    node: python_ast.ClassDef
    marker: python_ast.expr


@dataclass
class StorageT(RecordT):
    @cached_property
    def key(self) -> bytes:
        return storage_key(self.name)


@dataclass
class EventT(RecordT):
    @cached_property
    def topic(self) -> bytes:
        return event_topic(self.name)


@dataclass
class ArgT:
    name: str
    typ: PvmType
    node: python_ast.arg


@dataclass
class CallT:
    name: str
    args: List[ArgT]
    return_type: Optional[PvmType]
    node: python_ast.FunctionDef
    state: StateAccess = StateAccess.NONE
    marker: Optional[python_ast.expr] = None

    @cached_property
    def selector(self) -> bytes:
        return selector(self.name)

    @property
    def has_state(self) -> bool:
        return self.state != StateAccess.NONE

    @property
    def arity(self) -> int:
        return len(self.args)

    @property
    def const_suffix(self) -> str:
        return self.name.upper()

    def signature(self) -> str:
        args = ", ".join(f"{a.name}: {a.typ._id}" for a in self.args)
        ret = f" -> {self.return_type._id}" if self.return_type is not None else ""
        return f"{self.name}({args}){ret}"


@dataclass
class InitT:
    name: str
    node: python_ast.FunctionDef
    marker: python_ast.expr


@dataclass
class InterfaceT:
    name: str
    methods: List[CallT]
    node: python_ast.ClassDef
    marker: python_ast.expr

    @property
    def proxy_name(self) -> str:
        return f"{self.name}Ref"


@dataclass
class ModuleT:
    name: str
    classified: ClassifiedModule
    storage: Optional[StorageT] = None
    init: Optional[InitT] = None
    calls: List[CallT] = field(default_factory=list)
    events: List[EventT] = field(default_factory=list)
    interfaces: List[InterfaceT] = field(default_factory=list)

    @property
    def proxy_name(self) -> str:
        if self.storage is not None:
            return f"{self.storage.name}Ref"
        return f"{camel_case(self.name)}Ref"

    @property
    def docstring(self) -> Optional[python_ast.Expr]:
        return self.classified.docstring

    @property
    def method_identifiers(self) -> Dict[str, str]:
        return {c.name: "0x" + c.selector.hex() for c in self.calls}


def _check_plain_args(fn: python_ast.FunctionDef, exc_cls, what: str) -> None:
    a = fn.args
    if a.vararg is not None:
        raise exc_cls(f"{what} cannot take `*args`", a.vararg)
    if a.kwarg is not None:
        raise exc_cls(f"{what} cannot take `**kwargs`", a.kwarg)
    if a.kwonlyargs:
        raise exc_cls(f"{what} cannot take keyword-only arguments", a.kwonlyargs[0])
    if a.posonlyargs:
        raise exc_cls(f"{what} cannot take positional-only arguments", a.posonlyargs[0])
    if a.defaults:
        raise exc_cls(f"{what} arguments cannot have default values", a.defaults[0])


def _record_fields(node: python_ast.ClassDef, exc_cls, what: str) -> List[FieldT]:
    if node.body and node.body[0].lineno == node.lineno:
        raise exc_cls(f"The body of {what} `{node.name}` must start on its own line", node)

    fields = []
    for stmt in node.body:
        if not isinstance(stmt, python_ast.AnnAssign):
            continue
        if not isinstance(stmt.target, python_ast.Name):
            raise exc_cls(f"Invalid field in {what} `{node.name}`", stmt.target)

        with tag_exceptions(stmt):
            typ = type_from_annotation(stmt.annotation)

        default = get_text(stmt.value) if stmt.value is not None else None
        fields.append(FieldT(stmt.target.id, typ, stmt, default))
    return fields


def _check_members(node: python_ast.ClassDef, reserved, what: str) -> None:
    for stmt in node.body:
        names = []
        if isinstance(stmt, (python_ast.FunctionDef, python_ast.ClassDef)):
            names.append(stmt.name)
        elif isinstance(stmt, python_ast.AnnAssign) and isinstance(stmt.target, python_ast.Name):
            names.append(stmt.target.id)
        elif isinstance(stmt, python_ast.Assign):
            names.extend(t.id for t in stmt.targets if isinstance(t, python_ast.Name))
        for name in names:
            if name in reserved:
                raise NamespaceCollision(
                    f"`{name}` is generated for {what} `{node.name}` and cannot be declared",
                    stmt,
                )


def analyze_storage(item: Item) -> StorageT:
    node = item.node
    _check_members(node, STORAGE_MEMBERS, "storage")
    fields = _record_fields(node, StorageDeclarationException, "storage")
    return StorageT(node.name, fields, node, item.marker)


def analyze_event(item: Item) -> EventT:
    node = item.node
    _check_members(node, EVENT_MEMBERS, "event")
    fields = _record_fields(node, EventDeclarationException, "event")

    seen_default = None
    for f in fields:
        if f.default is not None:
            seen_default = f
        elif seen_default is not None:
            raise EventDeclarationException(
                f"Field `{f.name}` without a default follows `{seen_default.name}` which has one",
                f.node,
            )
    return EventT(node.name, fields, node, item.marker)


def analyze_init(item: Item, storage: Optional[StorageT]) -> InitT:
    node = item.node
    if storage is None:
        raise FunctionDeclarationException(
            "An init declaration requires a storage declaration", node
        )

    a = node.args
    if a.args or a.vararg or a.kwarg or a.kwonlyargs or a.posonlyargs:
        raise FunctionDeclarationException(
            f"Init `{node.name}` cannot take arguments", node.args.args[0] if a.args else node
        )

    ret = node.returns
    if ret is None or not (isinstance(ret, python_ast.Name) and ret.id == storage.name):
        raise FunctionDeclarationException(
            f"Init `{node.name}` must be annotated to return `{storage.name}`", ret or node
        )
    return InitT(node.name, node, item.marker)


def _state_access(annotation, storage: Optional[StorageT]) -> StateAccess:
    """
    `Ref[S]` / `Mut[S]` (optionally attribute-qualified) as the
    annotation of the first parameter.
    """
    if not isinstance(annotation, python_ast.Subscript):
        return StateAccess.NONE

    base = annotation.value
    base_name = base.id if isinstance(base, python_ast.Name) else getattr(base, "attr", None)
    if base_name not in ("Ref", "Mut"):
        return StateAccess.NONE

    if storage is None:
        raise FunctionDeclarationException(
            f"`{base_name}[...]` requires a storage declaration", annotation
        )
    inner = annotation.slice
    if not (isinstance(inner, python_ast.Name) and inner.id == storage.name):
        raise FunctionDeclarationException(
            f"State reference must name the storage type `{storage.name}`", inner
        )
    return StateAccess.SHARED if base_name == "Ref" else StateAccess.EXCLUSIVE


def analyze_call(item: Item, storage: Optional[StorageT]) -> CallT:
    node = item.node
    _check_plain_args(node, FunctionDeclarationException, f"Call `{node.name}`")

    params = list(node.args.args)
    state = StateAccess.NONE
    if params and params[0].annotation is not None:
        state = _state_access(params[0].annotation, storage)
    if state != StateAccess.NONE:
        state_param = params.pop(0)
    else:
        state_param = None

    args = []
    for p in params:
        if p.annotation is None:
            raise FunctionDeclarationException(
                f"Argument `{p.arg}` of `{node.name}` needs a type annotation", p
            )
        if p.arg in PROXY_RESERVED_ARGS:
            raise NamespaceCollision(
                f"Argument name `{p.arg}` is reserved for the generated proxy method", p
            )
        with tag_exceptions(p):
            typ = type_from_annotation(p.annotation)
        args.append(ArgT(p.arg, typ, p))

    with tag_exceptions(node):
        return_type = return_type_from_annotation(node.returns)

    ret = CallT(node.name, args, return_type, node, state, item.marker)

    if state == StateAccess.SHARED:
        _warn_shared_mutation(node, state_param.arg)

    return ret


def _state_root(node, state_name: str) -> bool:
    # does `node` designate (part of) the object bound to `state_name`?
    while isinstance(node, (python_ast.Attribute, python_ast.Subscript)):
        node = node.value
        if isinstance(node, python_ast.Name) and node.id == state_name:
            return True
    return False


def _warn_shared_mutation(fn: python_ast.FunctionDef, state_name: str) -> None:
    for node in python_ast.walk(fn):
        targets = []
        if isinstance(node, python_ast.Assign):
            targets = node.targets
        elif isinstance(node, (python_ast.AugAssign, python_ast.AnnAssign)):
            targets = [node.target]
        elif isinstance(node, python_ast.Delete):
            targets = node.targets
        elif isinstance(node, python_ast.Call) and isinstance(node.func, python_ast.Attribute):
            if node.func.attr in _MUTATING_METHODS:
                targets = [node.func]

        for target in targets:
            if _state_root(target, state_name):
                pvm_warn(
                    SharedStateMutation(
                        f"`{fn.name}` takes a shared state reference but modifies it; "
                        "the change is not persisted",
                        target,
                        hint=f"take `Mut[...]` as the first argument of `{fn.name}`",
                    )
                )
                return


def analyze_interface(item: Item) -> InterfaceT:
    node = item.node
    methods = []
    for stmt in node.body:
        if isinstance(stmt, python_ast.AsyncFunctionDef):
            raise InterfaceDeclarationException("Interface methods cannot be async", stmt)
        if isinstance(stmt, python_ast.AnnAssign):
            raise InterfaceDeclarationException("Interfaces cannot declare fields", stmt)
        if not isinstance(stmt, python_ast.FunctionDef):
            continue
        what = f"Interface method `{stmt.name}`"
        _check_plain_args(stmt, InterfaceDeclarationException, what)

        params = list(stmt.args.args)
        if not params or params[0].arg != "self":
            raise InterfaceDeclarationException(f"{what} must take `self` first", stmt)

        args = []
        for p in params[1:]:
            if p.annotation is None:
                raise InterfaceDeclarationException(
                    f"Argument `{p.arg}` of `{stmt.name}` needs a type annotation", p
                )
            if p.arg in PROXY_RESERVED_ARGS:
                raise NamespaceCollision(
                    f"Argument name `{p.arg}` is reserved for the generated proxy method", p
                )
            with tag_exceptions(p):
                args.append(ArgT(p.arg, type_from_annotation(p.annotation), p))

        with tag_exceptions(stmt):
            return_type = return_type_from_annotation(stmt.returns)
        methods.append(CallT(stmt.name, args, return_type, stmt))

    _check_selectors(methods, f"interface `{node.name}`")

    return InterfaceT(node.name, methods, node, item.marker)


def _check_selectors(calls: List[CallT], where: str) -> None:
    seen: Dict[bytes, CallT] = {}
    for c in calls:
        prev = seen.get(c.selector)
        if prev is not None:
            if prev.name == c.name:
                raise NamespaceCollision(f"`{c.name}` is declared twice in {where}", c.node)
            raise SelectorCollision(
                f"Selectors of `{prev.name}` and `{c.name}` collide "
                f"(0x{c.selector.hex()}) in {where}",
                c.node,
                prev_decl=prev.node,
            )
        seen[c.selector] = c


def _top_level_names(classified: ClassifiedModule) -> Dict[str, python_ast.AST]:
    ret = {}
    for item in classified.items:
        node = item.node
        if isinstance(node, (python_ast.FunctionDef, python_ast.ClassDef)):
            ret[node.name] = node
        elif isinstance(node, python_ast.Assign):
            for t in node.targets:
                if isinstance(t, python_ast.Name):
                    ret[t.id] = node
        elif isinstance(node, python_ast.AnnAssign) and isinstance(node.target, python_ast.Name):
            ret[node.target.id] = node
        elif isinstance(node, (python_ast.Import, python_ast.ImportFrom)):
            for alias in node.names:
                ret[alias.asname or alias.name.split(".")[0]] = node
    return ret


def analyze_module(module: python_ast.Module, name: str) -> ModuleT:
    """
    Classify and validate ``module``. Every generation error found across
    independent declarations is reported at once.
    """
    classified = classify_module(module)
    ret = ModuleT(name, classified)
    errors = ExceptionList()

    if classified.storage is not None:
        ret.storage = analyze_storage(classified.storage)

    if classified.init is not None:
        try:
            ret.init = analyze_init(classified.init, ret.storage)
        except GenerationError as e:
            errors.append(e)

    for item in classified.calls:
        try:
            ret.calls.append(analyze_call(item, ret.storage))
        except GenerationError as e:
            errors.append(e)

    for item in classified.events:
        ret.events.append(analyze_event(item))

    for item in classified.interfaces:
        ret.interfaces.append(analyze_interface(item))

    errors.raise_if_not_empty()

    _check_selectors(ret.calls, f"contract `{name}`")
    _check_generated_names(ret)

    return ret


def _check_generated_names(module_t: ModuleT) -> None:
    names = _top_level_names(module_t.classified)

    proxies = {module_t.proxy_name: None}
    for iface in module_t.interfaces:
        if iface.proxy_name in proxies:
            raise NamespaceCollision(
                f"Proxy `{iface.proxy_name}` would be generated twice", iface.node
            )
        proxies[iface.proxy_name] = iface

    for proxy_name in proxies:
        if proxy_name in names:
            raise NamespaceCollision(
                f"`{proxy_name}` is the name of a generated proxy and cannot be declared",
                names[proxy_name],
            )

    _check_proxy_methods(module_t.calls, f"contract `{module_t.name}`")
    for iface in module_t.interfaces:
        _check_proxy_methods(iface.methods, f"interface `{iface.name}`")

    records = ([module_t.storage] if module_t.storage is not None else []) + module_t.events
    _check_const_suffixes(records, "declaration")


def _check_const_suffixes(decls, what: str) -> None:
    # generated constants are named after the upper-cased declaration name
    seen: Dict[str, object] = {}
    for d in decls:
        suffix = d.name.upper()
        if suffix in seen:
            raise NamespaceCollision(
                f"The generated constants for {what} `{d.name}` and `{seen[suffix].name}` collide",
                d.node,
                prev_decl=seen[suffix].node,
            )
        seen[suffix] = d


def _check_proxy_methods(calls: List[CallT], where: str) -> None:
    for c in calls:
        if c.name in PROXY_RESERVED_METHODS or c.name.startswith("__"):
            raise NamespaceCollision(
                f"`{c.name}` in {where} would shadow a member of the generated proxy", c.node
            )
    _check_const_suffixes(calls, "method")
