import ast as python_ast
from typing import Optional, Tuple

from pvmkit.exceptions import InvalidType, UnknownType
from pvmkit.runtime.types import INTEGER_TYPES
from pvmkit.warnings import Deprecation, pvm_warn

# names used for runtime objects inside a generated artifact
CODEC = "_pvm_codec"
ADDRESS = "_pvm_Address"
HASH = "_pvm_Hash"


class PvmType:
    """
    Base class for value types a contract may store, pass or return.

    Attributes
    ----------
    _id : str
        The canonical name of the type, as written in annotations.
    _equality_attrs : Tuple
        Attributes which make two instances of the same class equal.
    _needs_factory : bool
        If `True`, the default value is mutable and a dataclass field must
        build it with a `default_factory`.
    """

    _id: str
    _equality_attrs: Tuple = ()
    _needs_factory: bool = False

    def _get_equality_attrs(self):
        return tuple(getattr(self, attr) for attr in self._equality_attrs)

    def __hash__(self):
        return hash((type(self), self._get_equality_attrs()))

    def __eq__(self, other):
        if self is other:
            return True
        return (
            type(self) is type(other) and self._get_equality_attrs() == other._get_equality_attrs()
        )

    def __repr__(self):
        return self._id

    @property
    def needs_factory(self) -> bool:
        return self._needs_factory

    def default_expr(self) -> str:
        """Python expression for the field-wise default of this type."""
        raise NotImplementedError

    def codec_expr(self) -> str:
        """Python expression building the runtime codec of this type."""
        raise NotImplementedError


class BoolT(PvmType):
    _id = "bool"

    def default_expr(self):
        return "False"

    def codec_expr(self):
        return f"{CODEC}.Bool()"


class IntegerT(PvmType):
    _equality_attrs = ("bits", "is_signed")

    def __init__(self, is_signed: bool, bits: int):
        self.is_signed = is_signed
        self.bits = bits

    @property
    def _id(self):
        return f"{'i' if self.is_signed else 'u'}{self.bits}"

    def default_expr(self):
        return "0"

    def codec_expr(self):
        return f"{CODEC}.Int({self.bits}, {self.is_signed})"


class AddressT(PvmType):
    _id = "Address"

    def default_expr(self):
        return f"{ADDRESS}.zero()"

    def codec_expr(self):
        return f"{CODEC}.FixedBytes({ADDRESS})"


class HashT(PvmType):
    _id = "Hash"

    def default_expr(self):
        return f"{HASH}.zero()"

    def codec_expr(self):
        return f"{CODEC}.FixedBytes({HASH})"


class BytesT(PvmType):
    _id = "bytes"

    def default_expr(self):
        return 'b""'

    def codec_expr(self):
        return f"{CODEC}.Bytes()"


class StringT(PvmType):
    _id = "str"

    def default_expr(self):
        return '""'

    def codec_expr(self):
        return f"{CODEC}.Str()"


class ListT(PvmType):
    _equality_attrs = ("value_type",)
    _needs_factory = True

    def __init__(self, value_type: PvmType):
        self.value_type = value_type

    @property
    def _id(self):
        return f"list[{self.value_type._id}]"

    def default_expr(self):
        return "[]"

    def codec_expr(self):
        return f"{CODEC}.Seq({self.value_type.codec_expr()})"


class TupleT(PvmType):
    _equality_attrs = ("member_types",)

    def __init__(self, member_types: Tuple[PvmType, ...]):
        self.member_types = tuple(member_types)

    @property
    def _id(self):
        return f"tuple[{', '.join(t._id for t in self.member_types)}]"

    @property
    def needs_factory(self):
        return any(t.needs_factory for t in self.member_types)

    def default_expr(self):
        return "(" + "".join(f"{t.default_expr()}, " for t in self.member_types).rstrip() + ")"

    def codec_expr(self):
        return f"{CODEC}.Tuple({', '.join(t.codec_expr() for t in self.member_types)})"


class OptionT(PvmType):
    _equality_attrs = ("value_type",)

    def __init__(self, value_type: PvmType):
        self.value_type = value_type

    @property
    def _id(self):
        return f"Optional[{self.value_type._id}]"

    def default_expr(self):
        return "None"

    def codec_expr(self):
        return f"{CODEC}.Option({self.value_type.codec_expr()})"


_PRIMITIVES = {
    "bool": BoolT(),
    "Address": AddressT(),
    "Hash": HashT(),
    "bytes": BytesT(),
    "str": StringT(),
}
for _name, _cls in INTEGER_TYPES.items():
    _PRIMITIVES[_name] = IntegerT(_cls.SIGNED, _cls.BITS)

_LIST_NAMES = ("list", "List")
_TUPLE_NAMES = ("tuple", "Tuple")
_OPTIONAL_NAMES = ("Optional",)


def _name_of(node) -> Optional[str]:
    # `u32`, `lang.u32` and `pvmkit.lang.u32` all name u32
    if isinstance(node, python_ast.Name):
        return node.id
    if isinstance(node, python_ast.Attribute):
        return node.attr
    return None


def _is_none(node) -> bool:
    return isinstance(node, python_ast.Constant) and node.value is None


def type_from_annotation(node: python_ast.expr) -> PvmType:
    """
    Resolve a type annotation to a PvmType.

    Raises
    ------
    UnknownType
        The annotation does not name a supported type.
    InvalidType
        The annotation names a type which cannot be used here.
    """
    if isinstance(node, python_ast.Constant) and isinstance(node.value, str):
        # a quoted annotation: parse the string and resolve the result
        try:
            inner = python_ast.parse(node.value, mode="eval").body
        except SyntaxError:
            raise InvalidType(f"Invalid type annotation `{node.value}`", node)
        for n in python_ast.walk(inner):
            n.lineno, n.col_offset = node.lineno, node.col_offset
            n.full_source_code = node.full_source_code
        return type_from_annotation(inner)

    if isinstance(node, python_ast.BinOp) and isinstance(node.op, python_ast.BitOr):
        # `T | None` / `None | T`
        if _is_none(node.right) and not _is_none(node.left):
            return OptionT(type_from_annotation(node.left))
        if _is_none(node.left) and not _is_none(node.right):
            return OptionT(type_from_annotation(node.right))
        raise InvalidType("Union types other than `T | None` are not supported", node)

    if isinstance(node, python_ast.Subscript):
        return _type_from_subscript(node)

    name = _name_of(node)
    if name is None:
        raise InvalidType("Invalid type annotation", node)

    if name in _PRIMITIVES:
        return _PRIMITIVES[name]

    if name == "int":
        raise InvalidType(
            "`int` has no fixed width", node, hint="use a sized integer such as `u32` or `i64`"
        )
    if name in ("float", "complex"):
        raise InvalidType(f"`{name}` is not supported, contracts have no floating point", node)
    if name in ("dict", "Dict", "set", "Set"):
        raise InvalidType(
            f"`{name}` cannot be stored as a value",
            node,
            hint="use `Mapping` for key/value storage",
        )

    raise UnknownType(f"Unknown type `{name}`", node)


def _type_from_subscript(node: python_ast.Subscript) -> PvmType:
    name = _name_of(node.value)
    params = node.slice
    param_nodes = list(params.elts) if isinstance(params, python_ast.Tuple) else [params]

    if name in ("List", "Tuple"):
        pvm_warn(Deprecation(f"`{name}` is deprecated, use `{name.lower()}`", node.value))

    if name in _LIST_NAMES:
        if len(param_nodes) != 1:
            raise InvalidType("`list` takes exactly one type parameter", node)
        return ListT(type_from_annotation(param_nodes[0]))

    if name in _TUPLE_NAMES:
        if any(isinstance(p, python_ast.Constant) and p.value is Ellipsis for p in param_nodes):
            raise InvalidType("Variable-length tuples are not supported, use `list`", node)
        if isinstance(params, python_ast.Tuple) and len(param_nodes) == 0:
            raise InvalidType("Empty tuples are not supported", node)
        return TupleT(tuple(type_from_annotation(p) for p in param_nodes))

    if name in _OPTIONAL_NAMES:
        if len(param_nodes) != 1:
            raise InvalidType("`Optional` takes exactly one type parameter", node)
        return OptionT(type_from_annotation(param_nodes[0]))

    if name in ("Ref", "Mut"):
        raise InvalidType(
            f"`{name}[...]` is only valid as the first parameter of a call", node
        )

    raise UnknownType(f"Unknown generic type `{name}`", node)


def return_type_from_annotation(node: Optional[python_ast.expr]) -> Optional[PvmType]:
    """``None`` when the function declares no return value."""
    if node is None or _is_none(node):
        return None
    return type_from_annotation(node)
