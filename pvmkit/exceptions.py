import contextlib
import copy
import textwrap
import types

from pvmkit.compiler.settings import PVMKIT_ERROR_CONTEXT_LINES, PVMKIT_ERROR_LINE_NUMBERS


class ExceptionList(list):
    """
    List subclass for storing exceptions.
    To deliver multiple generation errors to the user at once, append each
    raised Exception to this list and call raise_if_not_empty once the task
    is completed.
    """

    def raise_if_not_empty(self):
        if len(self) == 1:
            raise self[0]
        elif len(self) > 1:
            err_msg = ["Generation failed with the following errors:"]
            err_msg += [f"{type(i).__name__}: {i}" for i in reversed(self)]
            raise GenerationError("\n\n".join(err_msg))


class _BasePvmException(Exception):
    """
    Base pvmkit exception class.

    This exception is not raised directly. Other exceptions inherit it in
    order to display source annotations in the error string.
    """

    def __init__(self, message="Error Message not found.", *items, hint=None, prev_decl=None):
        """
        Exception initializer.

        Arguments
        ---------
        message : str
            Error message to display with the exception.
        *items : ast.AST | Tuple[str, ast.AST], optional
            Python ast node(s), or tuple of (description, node) indicating where
            the exception occurred. Source annotations are generated in the order
            the nodes are given. Nodes must have been produced by
            `pvmkit.ast.parse_to_ast` so that they carry their source text.
        """
        self._message = message
        self._hint = hint
        self.prev_decl = prev_decl

        self.lineno = None
        self.col_offset = None
        self.annotations = None

        if len(items) == 1 and isinstance(items[0], tuple) and isinstance(items[0][0], int):
            self.lineno, self.col_offset = items[0][:2]
        else:
            # strip out None sources so that None can be passed as a valid
            # annotation (in case it is only available optionally)
            self.annotations = [k for k in items if k is not None]

    def with_annotation(self, *annotations):
        """
        Creates a copy of this exception with a modified source annotation.

        Arguments
        ---------
        *annotations : ast.AST | Tuple[str, ast.AST]
            AST node(s), or tuple of (description, node) to use in the annotation.

        Returns
        -------
        A copy of the exception with the new node offset(s) applied.
        """
        exc = copy.copy(self)
        exc.annotations = annotations
        return exc

    def append_annotation(self, exc):
        if self.annotations is None:
            self.annotations = []

        self.annotations = [exc] + self.annotations

    @property
    def hint(self):
        # some hints are expensive to compute, so we wait until the last
        # minute when the formatted message is actually requested to compute
        # them.
        if callable(self._hint):
            return self._hint()
        return self._hint

    @property
    def message(self):
        msg = self._message
        if self.hint:
            msg += f"\n\n  (hint: {self.hint})"
        return msg

    def format_annotation(self, value):
        from pvmkit.utils import annotate_source_code

        node = value[1] if isinstance(value, tuple) else value
        node_msg = ""

        try:
            source_annotation = annotate_source_code(
                # add trailing space because EOF exceptions point one char beyond the length
                f"{node.full_source_code} ",
                node.lineno,
                node.col_offset,
                context_lines=PVMKIT_ERROR_CONTEXT_LINES,
                line_numbers=PVMKIT_ERROR_LINE_NUMBERS,
            )
        except Exception:
            # nodes which were not produced by our parser carry no source
            return None

        module_path = getattr(node, "module_path", None)
        if module_path not in (None, "<unknown>"):
            node_msg = f'{node_msg}contract "{module_path}:{node.lineno}", '

        decl_name = getattr(node, "decl_name", None)
        if decl_name:
            node_msg = f'{node_msg}declaration "{decl_name}", '

        col_offset_str = "" if node.col_offset is None else str(node.col_offset)
        node_msg = f"{node_msg}line {node.lineno}:{col_offset_str} \n{source_annotation}\n"

        if isinstance(value, tuple):
            # if annotation includes a message, apply it at the start and further indent
            node_msg = textwrap.indent(node_msg, "  ")
            node_msg = f"{value[0]}\n{node_msg}"

        node_msg = textwrap.indent(node_msg, "  ")
        return node_msg

    def __str__(self):
        if not self.annotations:
            if self.lineno is not None and self.col_offset is not None:
                return f"line {self.lineno}:{self.col_offset} {self.message}"
            else:
                return self.message

        annotation_list = []

        if self.prev_decl is not None:
            formatted_decl = self.format_annotation(self.prev_decl)
            formatted_decl = f" (previously declared at):\n{formatted_decl}"
            annotation_list.append(formatted_decl)

        for value in self.annotations:
            annotation_list.append(self.format_annotation(value))

        annotation_list = [s for s in annotation_list if s is not None]
        annotation_msg = "\n".join(annotation_list)
        return f"{self.message}\n\n{annotation_msg}"


class PvmException(_BasePvmException):
    pass


class GenerationError(PvmException):
    """The contract module cannot be turned into an artifact."""


class SyntaxException(GenerationError):

    """Invalid syntax."""

    def __init__(self, message, source_code, lineno, col_offset):
        item = types.SimpleNamespace()
        item.lineno = lineno
        item.col_offset = col_offset
        item.full_source_code = source_code
        super().__init__(message, item)


class ParserException(Exception):
    """Contract source cannot be parsed."""


class PragmaException(SyntaxException):
    """Invalid pragma."""


class VersionException(SyntaxException):
    """Version string is malformed or incompatible with this compiler version."""


class StructureException(GenerationError):
    """Invalid structure for the contract module."""


class DuplicateDeclaration(StructureException):
    """A declaration which may appear at most once was declared again."""


class NamespaceCollision(GenerationError):
    """A name collides with one reserved for generated code."""


class SelectorCollision(GenerationError):
    """Two callable declarations derive the same selector."""


class UnknownType(GenerationError):
    """Reference to a type that does not exist."""


class InvalidType(GenerationError):
    """Type is invalid for an action."""


class StorageDeclarationException(GenerationError):
    """Invalid storage declaration."""


class FunctionDeclarationException(GenerationError):
    """Invalid init or call declaration."""


class EventDeclarationException(GenerationError):
    """Invalid event declaration."""


class InterfaceDeclarationException(GenerationError):
    """Invalid interface declaration."""


class PvmInternalException(_BasePvmException):
    """
    Base pvmkit internal exception class.

    This exception is not raised directly, it is subclassed by other internal
    exceptions.

    Internal exceptions are raised as a means of telling the user that the
    compiler has panicked, and that filing a bug report would be appropriate.
    """

    def __str__(self):
        return (
            f"{super().__str__()}\n\n"
            "This is an unhandled internal compiler error. "
            "Please create an issue to notify the developers!"
        )


class CompilerPanic(PvmInternalException):
    """General unexpected error during compilation."""


class CodegenPanic(PvmInternalException):
    """Invalid code generated during codegen phase"""


@contextlib.contextmanager
def tag_exceptions(node, fallback_exception_type=CompilerPanic, note=None):
    try:
        yield
    except _BasePvmException as e:
        if not e.annotations and not e.lineno:
            tb = e.__traceback__
            raise e.with_annotation(node).with_traceback(tb) from None
        raise e from None
    except Exception as e:
        tb = e.__traceback__
        fallback_message = f"unhandled exception {e}"
        if note:
            fallback_message += f", {note}"
        raise fallback_exception_type(fallback_message, node).with_traceback(tb)
