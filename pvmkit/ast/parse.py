import ast as python_ast
from typing import Optional

import asttokens

from pvmkit.ast.pre_parser import PreParser
from pvmkit.exceptions import ParserException, SyntaxException


def parse_to_ast(
    source_code: str,
    source_id: int = 0,
    module_path: Optional[str] = None,
    resolved_path: Optional[str] = None,
) -> python_ast.Module:
    try:
        return _parse_to_ast(source_code, source_id, module_path, resolved_path)
    except SyntaxException as e:
        e.resolved_path = resolved_path
        for item in e.annotations or ():
            item.module_path = module_path
        raise e


def _parse_to_ast(
    source_code: str,
    source_id: int = 0,
    module_path: Optional[str] = None,
    resolved_path: Optional[str] = None,
) -> python_ast.Module:
    """
    Parses a contract source string into an annotated python AST.

    Parameters
    ----------
    source_code: str
        The contract source code to parse.
    source_id: int, optional
        Source id to use in the `src` member of each node.
        Corresponds to FileInput.source_id
    module_path: str, optional
        The path of the source code
        Corresponds to FileInput.path
    resolved_path: str, optional
        The resolved path of the source code
        Corresponds to FileInput.resolved_path

    Returns
    -------
    ast.Module
        The python AST, every node carrying its source text and the full
        source code (for error annotations). The module node also carries
        the pragma ``settings`` and the ``tokens`` used for text lookups.
    """
    if "\x00" in source_code:
        raise ParserException("No null bytes (\\x00) allowed in the source code.")
    pre_parser = PreParser()
    pre_parser.parse(source_code)

    try:
        py_ast = python_ast.parse(source_code)
    except SyntaxError as e:
        offset = e.offset
        if offset is not None:
            # SyntaxError offset is 1-based, not 0-based (see:
            # https://docs.python.org/3/library/exceptions.html#SyntaxError.offset)
            offset -= 1
        raise SyntaxException(str(e), source_code, e.lineno, offset) from None

    tokens = asttokens.ASTTokens(source_code, tree=py_ast)
    annotate_python_ast(py_ast, source_code, tokens, source_id, module_path, resolved_path)

    py_ast.settings = pre_parser.settings
    py_ast.tokens = tokens
    return py_ast


def annotate_python_ast(
    parsed_ast: python_ast.Module,
    source_code: str,
    tokens: asttokens.ASTTokens,
    source_id: int = 0,
    module_path: Optional[str] = None,
    resolved_path: Optional[str] = None,
) -> python_ast.AST:
    """
    Annotate a Python AST with the information error messages and the
    generator need.

    Parameters
    ----------
    parsed_ast : AST
        The AST to be annotated.
    source_code: str
        The original source code
    tokens: ASTTokens
        Token information for ``parsed_ast``.

    Returns
    -------
        The annotated AST.
    """
    visitor = AnnotatingVisitor(source_code, tokens, source_id, module_path, resolved_path)
    visitor.visit(parsed_ast)

    return parsed_ast


class AnnotatingVisitor(python_ast.NodeVisitor):
    _source_code: str

    def __init__(
        self,
        source_code: str,
        tokens: asttokens.ASTTokens,
        source_id: int,
        module_path: Optional[str] = None,
        resolved_path: Optional[str] = None,
    ):
        self._tokens = tokens
        self._source_id = source_id
        self._module_path = module_path
        self._resolved_path = resolved_path
        self._source_code = source_code
        self.counter: int = 0

    def generic_visit(self, node):
        # decorate every node with the original source code to allow
        # pretty-printing errors
        node.full_source_code = self._source_code
        node.module_path = self._module_path
        node.resolved_path = self._resolved_path
        node.node_id = self.counter
        node.ast_type = node.__class__.__name__
        self.counter += 1

        if hasattr(node, "first_token"):
            start_pos, end_pos = self._tokens.get_text_range(node)
            node.src = f"{start_pos}:{end_pos - start_pos}:{self._source_id}"
            node.node_source_code = self._source_code[start_pos:end_pos]

        super().generic_visit(node)
