import ast as python_ast


def get_text(node: python_ast.AST) -> str:
    """Source text of ``node`` exactly as the author wrote it."""
    return node.node_source_code


def start_lineno(node: python_ast.stmt) -> int:
    # a definition starts at its first decorator, not at `def`/`class`
    decorators = getattr(node, "decorator_list", None)
    if decorators:
        return min(d.lineno for d in decorators)
    return node.lineno


def source_lines_of(node: python_ast.stmt, skip=()) -> list:
    """
    The source lines spanned by ``node`` (decorators included), minus the
    lines spanned by any node in ``skip``.
    """
    lines = node.full_source_code.splitlines()
    skipped = set()
    for n in skip:
        skipped.update(range(n.lineno, n.end_lineno + 1))
    return [
        lines[i - 1] for i in range(start_lineno(node), node.end_lineno + 1) if i not in skipped
    ]
