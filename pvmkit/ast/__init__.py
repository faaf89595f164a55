from pvmkit.ast.parse import parse_to_ast
from pvmkit.ast.utils import get_text, source_lines_of, start_lineno
