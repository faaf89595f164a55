import io
import re
from tokenize import COMMENT, OP, TokenError, tokenize

from packaging.specifiers import InvalidSpecifier, SpecifierSet

from pvmkit.compiler.settings import Settings
from pvmkit.exceptions import PragmaException, SyntaxException, VersionException

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_version_pragma(version_str: str, location: tuple) -> None:
    """
    Validates a version pragma directive against the current compiler version.
    """
    from pvmkit import __version__

    if len(version_str) == 0:
        raise VersionException("Version specification cannot be empty", *location)

    # X.Y.Z or vX.Y.Z => ==X.Y.Z, ==vX.Y.Z
    if re.match("[v0-9]", version_str):
        version_str = "==" + version_str
    # convert npm to pep440
    version_str = re.sub("^\\^", "~=", version_str)

    try:
        spec = SpecifierSet(version_str)
    except InvalidSpecifier:
        raise VersionException(
            f'Version specification "{version_str}" is not a valid PEP440 specifier', *location
        )

    if not spec.contains(__version__, prereleases=True):
        raise VersionException(
            f'Version specification "{version_str}" is not compatible '
            f'with compiler version "{__version__}"',
            *location,
        )


def _parse_pragma(comment_contents, settings, code, start):
    pragma = comment_contents.removeprefix("pragma ").strip()

    # location for error messages
    location = code, *start

    if pragma.startswith("version "):
        if settings.compiler_version is not None:
            raise PragmaException("pragma version specified twice!", *location)
        compiler_version = pragma.removeprefix("version ").strip()
        validate_version_pragma(compiler_version, location)
        settings.compiler_version = compiler_version
        return

    if pragma.startswith("name "):
        if settings.contract_name is not None:
            raise PragmaException("pragma name specified twice!", *location)
        name = pragma.removeprefix("name").strip()
        if not _IDENTIFIER_RE.match(name):
            raise PragmaException(f"Invalid contract name `{name}`", *location)
        settings.contract_name = name
        return

    if pragma == "debug":
        if settings.debug is not None:
            raise PragmaException("pragma debug specified twice!", *location)
        settings.debug = True
        return

    raise PragmaException(f"Unknown pragma `{(pragma.split() or [''])[0]}`", *location)


class PreParser:
    """
    Token-level pass run before the python parser.

    * reads `# pragma ...` comments into ``settings``
    * rejects `;` statement separators, so that every statement of the
      contract owns the source lines it spans
    """

    # Compilation settings based on the directives in the source code
    settings: Settings

    def parse(self, code: str):
        try:
            self._parse(code)
        except TokenError as e:
            raise SyntaxException(e.args[0], code, e.args[1][0], e.args[1][1]) from e
        except IndentationError as e:
            raise SyntaxException(str(e), code, e.lineno, max((e.offset or 1) - 1, 0)) from e

    def _parse(self, code: str):
        settings = Settings()

        code_bytes = code.encode("utf-8")
        token_list = list(tokenize(io.BytesIO(code_bytes).readline))

        for token in token_list:
            typ = token.type
            string = token.string
            start = token.start

            if typ == COMMENT:
                contents = string[1:].strip()
                if contents.startswith("pragma "):
                    _parse_pragma(contents, settings, code, start)

            if (typ, string) == (OP, ";"):
                raise SyntaxException("Semi-colon statements not allowed", code, start[0], start[1])

        self.settings = settings
