import pytest

import pvmkit
from pvmkit.ast.pre_parser import PreParser, validate_version_pragma
from pvmkit.compiler import compile_code
from pvmkit.compiler.settings import Settings
from pvmkit.exceptions import PragmaException, SyntaxException, VersionException

SRC_LINE = (1, 0)  # Dummy source line
COMPILER_VERSION = "0.1.5"
PRERELEASE_COMPILER_VERSION = "0.2.0b1"


@pytest.fixture
def mock_version(monkeypatch):
    def set_version(version):
        monkeypatch.setattr(pvmkit, "__version__", version)

    return set_version


valid_versions = [
    "0.1.5",
    "==0.1.5",
    ">=0.1.0",
    ">0.1.0,<0.2",
    "^0.1.1",
    "~=0.1.0",
    "0.1.*",
]


@pytest.mark.parametrize("file_version", valid_versions)
def test_valid_version_pragma(file_version, mock_version):
    mock_version(COMPILER_VERSION)
    validate_version_pragma(file_version, (file_version, *SRC_LINE))


invalid_versions = [
    "0.1.4",
    ">0.1.5",
    "<0.1.5",
    "^0.2.0",
    "1.0",
    ">=1.0.0",
]


@pytest.mark.parametrize("file_version", invalid_versions)
def test_invalid_version_pragma(file_version, mock_version):
    mock_version(COMPILER_VERSION)
    with pytest.raises(VersionException):
        validate_version_pragma(file_version, (file_version, *SRC_LINE))


@pytest.mark.parametrize("file_version", ["", "=>0.1", "0.1 0.2", "abc"])
def test_malformed_version_pragma(file_version, mock_version):
    mock_version(COMPILER_VERSION)
    with pytest.raises(VersionException):
        validate_version_pragma(file_version, (file_version, *SRC_LINE))


def test_prerelease_version(mock_version):
    mock_version(PRERELEASE_COMPILER_VERSION)
    validate_version_pragma(">=0.2.0b1", (">=0.2.0b1", *SRC_LINE))
    with pytest.raises(VersionException):
        validate_version_pragma(">=0.2.0", (">=0.2.0", *SRC_LINE))


pragma_examples = [
    ("", Settings()),
    ("# pragma name token", Settings(contract_name="token")),
    ("# pragma debug", Settings(debug=True)),
    (
        """
# pragma name token
# pragma debug
    """,
        Settings(contract_name="token", debug=True),
    ),
    ("#    pragma name   token  ", Settings(contract_name="token")),
]


@pytest.mark.parametrize("code, expected", pragma_examples)
def test_parse_pragmas(code, expected, mock_version):
    mock_version("0.1.0")
    pre_parser = PreParser()
    pre_parser.parse(code)
    assert pre_parser.settings == expected


def test_version_pragma_sets_compiler_version(mock_version):
    mock_version("0.1.0")
    pre_parser = PreParser()
    pre_parser.parse("# pragma version ^0.1.0\n")
    assert pre_parser.settings.compiler_version == "^0.1.0"


invalid_pragmas = [
    "# pragma name token\n# pragma name other",
    "# pragma debug\n# pragma debug",
    "# pragma version 0.1.0\n# pragma version 0.1.0",
    "# pragma name 1token",
    "# pragma name my-token",
    "# pragma optimize gas",
]


@pytest.mark.parametrize("code", invalid_pragmas)
def test_invalid_pragma(code, mock_version):
    mock_version("0.1.0")
    with pytest.raises(PragmaException):
        PreParser().parse(code)


def test_plain_comments_are_ignored():
    pre_parser = PreParser()
    pre_parser.parse("# this is a pragma name, but not a directive\nx = 1\n")
    assert pre_parser.settings == Settings()


@pytest.mark.parametrize("code", ["x = 1; y = 2", "def f(): pass; pass"])
def test_semicolons_rejected(code):
    with pytest.raises(SyntaxException, match="Semi-colon"):
        PreParser().parse(code)


def test_semicolon_in_string_is_allowed():
    PreParser().parse('x = "a;b"\n# ; in a comment\n')


def test_pragma_settings_conflict():
    code = """
# pragma name token
from pvmkit.lang import call


@call
def f():
    pass
"""
    with pytest.raises(ValueError, match="settings conflict"):
        compile_code(code, settings=Settings(contract_name="other"))
