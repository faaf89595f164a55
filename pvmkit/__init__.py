from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _version

from pvmkit.compiler import compile_code, compile_from_file_input

__version__: str
try:
    __version__ = _version(__name__)
except PackageNotFoundError:
    from pvmkit.version import version

    __version__ = version
