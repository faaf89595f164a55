"""
Load a generated artifact into a live module.
"""
import itertools
import sys
import types
from functools import cached_property
from typing import Optional

import cbor2

from pvmkit.runtime import entry
from pvmkit.warnings import ArtifactVersionMismatch, pvm_warn

_counter = itertools.count()


class Contract:
    """A loaded artifact: entry points plus the method table."""

    def __init__(self, module: types.ModuleType, name: str):
        self.module = module
        self.name = name

    def deploy(self, host) -> None:
        getattr(self.module, entry.ENTRY_DEPLOY)(host)

    def call(self, host) -> None:
        getattr(self.module, entry.ENTRY_CALL)(host)

    @property
    def methods(self):
        return getattr(self.module, entry.METHODS)

    @property
    def dispatch_table(self):
        return getattr(self.module, entry.DISPATCH_TABLE)

    @property
    def storage_class(self):
        # None when the contract declares no storage
        return getattr(self.module, entry.STORAGE_CLASS)

    @cached_property
    def metadata(self) -> dict:
        return decode_metadata(getattr(self.module, entry.METADATA))

    def __getattr__(self, name):
        # generated proxies, events and the storage class live on the module
        if name in ("module", "name"):
            raise AttributeError(name)
        try:
            return getattr(self.module, name)
        except AttributeError:
            raise AttributeError(f"contract {self.name!r} has no attribute {name!r}") from None

    def __repr__(self):
        return f"<Contract {self.name}>"


def decode_metadata(data: bytes) -> dict:
    return cbor2.loads(data)


def check_metadata(metadata: dict, name: str) -> None:
    from pvmkit import __version__

    built_with = metadata.get("version")
    if built_with != __version__:
        pvm_warn(
            ArtifactVersionMismatch(
                f"{name} was generated by pvmkit {built_with}, running under {__version__}"
            )
        )


def load_module(source: str, name: str, module_name: Optional[str] = None) -> types.ModuleType:
    """
    Execute artifact ``source`` in a fresh module. The module is
    registered in ``sys.modules`` because dataclass processing looks the
    defining module up there.
    """
    if module_name is None:
        module_name = f"pvmkit_artifact_{name}_{next(_counter)}"

    module = types.ModuleType(module_name)
    module.__file__ = f"<pvmkit artifact {name}>"
    sys.modules[module_name] = module
    try:
        code = compile(source, module.__file__, "exec")
        exec(code, module.__dict__)
    except BaseException:
        del sys.modules[module_name]
        raise
    return module


def load_contract(artifact, name: Optional[str] = None, module_name: Optional[str] = None):
    """
    Load ``artifact``: either artifact source text or the output dict of
    ``compile_code`` (which must contain the ``module`` format).
    """
    if isinstance(artifact, dict):
        source = artifact["module"]
    else:
        source = artifact

    module = load_module(source, name or "contract", module_name)
    metadata = decode_metadata(getattr(module, entry.METADATA))
    name = name or metadata.get("name", "contract")
    check_metadata(metadata, name)

    return Contract(module, name)
