import contextlib
import dataclasses
import os
from dataclasses import dataclass
from typing import Generator, Optional

PVMKIT_ERROR_CONTEXT_LINES = int(os.environ.get("PVMKIT_ERROR_CONTEXT_LINES", "1"))
PVMKIT_ERROR_LINE_NUMBERS = os.environ.get("PVMKIT_ERROR_LINE_NUMBERS", "1") == "1"

PVMKIT_TRACEBACK_LIMIT: Optional[int]

_tb_limit_str = os.environ.get("PVMKIT_TRACEBACK_LIMIT")
if _tb_limit_str is not None:
    PVMKIT_TRACEBACK_LIMIT = int(_tb_limit_str)
else:
    PVMKIT_TRACEBACK_LIMIT = None


@dataclass
class Settings:
    compiler_version: Optional[str] = None
    contract_name: Optional[str] = None
    debug: Optional[bool] = None

    def __post_init__(self):
        # sanity check inputs
        if self.contract_name is not None:
            assert isinstance(self.contract_name, str)
        if self.debug is not None:
            assert isinstance(self.debug, bool)

    def as_dict(self):
        ret = dataclasses.asdict(self)
        # compiler_version is not a compiler input, it can only come from
        # source code pragma.
        ret.pop("compiler_version", None)
        return {k: v for (k, v) in ret.items() if v is not None}


def merge_settings(
    one: Settings, two: Settings, lhs_source="compiler settings", rhs_source="source pragma"
) -> Settings:
    def _merge_one(lhs, rhs, helpstr):
        if lhs is not None and rhs is not None and lhs != rhs:
            # aesthetics, conjugate the verbs per english rules
            s1 = "" if lhs_source.endswith("s") else "s"
            s2 = "" if rhs_source.endswith("s") else "s"
            raise ValueError(
                f"settings conflict!\n\n  {lhs_source}: {one}\n  {rhs_source}: {two}\n\n"
                f"({lhs_source} indicate{s1} {helpstr} {lhs}, but {rhs_source} indicate{s2} {rhs}.)"
            )
        return lhs if rhs is None else rhs

    ret = Settings()
    for field in dataclasses.fields(ret):
        if field.name == "compiler_version":
            continue
        pretty_name = field.name.replace("_", "-")  # e.g. contract_name -> contract-name
        val = _merge_one(getattr(one, field.name), getattr(two, field.name), pretty_name)
        setattr(ret, field.name, val)

    return ret


_settings = None


def get_global_settings() -> Optional[Settings]:
    return _settings


def set_global_settings(new_settings: Optional[Settings]) -> None:
    assert isinstance(new_settings, Settings) or new_settings is None

    global _settings
    _settings = new_settings


@contextlib.contextmanager
def anchor_settings(new_settings: Settings) -> Generator:
    """
    Set the globally available settings for the duration of this context manager
    """
    assert new_settings is not None
    global _settings
    try:
        tmp = get_global_settings()
        set_global_settings(new_settings)
        yield
    finally:
        set_global_settings(tmp)


def _is_debug_mode():
    settings = get_global_settings()
    return settings is not None and bool(settings.debug)
