import contextlib
import warnings
from typing import Optional

from pvmkit.exceptions import _BasePvmException


class PvmWarning(_BasePvmException, Warning):
    pass


# print a warning
def pvm_warn(warning: PvmWarning | str, node=None):
    if isinstance(warning, str):
        warning = PvmWarning(warning, node)
    warnings.warn(warning, stacklevel=2)


@contextlib.contextmanager
def warnings_filter(warnings_control: Optional[str]):
    # note: using warnings.catch_warnings() since it saves and restores
    # the warnings filter
    with warnings.catch_warnings():
        set_warnings_filter(warnings_control)
        yield


def set_warnings_filter(warnings_control: Optional[str]):
    if warnings_control == "error":
        warnings_filter = "error"
    elif warnings_control == "none":
        warnings_filter = "ignore"
    else:
        assert warnings_control is None  # sanity
        warnings_filter = "default"

    if warnings_control is not None:
        # warnings.simplefilter only adds to the warnings filters,
        # so we should clear warnings filter between calls to simplefilter()
        warnings.resetwarnings()

    warnings.simplefilter(warnings_filter, category=PvmWarning)  # type: ignore[arg-type]


class SharedStateMutation(PvmWarning):
    """
    Warn when a call taking a shared state reference assigns to it.
    The assignment is discarded because shared calls never persist.
    """

    pass


class Deprecation(PvmWarning):
    """
    General deprecation warning
    """

    pass


class ArtifactVersionMismatch(PvmWarning):
    """
    Warn when a loaded artifact was generated by a different pvmkit version
    """

    pass
