"""
Access to the host of the running invocation.

Generated entry points bind their host here for the duration of the
invocation, so contract code can ask for the caller, emit events and so
on without threading the host through every function.
"""
import contextlib
from contextvars import ContextVar
from typing import Optional

from pvmkit.runtime.exceptions import NoActiveHost

_active_host: ContextVar = ContextVar("pvmkit_active_host", default=None)


@contextlib.contextmanager
def bind(host):
    token = _active_host.set(host)
    try:
        yield host
    finally:
        _active_host.reset(token)


def current():
    host = _active_host.get()
    if host is None:
        raise NoActiveHost("no host is bound; contract code must run inside an entry point")
    return host


def resolve(host: Optional[object] = None):
    return host if host is not None else current()


def caller():
    return current().caller()


def address():
    return current().address()


def block_number() -> int:
    return current().block_number()


def now() -> int:
    return current().now()


def value_transferred() -> int:
    return current().value_transferred()


def input() -> bytes:
    return current().input()


def emit(event, host=None) -> None:
    """Deposit ``event`` (a generated event record) in the host's log."""
    resolve(host).deposit_event(event.topics(), event.encode())
