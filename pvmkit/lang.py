"""
Author-facing markers.

The generator reads these markers statically and never imports the
author's module, so at runtime every marker is the identity. They exist
so that contract sources import cleanly for editors and type checkers.
"""
from typing import Generic, TypeVar

from pvmkit.runtime.storage import Lazy, Mapping
from pvmkit.runtime.types import (
    Address,
    Hash,
    i8,
    i16,
    i32,
    i64,
    i128,
    i256,
    u8,
    u16,
    u32,
    u64,
    u128,
    u256,
)

S = TypeVar("S")

MARKERS = ("storage", "init", "call", "event", "interface")


def storage(cls):
    return cls


def init(fn):
    return fn


def call(fn):
    return fn


def event(cls):
    return cls


def interface(cls):
    return cls


class Ref(Generic[S]):
    """Shared state reference: the call reads storage and never persists it."""


class Mut(Generic[S]):
    """Exclusive state reference: the call's changes are persisted on return."""


__all__ = [
    "Address",
    "Hash",
    "Lazy",
    "Mapping",
    "Mut",
    "Ref",
    "call",
    "event",
    "init",
    "interface",
    "storage",
    "u8",
    "u16",
    "u32",
    "u64",
    "u128",
    "u256",
    "i8",
    "i16",
    "i32",
    "i64",
    "i128",
    "i256",
]
