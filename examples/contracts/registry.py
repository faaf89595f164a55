"""
Name registry: maps names to owners, with a running count.
"""
# pragma version >=0.1.0

from typing import Optional

from pvmkit import env
from pvmkit.lang import Address, Mapping, Mut, Ref, call, event, storage, u32

OWNERS = Mapping("registry.owners", str, Address)


@storage
class Registry:
    count: u32
    names: list[str]


@event
class Registered:
    name: str
    owner: Address


@call
def register(state: Mut[Registry], name: str) -> bool:
    if OWNERS.contains(name):
        return False
    owner = env.caller()
    OWNERS.insert(name, owner)
    state.count += 1
    state.names.append(name)
    env.emit(Registered(name=name, owner=owner))
    return True


@call
def owner_of(name: str) -> Optional[Address]:
    return OWNERS.get(name)


@call
def count(state: Ref[Registry]) -> u32:
    return state.count


@call
def names(state: Ref[Registry]) -> list[str]:
    return state.names
