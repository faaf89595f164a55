"""
Flipper: a single boolean that anyone can toggle.
"""
from pvmkit import env
from pvmkit.lang import Mut, Ref, call, event, init, storage


@storage
class Flipper:
    value: bool


@event
class Flipped:
    value: bool


@init
def new() -> Flipper:
    return Flipper(value=False)


@call
def flip(state: Mut[Flipper]):
    state.value = not state.value
    env.emit(Flipped(value=state.value))


@call
def get(state: Ref[Flipper]) -> bool:
    return state.value
