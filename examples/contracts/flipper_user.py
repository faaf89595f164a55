"""
Calls a Flipper contract through its proxy.

Deploy a Flipper, deploy this contract, point it at the Flipper with
`set_flipper_address`, then use `call_flip` and `call_get`.
"""
from pvmkit.lang import Address, Mut, Ref, call, init, interface, storage
from pvmkit.runtime.exceptions import ContractCallError


@interface
class Flipper:
    def flip(self) -> None: ...

    def get(self) -> bool: ...


@storage
class FlipperUser:
    # the Flipper contract to interact with
    flipper_address: Address


@init
def new() -> FlipperUser:
    return FlipperUser()


@call
def call_flip(state: Ref[FlipperUser]):
    FlipperRef(state.flipper_address).flip()


@call
def call_get(state: Ref[FlipperUser]) -> bool:
    try:
        return FlipperRef(state.flipper_address).get()
    except ContractCallError:
        return False


@call
def get_flipper_address(state: Ref[FlipperUser]) -> Address:
    return state.flipper_address


@call
def set_flipper_address(state: Mut[FlipperUser], flipper: Address):
    state.flipper_address = flipper
