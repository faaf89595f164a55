from pvmkit.runtime.arena import Arena
from pvmkit.runtime.exceptions import (
    AllocationError,
    CallFailed,
    ContractCallError,
    ContractReturn,
    ContractRevert,
)
from pvmkit.runtime.host import Host
from pvmkit.runtime.types import Address, Hash
