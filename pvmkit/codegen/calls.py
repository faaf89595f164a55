"""
Per-call wrappers.

A wrapper takes the host and the input after the selector. The state
parameter and the return type select one of six shapes:

==========  ======  ==============================================
state       return  behavior
==========  ======  ==============================================
none        none    decode args, invoke, return empty
none        T       decode args, invoke, encode, return
shared      none    load, invoke(state), return empty
shared      T       load, invoke(state), encode, return
exclusive   none    load, invoke(state), persist, return empty
exclusive   T       load, invoke(state), persist, encode, return
==========  ======  ==============================================

Shared state is never persisted. Exclusive state is persisted after
the body completes and before returning.
"""
from typing import List, Optional

from pvmkit.codegen.core import (
    ENTRY,
    args_codec_expr,
    args_const,
    literal,
    ret_const,
    selector_const,
)
from pvmkit.compiler.settings import _is_debug_mode
from pvmkit.exceptions import CodegenPanic
from pvmkit.runtime.entry import StateAccess
from pvmkit.semantics.analysis import CallT, InitT, StorageT

INIT_WRAPPER = "_pvm_init"


def wrapper_name(call: CallT) -> str:
    return f"_pvm_call_{call.name}"


def generate_call_constants(call: CallT) -> List[str]:
    ret = [f"{selector_const(call.name)} = {literal(call.selector)}"]
    args_codec = args_codec_expr([a.typ for a in call.args])
    if args_codec is not None:
        ret.append(f"{args_const(call.name)} = {args_codec}")
    if call.return_type is not None:
        ret.append(f"{ret_const(call.name)} = {call.return_type.codec_expr()}")
    return ret


def generate_call_wrapper(call: CallT, storage: Optional[StorageT]) -> List[str]:
    body = []

    invoke_args = []
    if call.has_state:
        if storage is None:
            raise CodegenPanic(f"call {call.name} takes state but there is no storage", call.node)
        invoke_args.append("_pvm_state")
    if call.arity > 0:
        decode = f"{ENTRY}.decode_args(_pvm_host, {args_const(call.name)}, _pvm_data, {call.arity})"
        body.append(f"_pvm_args = {decode}")
        invoke_args.append("*_pvm_args")
    if call.has_state:
        body.append(f"_pvm_state = {storage.name}.load(_pvm_host)")

    invocation = f"{call.name}({', '.join(invoke_args)})"
    if call.return_type is not None:
        body.append(f"_pvm_result = {invocation}")
    else:
        body.append(invocation)

    if call.state == StateAccess.EXCLUSIVE:
        body.append("_pvm_state.save(_pvm_host)")

    if call.return_type is not None:
        body.append(f"_pvm_host.return_value({ret_const(call.name)}.encode(_pvm_result))")
    else:
        body.append('_pvm_host.return_value(b"")')

    ret = [f"def {wrapper_name(call)}(_pvm_host, _pvm_data):"]
    if _is_debug_mode():
        ret.append(f"    # {call.signature()}, line {call.node.lineno}")
    return ret + ["    " + line for line in body]


def generate_init_wrapper(init: InitT, storage: StorageT) -> List[str]:
    return [
        f"def {INIT_WRAPPER}(_pvm_host):",
        f'    _pvm_state = {ENTRY}.check_state({init.name}(), {storage.name}, "{init.name}")',
        "    _pvm_state.save(_pvm_host)",
    ]
