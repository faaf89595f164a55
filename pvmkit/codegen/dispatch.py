"""
Method table and entry points.

The call entry point resets the arena, reads the input, requires a
4-byte selector and compares it against every selector constant in
declaration order. A match hands the rest of the input to the call's
wrapper, which returns or reverts on its own.
"""
from typing import List, Optional

from pvmkit.codegen.calls import INIT_WRAPPER, wrapper_name
from pvmkit.codegen.core import ENTRY, ENV, args_const, ret_const, selector_const
from pvmkit.runtime import entry
from pvmkit.semantics.analysis import ModuleT


def generate_method_table(module_t: ModuleT) -> List[str]:
    ret = [f"{entry.METHODS} = {ENTRY}.method_table("]
    for call in module_t.calls:
        args = args_const(call.name) if call.arity else "None"
        returns = ret_const(call.name) if call.return_type is not None else "None"
        ret += [
            f"    {ENTRY}.Method(",
            f'        "{call.name}",',
            f"        {selector_const(call.name)},",
            f"        {wrapper_name(call)},",
            f"        args={args},",
            f"        returns={returns},",
            f"        arity={call.arity},",
            f"        state={ENTRY}.StateAccess.{call.state.name},",
            "    ),",
        ]
    ret.append(")")
    ret.append(f"{entry.DISPATCH_TABLE} = {ENTRY}.dispatch_table({entry.METHODS})")
    storage_name = module_t.storage.name if module_t.storage is not None else "None"
    ret.append(f"{entry.STORAGE_CLASS} = {storage_name}")
    return ret


def generate_deploy_entry(module_t: ModuleT) -> List[str]:
    ret = [f"def {entry.ENTRY_DEPLOY}(host):", "    host.arena.reset()"]
    if module_t.init is not None:
        ret += [f"    with {ENV}.bind(host):", f"        {INIT_WRAPPER}(host)"]
    ret.append('    host.return_value(b"")')
    return ret


def generate_call_entry(module_t: ModuleT) -> List[str]:
    ret = [f"def {entry.ENTRY_CALL}(host):", "    host.arena.reset()"]
    if not module_t.calls:
        ret.append(f"    host.revert({ENTRY}.NO_METHODS)")
        return ret

    ret += [
        "    data = host.read_input()",
        "    if len(data) < 4:",
        f"        host.revert({ENTRY}.NO_SELECTOR)",
        "    selector = data[:4]",
        f"    with {ENV}.bind(host):",
    ]
    keyword: Optional[str] = "if"
    for call in module_t.calls:
        ret.append(f"        {keyword} selector == {selector_const(call.name)}:")
        ret.append(f"            {wrapper_name(call)}(host, data[4:])")
        keyword = "elif"
    ret += ["        else:", f"            host.revert({ENTRY}.UNKNOWN_SELECTOR)"]
    return ret
