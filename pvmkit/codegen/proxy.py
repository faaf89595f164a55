"""
Typed client classes for invoking a contract from another contract.

The proxy of the contract being generated reuses the selector and codec
constants its own dispatch compares against, so a proxy can never
disagree with the dispatch table of the contract it targets.
"""
from typing import List, Optional

from pvmkit.codegen.core import (
    ADDRESS,
    CALL,
    args_codec_expr,
    args_const,
    indent_lines,
    literal,
    ret_const,
    selector_const,
)
from pvmkit.semantics.analysis import CallT, InterfaceT, ModuleT


def _method(call: CallT) -> List[str]:
    suffix = call.const_suffix
    params = "".join(f"{a.name}, " for a in call.args)
    ret = [f"def {call.name}(self, {params}host=None):"]

    docstring = f"Invoke `{call.signature()}` on the target contract."
    ret.append(f'    """{docstring}"""')

    if call.arity == 0:
        args = 'b""'
    elif call.arity == 1:
        args = f"self._ARGS_{suffix}.encode({call.args[0].name})"
    else:
        names = ", ".join(a.name for a in call.args)
        args = f"self._ARGS_{suffix}.encode(({names}))"

    if call.return_type is None:
        ret.append(f"    {CALL}.call(self._address, self.SELECTOR_{suffix}, {args}, host)")
    else:
        ret.append(
            f"    return {CALL}.call_and_decode("
            f"self._address, self.SELECTOR_{suffix}, {args}, self._RET_{suffix}, host)"
        )
    return ret


def _constants(call: CallT, own: bool) -> List[str]:
    """
    Class-level selector and codecs of ``call``. ``own`` proxies refer to
    the module-level constants; interface proxies spell them out.
    """
    suffix = call.const_suffix
    args_codec: Optional[str] = args_codec_expr([a.typ for a in call.args])
    if own:
        ret = [f"SELECTOR_{suffix} = {selector_const(call.name)}"]
        if args_codec is not None:
            ret.append(f"_ARGS_{suffix} = {args_const(call.name)}")
        if call.return_type is not None:
            ret.append(f"_RET_{suffix} = {ret_const(call.name)}")
        return ret

    ret = [f"SELECTOR_{suffix} = {literal(call.selector)}"]
    if args_codec is not None:
        ret.append(f"_ARGS_{suffix} = {args_codec}")
    if call.return_type is not None:
        ret.append(f"_RET_{suffix} = {call.return_type.codec_expr()}")
    return ret


def _proxy_class(name: str, docstring: str, calls: List[CallT], own: bool) -> List[str]:
    body = [f'"""{docstring}"""', ""]
    for call in calls:
        body.extend(_constants(call, own))
    if calls:
        body.append("")

    body += [
        "def __init__(self, address):",
        f"    self._address = {ADDRESS}(address)",
        "",
        "@property",
        f"def address(self) -> {ADDRESS}:",
        "    return self._address",
        "",
        "def __repr__(self):",
        f'    return f"{name}({{self._address}})"',
    ]
    for call in calls:
        body.append("")
        body.extend(_method(call))

    return [f"class {name}:"] + indent_lines(body)


def generate_module_proxy(module_t: ModuleT) -> List[str]:
    return _proxy_class(
        module_t.proxy_name,
        f"Client for a deployed `{module_t.name}` contract.",
        module_t.calls,
        own=True,
    )


def generate_interface_proxy(iface: InterfaceT) -> List[str]:
    return _proxy_class(
        iface.proxy_name,
        f"Client for any contract implementing `{iface.name}`.",
        iface.methods,
        own=False,
    )
