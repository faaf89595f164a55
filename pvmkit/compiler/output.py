from pvmkit.codegen.dispatch import (
    generate_call_entry,
    generate_deploy_entry,
    generate_method_table,
)
from pvmkit.codegen.module import join_blocks
from pvmkit.codegen.proxy import generate_interface_proxy, generate_module_proxy
from pvmkit.codegen.storage import generate_storage
from pvmkit.compiler.phases import CompilerData


def _text(lines) -> str:
    return "\n".join(lines) + "\n" if lines else ""


def build_module_output(compiler_data: CompilerData) -> str:
    return compiler_data.artifact


def build_storage_output(compiler_data: CompilerData) -> str:
    storage = compiler_data.module_t.storage
    if storage is None:
        return ""
    return _text(generate_storage(storage))


def build_deploy_output(compiler_data: CompilerData) -> str:
    return _text(generate_deploy_entry(compiler_data.module_t))


def build_dispatch_output(compiler_data: CompilerData) -> str:
    module_t = compiler_data.module_t
    return _text(join_blocks([generate_method_table(module_t), generate_call_entry(module_t)]))


def build_proxy_output(compiler_data: CompilerData) -> str:
    module_t = compiler_data.module_t
    blocks = [generate_module_proxy(module_t)]
    blocks.extend(generate_interface_proxy(i) for i in module_t.interfaces)
    return _text(join_blocks(blocks))


def build_events_output(compiler_data: CompilerData) -> dict:
    ret = {}
    for event in compiler_data.module_t.events:
        ret[event.name] = {
            "topic": "0x" + event.topic.hex(),
            "fields": [{"name": f.name, "type": f.typ._id} for f in event.fields],
        }
    return ret


def build_method_identifiers_output(compiler_data: CompilerData) -> dict:
    return compiler_data.module_t.method_identifiers


def build_layout_output(compiler_data: CompilerData) -> dict:
    storage = compiler_data.module_t.storage
    if storage is None:
        return {}
    return {
        "storage": {
            "type": storage.name,
            "key": "0x" + storage.key.hex(),
            "fields": [{"name": f.name, "type": f.typ._id} for f in storage.fields],
        }
    }


def build_interface_output(compiler_data: CompilerData) -> str:
    """
    An `@interface` declaration other contracts can paste in to call
    this one through a typed proxy.
    """
    module_t = compiler_data.module_t
    name = module_t.proxy_name.removesuffix("Ref")

    out = "from pvmkit.lang import *  # noqa: F401,F403\n\n\n"
    out += f"@interface\nclass {name}:\n"
    if not module_t.calls:
        out += "    pass\n"
    for call in module_t.calls:
        args = "".join(f", {a.name}: {a.typ._id}" for a in call.args)
        ret = call.return_type._id if call.return_type is not None else "None"
        out += f"    def {call.name}(self{args}) -> {ret}: ...\n"
    return out


def build_metadata_output(compiler_data: CompilerData) -> dict:
    return compiler_data.metadata

