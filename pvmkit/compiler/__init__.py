from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import pvmkit.ast as pvm_ast  # noqa: F401 break an import cycle
import pvmkit.compiler.output as output
from pvmkit.compiler.input_bundle import FileInput, PathLike
from pvmkit.compiler.phases import DEFAULT_CONTRACT_PATH, CompilerData
from pvmkit.compiler.settings import Settings

OUTPUT_FORMATS = {
    # requires module_t
    "storage": output.build_storage_output,
    "deploy": output.build_deploy_output,
    "dispatch": output.build_dispatch_output,
    "proxy": output.build_proxy_output,
    "events": output.build_events_output,
    "method_identifiers": output.build_method_identifiers_output,
    "layout": output.build_layout_output,
    "interface": output.build_interface_output,
    # requires metadata
    "metadata": output.build_metadata_output,
    # requires the full artifact
    "module": output.build_module_output,
}


UNKNOWN_CONTRACT_NAME = "<unknown>"


def compile_from_file_input(
    file_input: FileInput,
    settings: Settings = None,
    output_formats: Optional[Sequence[str]] = None,
    exc_handler: Optional[Callable] = None,
) -> dict:
    """
    Main entry point into the compiler.

    Generate consumable compiler output(s) from a single contract source code.
    Basically, a wrapper around CompilerData which munges the output
    data into the requested output formats.

    Arguments
    ---------
    file_input: FileInput
        Contract source to be compiled.
    settings: Settings, optional
        Compiler settings.
    output_formats: List, optional
        List of compiler outputs to generate. Possible options are all the keys
        in `OUTPUT_FORMATS`. If not given, the artifact module is generated.
    exc_handler: Callable, optional
        Callable used to handle exceptions if the compilation fails. Should accept
        two arguments - the name of the contract, and the exception that was raised

    Returns
    -------
    Dict
        Compiler output as `{'output key': "output data"}`
    """
    if output_formats is None:
        output_formats = ("module",)

    compiler_data = CompilerData(file_input, settings)

    ret = {}
    for output_format in output_formats:
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported format type {repr(output_format)}")
        try:
            formatter = OUTPUT_FORMATS[output_format]
            ret[output_format] = formatter(compiler_data)
        except Exception as exc:
            if exc_handler is not None:
                exc_handler(str(file_input.path), exc)
            else:
                raise exc

    return ret


def compile_code(
    source_code: str,
    contract_path: Union[str, PathLike] = DEFAULT_CONTRACT_PATH,
    source_id: int = -1,
    resolved_path: Optional[PathLike] = None,
    *args,
    **kwargs,
):
    """
    Do the same thing as compile_from_file_input but takes a string for
    source code.
    """
    if isinstance(contract_path, str):
        contract_path = Path(contract_path)
    file_input = FileInput(
        source_id=source_id,
        contents=source_code,
        path=contract_path,
        resolved_path=resolved_path or contract_path,
    )
    return compile_from_file_input(file_input, *args, **kwargs)
