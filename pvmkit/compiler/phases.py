import re
from functools import cached_property
from pathlib import PurePath

import cbor2

from pvmkit.ast import parse_to_ast
from pvmkit.codegen.module import generate_module
from pvmkit.compiler.input_bundle import FileInput
from pvmkit.compiler.settings import Settings, anchor_settings, merge_settings
from pvmkit.semantics import ModuleT, analyze_module
from pvmkit.utils import sha256sum

DEFAULT_CONTRACT_PATH = PurePath("contract.py")

_NON_IDENTIFIER = re.compile(r"\W")


def _name_from_path(path: PurePath) -> str:
    # `my-token.py` -> `my_token`
    name = _NON_IDENTIFIER.sub("_", path.stem) or "contract"
    if name[0].isdigit():
        name = "_" + name
    return name


class CompilerData:
    """
    Object for fetching and storing compiler data for a contract module.

    This object acts as a wrapper over the pure compiler functions, triggering
    compilation phases as needed and providing the data for use when generating
    the final compiler outputs.

    Attributes
    ----------
    pvm_module : ast.Module
        Top-level python AST node, annotated with source information
    settings : Settings
        Caller settings merged with the source pragmas
    contract_name : str
        Name of the contract: pragma or caller setting, else the file stem
    module_t : ModuleT
        Classified and validated declarations
    metadata : dict
        Metadata embedded in the artifact
    artifact : str
        Source of the generated module
    """

    def __init__(self, file_input, settings: Settings = None) -> None:
        """
        Initialization method.

        Arguments
        ---------
        file_input: FileInput | str
            A FileInput or string representing the input to the compiler.
            FileInput is preferred, `str` is accepted as a convenience.
        settings: Settings, optional
            Compiler settings.
        """
        if isinstance(file_input, str):
            file_input = FileInput(
                contents=file_input,
                source_id=-1,
                path=DEFAULT_CONTRACT_PATH,
                resolved_path=DEFAULT_CONTRACT_PATH,
            )
        self.file_input = file_input
        self.original_settings = settings

    @cached_property
    def source_code(self):
        return self.file_input.source_code

    @cached_property
    def source_id(self):
        return self.file_input.source_id

    @cached_property
    def contract_path(self):
        return self.file_input.path

    @cached_property
    def pvm_module(self):
        return parse_to_ast(
            self.source_code,
            self.source_id,
            module_path=self.contract_path.as_posix(),
            resolved_path=PurePath(self.file_input.resolved_path).as_posix(),
        )

    @cached_property
    def settings(self) -> Settings:
        settings = self.pvm_module.settings

        if self.original_settings:
            og_settings = self.original_settings
            settings = merge_settings(og_settings, settings)
            assert self.original_settings == og_settings  # be paranoid
        else:
            # merge with empty Settings(), doesn't do much but it does
            # remove the compiler version
            settings = merge_settings(Settings(), settings)

        if settings.debug is None:
            settings.debug = False

        return settings

    @cached_property
    def contract_name(self) -> str:
        if self.settings.contract_name is not None:
            return self.settings.contract_name
        return _name_from_path(PurePath(self.contract_path))

    @cached_property
    def module_t(self) -> ModuleT:
        with anchor_settings(self.settings):
            return analyze_module(self.pvm_module, self.contract_name)

    @cached_property
    def metadata(self) -> dict:
        from pvmkit import __version__

        module_t = self.module_t
        return {
            "compiler": "pvmkit",
            "version": __version__,
            "name": module_t.name,
            "source_sha256": sha256sum(self.source_code),
            "selectors": module_t.method_identifiers,
            "settings": self.settings.as_dict(),
        }

    @cached_property
    def metadata_bytes(self) -> bytes:
        return cbor2.dumps(self.metadata)

    @cached_property
    def artifact(self) -> str:
        from pvmkit import __version__

        with anchor_settings(self.settings):
            return generate_module(self.module_t, self.metadata_bytes, __version__)
