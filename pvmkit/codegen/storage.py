from typing import List

from pvmkit.codegen.core import STORAGE, codec_const, literal
from pvmkit.codegen.records import generate_record_class, record_codec_line
from pvmkit.semantics.analysis import StorageT


def _load_save(storage: StorageT, indent: str) -> List[str]:
    codec = codec_const(storage.name)
    lines = [
        "@classmethod",
        f"def load(cls, host=None) -> {storage.name}:",
        "    # a missing or undecodable record reads as the field-wise default",
        f"    value = {STORAGE}.read(cls.STORAGE_KEY, {codec}, host)",
        "    return cls() if value is None else value",
        "",
        "def save(self, host=None) -> None:",
        f"    {STORAGE}.write(self.STORAGE_KEY, {codec}, self, host)",
    ]
    return [indent + line if line else line for line in lines]


def generate_storage(storage: StorageT) -> List[str]:
    """
    The storage class as a dataclass with field-wise defaults, a
    ``STORAGE_KEY`` constant and ``load``/``save``, followed by its codec.
    """
    ret = generate_record_class(
        storage,
        [f"STORAGE_KEY = {literal(storage.key)}"],
        fill_defaults=True,
        extra_members=lambda indent: _load_save(storage, indent),
    )
    ret.append("")
    ret.append("")
    ret.append(record_codec_line(storage))
    return ret
