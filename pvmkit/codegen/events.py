from typing import List

from pvmkit.codegen.core import codec_const, literal
from pvmkit.codegen.records import generate_record_class, record_codec_line
from pvmkit.semantics.analysis import EventT


def _event_members(event: EventT, indent: str) -> List[str]:
    lines = [
        "def topics(self) -> list:",
        "    return [self.TOPIC]",
        "",
        "def encode(self) -> bytes:",
        f"    return {codec_const(event.name)}.encode(self)",
    ]
    return [indent + line if line else line for line in lines]


def generate_event(event: EventT) -> List[str]:
    """
    The event class as a dataclass with its ``TOPIC``, a single-topic
    ``topics()`` and the field-wise payload ``encode()``.
    """
    ret = generate_record_class(
        event,
        [f"TOPIC = {literal(event.topic)}"],
        fill_defaults=False,
        extra_members=lambda indent: _event_members(event, indent),
    )
    ret.append("")
    ret.append("")
    ret.append(record_codec_line(event))
    return ret
