from pvmkit.runtime.codec import Int, Option, Str

code = """
from pvmkit import env
from pvmkit.lang import *


@event
class Transfer:
    sender: Address
    amount: u64
    memo: Optional[str] = None


@event
class Ping:
    pass


@call
def send(amount: u64, memo: Optional[str]):
    env.emit(Transfer(sender=env.caller(), amount=amount, memo=memo))


@call
def ping():
    env.emit(Ping())
    env.emit(Ping())


@call
def send_then_fail(amount: u64):
    env.emit(Transfer(sender=env.caller(), amount=amount))
    raise ValueError("after emitting")
"""


def test_event_payload(get_contract, get_logs, keccak):
    c = get_contract(code)
    sender = b"\x05" * 20
    c.send(9, "hi", sender=sender)

    (log,) = get_logs(c)
    assert log.topics == [keccak(b"Transfer")[:4] + bytes(28)]
    assert log.data == sender + Int(64, False).encode(9) + Option(Str()).encode("hi")


def test_event_default_field(get_contract, get_logs):
    c = get_contract(code)
    c.send(1, None)
    (log,) = get_logs(c)
    assert log.data.endswith(b"\x00")


def test_fieldless_event(get_contract, get_logs, keccak):
    c = get_contract(code)
    c.ping()
    logs = get_logs(c)
    assert len(logs) == 2
    for log in logs:
        assert log.topics == [keccak(b"Ping")[:4] + bytes(28)]
        assert log.data == b""


def test_events_are_discarded_on_failure(get_contract, get_logs, tx_failed):
    c = get_contract(code)
    with tx_failed(exc_text="after emitting"):
        c.send_then_fail(1)
    assert get_logs(c) == []


def test_event_class_members(get_contract, keccak):
    c = get_contract(code)
    transfer_cls = c.contract.Transfer
    assert transfer_cls.TOPIC == keccak(b"Transfer")[:4] + bytes(28)
    event = transfer_cls(sender=bytes(20), amount=1)
    assert event.topics() == [transfer_cls.TOPIC]
    assert event.encode() == bytes(20) + Int(64, False).encode(1) + b"\x00"
