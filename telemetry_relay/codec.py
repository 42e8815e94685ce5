"""
Datagram wire form for a single Message.

One ASCII line, three semicolon separated fields:

    <totalCount>;<sequenceNumber>;<value>\\n

e.g. b"7;3;42.5\\n". No length prefix, checksum or version byte.
"""
import math

from pydantic import ValidationError

from .errors import MalformedMessage
from .models import Message

SEP = ";"


def encode(msg: Message) -> bytes:
    # repr() gives the shortest string that parses back to the same float
    line = f"{msg.total_count}{SEP}{msg.seq_num}{SEP}{msg.value!r}\n"
    return line.encode("ascii")


def decode(data: bytes) -> Message:
    try:
        text = data.decode("ascii").strip()
    except UnicodeDecodeError:
        raise MalformedMessage("not ascii", data) from None

    fields = text.split(SEP)
    if len(fields) != 3:
        raise MalformedMessage(f"expected 3 fields, got {len(fields)}", data)

    # plain decimal digits only; int() would also take "+7", "1_0" and padding
    if not all(f.isdigit() for f in fields[:2]):
        raise MalformedMessage("non-numeric count field", data)
    total, seq = int(fields[0]), int(fields[1])

    try:
        value = float(fields[2])
    except ValueError:
        raise MalformedMessage("non-numeric value", data) from None
    if not math.isfinite(value):
        raise MalformedMessage("value is not finite", data)

    try:
        return Message(total_count=total, seq_num=seq, value=value)
    except ValidationError as e:
        raise MalformedMessage(f"invalid fields: {e.errors()[0]['msg']}", data) from None
