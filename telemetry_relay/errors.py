class RelayError(Exception):
    pass


# bad datagram payload; callers drop the packet and keep going
class MalformedMessage(RelayError, ValueError):
    def __init__(self, reason: str, raw: bytes = b""):
        super().__init__(f"malformed message ({reason}): {raw!r}")
        self.reason = reason
        self.raw = raw
