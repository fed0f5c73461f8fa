"""Clear exceptions for farm-monitor-codec: framing, port lookup and encode errors."""


class CodecError(Exception):
    """Base exception for farm-monitor-codec."""

    pass


class InvalidLengthError(CodecError):
    """Raised when a fixed-width payload is empty or not a multiple of the record size."""

    def __init__(self, length: int, record_size: int, message: str | None = None) -> None:
        self.length = length
        self.record_size = record_size
        self._msg = message or (
            f"Invalid state change length: {length} (must be a positive multiple of {record_size})"
        )
        super().__init__(self._msg)


class InvalidFrameError(CodecError):
    """Raised when a multi-frame registration frame is malformed."""

    def __init__(self, frame: str, message: str | None = None) -> None:
        self.frame = frame
        self._msg = message or f"Invalid registration frame: {frame!r}"
        super().__init__(self._msg)


class UnknownPortError(CodecError):
    """Raised when an fPort has no decoder in the current port map."""

    def __init__(self, port: int, message: str | None = None) -> None:
        self.port = port
        self._msg = message or f"Unknown fPort: {port}"
        super().__init__(self._msg)


class EncodeError(CodecError):
    """Raised when a value cannot be packed into a downlink or record field."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: object = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message)
