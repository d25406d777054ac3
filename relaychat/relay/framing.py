"""Event-stream framing shared by the upstream reader and the client consumer.

Bytes are decoded incrementally so that UTF-8 sequences and frames split
across network reads are reassembled before anything is emitted.
"""

import codecs

DONE_SENTINEL = "[DONE]"
DATA_FIELD = "data"


class EventStreamDecoder:
    """Incremental decoder turning byte chunks into complete frames.

    A frame is returned as its list of lines once the blank line that
    terminates it has been seen. Undecoded bytes and unterminated text are
    carried over to the next call to `feed`.
    """

    def __init__(self, normalize_crlf: bool = False) -> None:
        """Initialize the decoder.

        Args:
            normalize_crlf: Treat ``\\r\\n`` as ``\\n``. Only safe when payloads
                cannot contain a raw carriage return (JSON provider frames).
        """
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._normalize_crlf = normalize_crlf

    def feed(self, chunk: bytes) -> list[list[str]]:
        """Consume a chunk and return every frame it completes."""
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def finish(self) -> list[list[str]]:
        """Flush the decoder at end of stream.

        Returns the frames completed by the final bytes, followed by a trailing
        frame that was never terminated by a blank line, if any.
        """
        self._buffer += self._decoder.decode(b"", final=True)
        frames = self._drain()
        remainder = self._buffer.rstrip("\n")
        self._buffer = ""
        if remainder.strip():
            frames.append(remainder.split("\n"))
        return frames

    def _drain(self) -> list[list[str]]:
        if self._normalize_crlf:
            self._buffer = self._buffer.replace("\r\n", "\n")
        *blocks, self._buffer = self._buffer.split("\n\n")
        return [block.split("\n") for block in blocks if block]


def extract_data(lines: list[str]) -> str | None:
    """Join the data lines of a frame.

    The ``data:`` prefix and one following space are stripped from each
    line; the values are joined with newlines.

    Returns:
        The payload, or None when the frame has no data lines (comments,
        keep-alives, event or id only frames).
    """
    values: list[str] = []
    for line in lines:
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field != DATA_FIELD:
            continue
        if value.startswith(" "):
            value = value[1:]
        values.append(value)

    if not values:
        return None
    return "\n".join(values)


def encode_event(payload: str) -> str:
    """Frame a payload as one outbound event.

    Each line of the payload becomes its own ``data:`` line so that a blank
    line can only ever appear as the event terminator.
    """
    lines = "".join(f"{DATA_FIELD}: {line}\n" for line in payload.split("\n"))
    return lines + "\n"
