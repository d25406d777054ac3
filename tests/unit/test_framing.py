"""Unit tests for event-stream framing."""

import pytest_check as check

from relaychat.relay.framing import EventStreamDecoder, encode_event, extract_data


class TestEventStreamDecoder:
    """Tests for incremental frame splitting."""

    def test_complete_frames_in_one_chunk(self) -> None:
        """Two terminated frames in one chunk are both returned."""
        decoder = EventStreamDecoder()

        frames = decoder.feed(b"data: a\n\ndata: b\n\n")

        check.equal(frames, [["data: a"], ["data: b"]])

    def test_frame_held_until_blank_line(self) -> None:
        """An unterminated frame is carried over to the next feed."""
        decoder = EventStreamDecoder()

        check.equal(decoder.feed(b"data: hel"), [])
        check.equal(decoder.feed(b"lo\n"), [])
        check.equal(decoder.feed(b"\n"), [["data: hello"]])

    def test_multibyte_character_split_across_reads(self) -> None:
        """A code point split between chunks is decoded once, intact."""
        raw = "data: 🌍é\n\n".encode()
        decoder = EventStreamDecoder()

        frames = [f for i in range(len(raw)) for f in decoder.feed(raw[i : i + 1])]

        check.equal(frames, [["data: 🌍é"]])

    def test_crlf_normalized_across_reads(self) -> None:
        """CRLF line ends split mid-sequence still terminate frames."""
        decoder = EventStreamDecoder(normalize_crlf=True)

        check.equal(decoder.feed(b"data: x\r"), [])
        check.equal(decoder.feed(b"\n\r"), [])
        check.equal(decoder.feed(b"\ndata: y\r\n\r\n"), [["data: x"], ["data: y"]])

    def test_crlf_kept_without_normalization(self) -> None:
        """Carriage returns are payload data unless normalization is on."""
        decoder = EventStreamDecoder()

        check.equal(decoder.feed(b"data: a\r\n\n"), [["data: a\r"]])

    def test_finish_returns_unterminated_frame(self) -> None:
        """A trailing frame without a blank line is flushed at the end."""
        decoder = EventStreamDecoder()
        decoder.feed(b"data: a\n\ndata: [DONE]\n")

        check.equal(decoder.finish(), [["data: [DONE]"]])

    def test_finish_ignores_whitespace_remainder(self) -> None:
        """Nothing is flushed when only line breaks remain."""
        decoder = EventStreamDecoder()
        decoder.feed(b"data: a\n\n\n")

        check.equal(decoder.finish(), [])


class TestExtractData:
    """Tests for data line extraction."""

    def test_strips_prefix_and_single_space(self) -> None:
        """Only the first space after the colon is removed."""
        check.equal(extract_data(["data:  two spaces"]), " two spaces")
        check.equal(extract_data(["data:nospace"]), "nospace")

    def test_joins_multiple_data_lines(self) -> None:
        """Multi-line data is joined with newlines."""
        check.equal(extract_data(["data: a", "data: ", "data: b"]), "a\n\nb")

    def test_comment_only_frame_has_no_data(self) -> None:
        """Keep-alive comments produce no payload."""
        check.is_none(extract_data([": OPENROUTER PROCESSING"]))
        check.is_none(extract_data(["event: ping", "id: 3"]))

    def test_ignores_other_fields(self) -> None:
        """event and id lines are skipped but data is kept."""
        check.equal(extract_data(["event: message", "data: x", "id: 1"]), "x")


class TestEncodeEvent:
    """Tests for outbound event encoding."""

    def test_single_line(self) -> None:
        """A plain payload is one data line and a blank line."""
        check.equal(encode_event("content:hi"), "data: content:hi\n\n")

    def test_embedded_newlines_never_produce_blank_line(self) -> None:
        """Every payload line gets its own data prefix."""
        encoded = encode_event("content:a\n\nb\n")

        check.equal(encoded, "data: content:a\ndata: \ndata: b\ndata: \n\n")
        check.equal(encoded.count("\n\n"), 1)

    def test_encode_then_extract(self) -> None:
        """Extracting an encoded event yields the original payload."""
        payload = "reasoning: leading space\ndata: not a prefix\n"
        lines = encode_event(payload).rstrip("\n").split("\n")

        check.equal(extract_data(lines), payload)
