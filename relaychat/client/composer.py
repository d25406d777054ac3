"""Display composer: reasoning and content buffers to one display string.

The reasoning span, when there is one, is wrapped in markers and placed
before the content so a renderer can show it separately.
"""

import re
from typing import NamedTuple

from relaychat.models.schemas import CanonicalToken, TokenKind

THINKING_START = "[[THINKING]]"
THINKING_END = "[[/THINKING]]"

_THINKING_RE = re.compile(re.escape(THINKING_START) + r"(.*?)" + re.escape(THINKING_END), re.DOTALL)
_CODE_BLOCK_RE = re.compile(r"```(.*?)```", re.DOTALL)


def compose_display_text(reasoning: str, content: str) -> str:
    """Wrap reasoning in markers and prepend it to the content.

    No markers are emitted while reasoning is empty.
    """
    if not reasoning:
        return content
    return f"{THINKING_START}{reasoning}{THINKING_END}{content}"


def split_display_text(text: str) -> tuple[str, str]:
    """Inverse of `compose_display_text`.

    Returns:
        (reasoning, reply). Reasoning is empty when the text has no span.
    """
    match = _THINKING_RE.search(text)
    if match is None:
        return "", text
    return match.group(1), text[: match.start()] + text[match.end():]


class ReplySegment(NamedTuple):
    """A run of prose or one fenced code block of a reply."""

    text: str
    is_code: bool = False
    language: str = ""


def split_reply_segments(reply: str) -> list[ReplySegment]:
    """Split a reply into prose and fenced code blocks.

    The first line of a block names its language when it is a single word
    and more lines follow. An unclosed fence stays part of the prose.
    """
    segments: list[ReplySegment] = []
    position = 0
    for match in _CODE_BLOCK_RE.finditer(reply):
        if match.start() > position:
            segments.append(ReplySegment(reply[position : match.start()]))
        lines = match.group(1).strip("\n").split("\n")
        first = lines[0].strip()
        if len(lines) > 1 and first and " " not in first:
            segments.append(ReplySegment("\n".join(lines[1:]), is_code=True, language=first))
        else:
            segments.append(ReplySegment("\n".join(lines), is_code=True))
        position = match.end()
    if position < len(reply):
        segments.append(ReplySegment(reply[position:]))
    return segments


class DisplayComposer:
    """Accumulates one turn's tokens and recomposes the display text."""

    def __init__(self) -> None:
        self.reasoning = ""
        self.content = ""
        self.token_count = 0

    def add(self, token: CanonicalToken) -> str:
        """Append a token to its buffer and return the new display text.

        Empty tokens change nothing and are not counted.
        """
        if token.kind is TokenKind.REASONING:
            self.reasoning += token.text
        else:
            self.content += token.text
        if token.text:
            self.token_count += 1
        return self.text

    @property
    def text(self) -> str:
        return compose_display_text(self.reasoning, self.content)
