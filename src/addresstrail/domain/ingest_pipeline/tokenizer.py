"""Split a raw JSON array stream into top-level object texts.

The export is far too large to ``json.load`` in one go, so the stream is scanned
character by character with an explicit state machine that tracks string
literals, escape sequences, and brace depth. Only the object currently being
assembled is buffered.
"""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import TextIO

log = getLogger(__name__)

DEFAULT_CHUNK_SIZE: Final[int] = 64 * 1024


class TokenizerState(StrEnum):
    OUTSIDE = "outside"
    IN_OBJECT = "inside-object"
    IN_STRING = "inside-string"
    ESCAPED = "escaped-char"


class ObjectTokenizer:
    """Incremental scanner yielding complete top-level ``{...}`` texts.

    ``step`` performs one state transition and reports whether the character
    closed a top-level object; ``feed`` applies it over a chunk and slices the
    completed objects out of the input. Objects may span any number of chunks.
    """

    def __init__(self) -> None:
        self._state = TokenizerState.OUTSIDE
        self._depth = 0
        self._parts: list[str] = []

    @property
    def state(self) -> TokenizerState:
        return self._state

    @property
    def depth(self) -> int:
        return self._depth

    def step(self, char: str) -> bool:
        state = self._state
        if state is TokenizerState.OUTSIDE:
            # array brackets, separators and whitespace between objects
            if char == "{":
                self._state = TokenizerState.IN_OBJECT
                self._depth = 1
            return False

        if state is TokenizerState.IN_STRING:
            if char == "\\":
                self._state = TokenizerState.ESCAPED
            elif char == '"':
                self._state = TokenizerState.IN_OBJECT
            return False

        if state is TokenizerState.ESCAPED:
            self._state = TokenizerState.IN_STRING
            return False

        if char == '"':
            self._state = TokenizerState.IN_STRING
        elif char == "{":
            self._depth += 1
        elif char == "}":
            self._depth -= 1
            if self._depth == 0:
                self._state = TokenizerState.OUTSIDE
                return True
        return False

    def feed(self, chunk: str) -> Iterator[str]:
        """Consume ``chunk`` and yield every object completed inside it."""

        start = None if self._state is TokenizerState.OUTSIDE else 0
        for index, char in enumerate(chunk):
            opening = self._state is TokenizerState.OUTSIDE
            if self.step(char):
                self._parts.append(chunk[start:index + 1])
                text = "".join(self._parts)
                self._parts.clear()
                start = None
                yield text
            elif opening and self._state is TokenizerState.IN_OBJECT:
                start = index
        if start is not None:
            self._parts.append(chunk[start:])

    def finish(self) -> str | None:
        """Return the unterminated remainder at end of input, resetting the scanner."""

        remainder = "".join(self._parts) if self._state is not TokenizerState.OUTSIDE else None
        self._state = TokenizerState.OUTSIDE
        self._depth = 0
        self._parts.clear()
        return remainder


def iter_object_texts(stream: TextIO, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Lazily yield object texts from ``stream`` in source order.

    A truncated trailing object is yielded as well so that it is counted (and
    rejected) like any other malformed record.
    """

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    tokenizer = ObjectTokenizer()
    while chunk := stream.read(chunk_size):
        yield from tokenizer.feed(chunk)
    remainder = tokenizer.finish()
    if remainder is not None:
        log.warning("Input ended inside an unterminated object (%d chars)", len(remainder))
        yield remainder
