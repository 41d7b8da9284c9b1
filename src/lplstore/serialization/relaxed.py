"""Rewrite relaxed JSON into strict JSON on its way to the tokenizer.

Hand-edited playlists and files written by older front ends may carry
``//`` and ``/* */`` comments, raw control characters inside strings,
hexadecimal integers and the special numbers ``NaN`` and ``Infinity``.
ijson accepts none of these, so :class:`RelaxedJsonFilter` translates the
decoded text chunk by chunk:

* comments become whitespace
* control characters inside strings become ``\\u00XX`` escapes
* ``0x1F`` style integers become decimal integers
* ``NaN``/``Infinity`` become ``null``; no playlist field can hold them

Bare words are buffered until they end, so a chunk boundary may fall
anywhere.
"""

from __future__ import annotations

import enum
import re
from typing import List

_STRING_RUN = re.compile(r'[^"\\\x00-\x1f]+')
_PLAIN_RUN = re.compile(r'[^"/A-Za-z0-9+\-.]+')
_WORD_RUN = re.compile(r"[A-Za-z0-9+\-.]+")
_HEX_NUMBER = re.compile(r"([+-]?)0[xX]([0-9a-fA-F]+)")

_SPECIAL_NUMBERS = frozenset({"nan", "inf", "infinity"})


class _Mode(enum.Enum):
    VALUE = "value"
    STRING = "string"
    STRING_ESCAPE = "string_escape"
    SLASH = "slash"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    BLOCK_COMMENT_STAR = "block_comment_star"


def translate_word(word: str) -> str:
    """Strict JSON spelling of a bare word, or the word itself."""
    match = _HEX_NUMBER.fullmatch(word)
    if match:
        sign, digits = match.groups()
        value = int(digits, 16)
        return f"-{value}" if sign == "-" else str(value)
    if word.lstrip("+-").lower() in _SPECIAL_NUMBERS:
        return "null"
    return word


class RelaxedJsonFilter:
    def __init__(self) -> None:
        self._mode = _Mode.VALUE
        self._word: List[str] = []

    def feed(self, text: str) -> str:
        out: List[str] = []
        pos = 0
        end = len(text)
        while pos < end:
            if self._mode is _Mode.VALUE:
                pos = self._value(text, pos, out)
            elif self._mode is _Mode.STRING:
                pos = self._string(text, pos, out)
            else:
                self._other(text[pos], out)
                pos += 1
        return "".join(out)

    def flush(self) -> str:
        """Release whatever is still buffered at end of input."""
        out: List[str] = []
        if self._mode is _Mode.SLASH:
            # A lone slash; let the tokenizer report it.
            out.append("/")
            self._mode = _Mode.VALUE
        self._end_word(out)
        return "".join(out)

    def _value(self, text: str, pos: int, out: List[str]) -> int:
        match = _WORD_RUN.match(text, pos)
        if match:
            self._word.append(match.group())
            return match.end()

        self._end_word(out)
        match = _PLAIN_RUN.match(text, pos)
        if match:
            out.append(match.group())
            return match.end()

        char = text[pos]
        if char == "/":
            self._mode = _Mode.SLASH
        else:
            self._mode = _Mode.STRING
            out.append(char)
        return pos + 1

    def _string(self, text: str, pos: int, out: List[str]) -> int:
        match = _STRING_RUN.match(text, pos)
        if match:
            out.append(match.group())
            return match.end()

        char = text[pos]
        if char == '"':
            self._mode = _Mode.VALUE
            out.append(char)
        elif char == "\\":
            self._mode = _Mode.STRING_ESCAPE
            out.append(char)
        else:
            out.append(f"\\u{ord(char):04x}")
        return pos + 1

    def _other(self, char: str, out: List[str]) -> None:
        mode = self._mode
        if mode is _Mode.STRING_ESCAPE:
            out.append(char)
            self._mode = _Mode.STRING
        elif mode is _Mode.SLASH:
            if char == "/":
                self._mode = _Mode.LINE_COMMENT
            elif char == "*":
                self._mode = _Mode.BLOCK_COMMENT
            else:
                out.append("/")
                self._mode = _Mode.VALUE
                out.append(self.feed(char))
        elif mode is _Mode.LINE_COMMENT:
            if char == "\n":
                out.append(char)
                self._mode = _Mode.VALUE
        elif mode is _Mode.BLOCK_COMMENT:
            if char == "*":
                self._mode = _Mode.BLOCK_COMMENT_STAR
        elif mode is _Mode.BLOCK_COMMENT_STAR:
            if char == "/":
                out.append(" ")
                self._mode = _Mode.VALUE
            elif char != "*":
                self._mode = _Mode.BLOCK_COMMENT

    def _end_word(self, out: List[str]) -> None:
        if self._word:
            out.append(translate_word("".join(self._word)))
            self._word.clear()
