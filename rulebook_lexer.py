#!/usr/bin/env python3
"""
rulebook_lexer.py

Character-level state machine that turns rulebook markup into tokens.

Each state is a method that scans forward from the current position,
emits zero or more tokens and returns the next state (or None to halt).
States that have to return somewhere afterwards (bold, emphasis, tables,
commands, links) are bound to their parent state with functools.partial.

The Lexer is an iterator: every call to next() runs the machine forward
until a token is ready. It stops after EndOfInput, or after exactly one
LexError token.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Iterator, Optional

EOF = ""

SECTION = "##"
CHAPTER = "#"
ANNEX = "ANNEX"
TABLE = "-table-"
LIST_ELEMENT = "\n- "
NEW_LINE = "\n"
EM_DELIMITER = "__"
BOLD_DELIMITER = "*"
LINK_OPEN = "["
LINK_CLOSE = "]"
COMMAND_START = "\\"
ARGS_OPEN = "("
ARGS_CLOSE = ")"

# separates the parts of Link ("text|dest") and Command ("name|args") payloads
PAYLOAD_SEP = "|"


class TokenKind(str, Enum):
    TEXT = "Text"
    BOLD = "Bold"
    EM = "Em"
    NEW_LINE = "NewLine"
    CHAPTER_HEADING = "ChapterHeading"
    SECTION_HEADING = "SectionHeading"
    ANNEX_HEADING = "AnnexHeading"
    LIST_OPEN = "ListOpen"
    LIST_CLOSE = "ListClose"
    START_LIST_ITEM = "StartListItem"
    END_LIST_ITEM = "EndListItem"
    LINK = "Link"
    COMMAND = "Command"
    TABLE_START = "TableStart"
    TABLE_ROW = "TableRow"
    TABLE_END = "TableEnd"
    END_OF_INPUT = "EndOfInput"
    LEX_ERROR = "LexError"


@dataclass(frozen=True)
class Token:
    """
    A single lexed token.

    kind: one of TokenKind
    text: payload (heading title, inline text, "text|dest", "name|args", ...)
    line: 1-based line on which the token started
    """
    kind: TokenKind
    text: str
    line: int

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.text} (line {self.line})"


StateFn = Callable[[], Optional["StateFn"]]


def escape_percent(text: str) -> str:
    """Double every '%' so payloads never read as format directives."""
    return text.replace("%", "%%")


def unescape_percent(text: str) -> str:
    """Inverse of escape_percent()."""
    return text.replace("%%", "%")


class Lexer:
    """
    Pull-based rulebook lexer.

        >>> [t.kind.value for t in Lexer("Hello *world*")]
        ['Text', 'Bold', 'EndOfInput']
    """

    def __init__(self, text: str):
        self.text = text
        self.start = 0
        self.pos = 0
        self.line = 1
        self.start_line = 1
        self._width = 0
        self._state: Optional[StateFn] = self._lex_text
        self._pending: deque[Token] = deque()

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        while not self._pending:
            if self._state is None:
                raise StopIteration
            self._state = self._state()
        return self._pending.popleft()

    # ---------------- Cursor -------------------------------------------------

    def _at(self, marker: str) -> bool:
        return self.text.startswith(marker, self.pos)

    def _next(self) -> str:
        if self.pos >= len(self.text):
            self._width = 0
            return EOF

        char = self.text[self.pos]
        self.pos += 1
        self._width = 1
        if char == NEW_LINE:
            self.line += 1
        return char

    def _backup(self) -> None:
        self.pos -= self._width
        if self._width and self.text[self.pos] == NEW_LINE:
            self.line -= 1

    def _skip(self, count: int) -> None:
        for _ in range(count):
            self._next()

    def _ignore(self) -> None:
        self.start = self.pos
        self.start_line = self.line

    # ---------------- Emission -----------------------------------------------

    def _emit(self, kind: TokenKind, *, trim: bool = False) -> None:
        value = self.text[self.start:self.pos]
        if trim:
            value = value.strip()
        self._pending.append(Token(kind, value, self.start_line))
        self._ignore()

    def _emit_value(self, kind: TokenKind, value: str, line: int) -> None:
        self._pending.append(Token(kind, value, line))

    def _flush_text(self) -> None:
        if self.pos > self.start:
            self._emit(TokenKind.TEXT)

    def _flush_before_trigger(self) -> None:
        """Flush pending text up to (not including) the trigger just read, then skip it."""
        self._backup()
        self._flush_text()
        self._next()
        self._ignore()

    def _error(self, line: int, message: str) -> None:
        self._pending.append(Token(TokenKind.LEX_ERROR, message, line))
        return None

    # ---------------- States -------------------------------------------------

    def _lex_text(self) -> Optional[StateFn]:
        while True:
            if self._at(SECTION):
                self._flush_text()
                self._skip(len(SECTION))
                self._ignore()
                return partial(self._lex_heading, TokenKind.SECTION_HEADING)

            if self._at(TABLE):
                self._flush_text()
                return partial(self._lex_table_title, self._lex_text)

            if self._at(ANNEX):
                self._flush_text()
                self._skip(len(ANNEX))
                self._ignore()
                return partial(self._lex_heading, TokenKind.ANNEX_HEADING)

            if self._at(CHAPTER):
                self._flush_text()
                self._skip(len(CHAPTER))
                self._ignore()
                return partial(self._lex_heading, TokenKind.CHAPTER_HEADING)

            if self._at(LIST_ELEMENT):
                self._flush_text()
                self._skip(len(LIST_ELEMENT))
                self._ignore()
                self._emit(TokenKind.LIST_OPEN)
                self._emit(TokenKind.START_LIST_ITEM)
                return self._lex_list_item

            if self._at(NEW_LINE):
                self._flush_text()
                self._emit(TokenKind.NEW_LINE)
                self._next()
                self._ignore()
                return self._lex_text

            if self._at(EM_DELIMITER):
                self._flush_text()
                self._skip(len(EM_DELIMITER))
                return partial(self._lex_emphasis, self._lex_text)

            char = self._next()
            if char == COMMAND_START:
                self._flush_before_trigger()
                return partial(self._lex_command_name, self._lex_text)

            if char == BOLD_DELIMITER:
                self._flush_before_trigger()
                return partial(self._lex_bold, self._lex_text)

            if char == LINK_OPEN:
                self._flush_before_trigger()
                return partial(self._lex_link_text, self._lex_text)

            if char == EOF:
                break

        if self.pos > self.start:
            self._emit(TokenKind.TEXT, trim=True)
        self._emit(TokenKind.END_OF_INPUT)
        return None

    def _lex_heading(self, kind: TokenKind) -> Optional[StateFn]:
        """
        Chapter / section / annex title up to the end of the line.

        A heading still open at end of input is not a heading: the text
        state picks the accumulated characters up as plain text.
        """
        while True:
            if self._at(NEW_LINE):
                self._emit(kind, trim=True)
                return self._lex_text

            if self._next() == EOF:
                self._backup()
                return self._lex_text

    def _lex_list_item(self) -> Optional[StateFn]:
        while True:
            if self._at(LIST_ELEMENT):
                self._flush_text()
                self._skip(len(LIST_ELEMENT))
                self._ignore()
                self._emit(TokenKind.END_LIST_ITEM)
                self._emit(TokenKind.START_LIST_ITEM)
                return self._lex_list_item

            # first newline without a list marker ends the list
            if self._at(NEW_LINE):
                self._flush_text()
                self._emit(TokenKind.END_LIST_ITEM)
                self._emit(TokenKind.LIST_CLOSE)
                return self._lex_text

            if self._at(EM_DELIMITER):
                self._flush_text()
                self._skip(len(EM_DELIMITER))
                return partial(self._lex_emphasis, self._lex_list_item)

            char = self._next()
            if char == BOLD_DELIMITER:
                self._flush_before_trigger()
                return partial(self._lex_bold, self._lex_list_item)

            if char == EOF:
                # list left open; the text state flushes what is pending
                self._backup()
                return self._lex_text

    def _lex_bold(self, resume: StateFn) -> Optional[StateFn]:
        while True:
            char = self._next()
            if char == BOLD_DELIMITER:
                self._backup()
                self._emit(TokenKind.BOLD)
                self._next()
                self._ignore()
                return resume

            if char == EOF:
                self._flush_text()
                return resume

    def _lex_emphasis(self, resume: StateFn) -> Optional[StateFn]:
        self._ignore()
        while True:
            if self._at(EM_DELIMITER):
                self._emit(TokenKind.EM)
                self._skip(len(EM_DELIMITER))
                self._ignore()
                return resume

            if self._next() == EOF:
                self._flush_text()
                return resume

    def _lex_table_title(self, resume: StateFn) -> Optional[StateFn]:
        line = self.line
        self._skip(len(TABLE))
        self._ignore()

        while True:
            char = self._next()
            if char == NEW_LINE:
                self._emit(TokenKind.TABLE_START, trim=True)
                return partial(self._lex_table_rows, resume, line)

            if char == EOF:
                return self._error(line, "unterminated table: missing newline after table title")

    def _lex_table_rows(self, resume: StateFn, line: int) -> Optional[StateFn]:
        while True:
            if self._at(TABLE):
                # a last row written directly before the closing marker
                if self.text[self.start:self.pos].strip():
                    self._emit(TokenKind.TABLE_ROW, trim=True)
                self._emit(TokenKind.TABLE_END)
                self._skip(len(TABLE))
                self._ignore()
                return resume

            char = self._next()
            if char == NEW_LINE:
                self._emit(TokenKind.TABLE_ROW, trim=True)
                return partial(self._lex_table_rows, resume, line)

            if char == EOF:
                return self._error(line, f"unterminated table: missing closing '{TABLE}' marker")

    def _lex_command_name(self, resume: StateFn) -> Optional[StateFn]:
        line = self.start_line
        while True:
            char = self._next()
            if char == ARGS_OPEN:
                name = self.text[self.start:self.pos - 1]
                self._ignore()
                return partial(self._lex_command_args, resume, name, line)

            if char == EOF:
                return self._error(line, f"unterminated command: expected '{ARGS_OPEN}' after command name")

    def _lex_command_args(self, resume: StateFn, name: str, line: int) -> Optional[StateFn]:
        while True:
            char = self._next()
            if char == ARGS_CLOSE:
                self._backup()
                args = self.text[self.start:self.pos]
                self._emit_value(TokenKind.COMMAND, f"{name}{PAYLOAD_SEP}{args}", line)
                self._next()
                self._ignore()
                return resume

            if char == EOF:
                return self._error(line, f"unclosed argument list for command '{name}'")

    def _lex_link_text(self, resume: StateFn) -> Optional[StateFn]:
        line = self.start_line
        while True:
            char = self._next()
            if char == LINK_CLOSE:
                text = self.text[self.start:self.pos - 1]
                self._next()  # the '(' opening the destination
                self._ignore()
                return partial(self._lex_link_destination, resume, text, line)

            if char == EOF:
                return self._error(line, f"unterminated link: missing '{LINK_CLOSE}'")

    def _lex_link_destination(self, resume: StateFn, text: str, line: int) -> Optional[StateFn]:
        while True:
            char = self._next()
            if char == ARGS_CLOSE:
                self._backup()
                destination = self.text[self.start:self.pos]
                self._emit_value(TokenKind.LINK, f"{text}{PAYLOAD_SEP}{destination}", line)
                self._next()
                self._ignore()
                return resume

            if char == EOF:
                return self._error(line, f"unterminated link: missing '{ARGS_CLOSE}' after destination")


def lex(text: str) -> Iterator[Token]:
    """Lazily tokenize rulebook markup."""
    return Lexer(text)
