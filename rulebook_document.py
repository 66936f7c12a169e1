#!/usr/bin/env python3
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from rulebook_errors import LexError
from rulebook_lexer import Token, TokenKind

logger = logging.getLogger(__name__)


@dataclass
class Section:
    """A flat run of content tokens under one heading (also used for annexes)."""
    title: str
    items: list[Token] = field(default_factory=list)


@dataclass
class Chapter:
    """
    Tokens directly under the chapter heading (before its first section),
    followed by any number of nested sections.
    """
    title: str
    items: list[Token] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)


@dataclass
class Document:
    items: list[Token] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    chapters: list[Chapter] = field(default_factory=list)
    annexes: list[Section] = field(default_factory=list)


class DocumentAssembler:
    """
    Single-pass builder folding a token stream into a Document.

    Keeps indices into the document lists instead of references:
      - chapter_index: open chapter, or None
      - section_index: open section inside the active sections list, or None
      - annex_index:   open annex, or None

    Routing:
      ChapterHeading -> new chapter; section and annex closed
      AnnexHeading   -> new annex; chapter and section closed
      SectionHeading -> new section under the open chapter, else top level
      anything else  -> items of the innermost open container
    """

    def __init__(self) -> None:
        self.document = Document()
        self.chapter_index: Optional[int] = None
        self.section_index: Optional[int] = None
        self.annex_index: Optional[int] = None

    def _active_sections(self) -> list[Section]:
        if self.chapter_index is not None:
            return self.document.chapters[self.chapter_index].sections
        return self.document.sections

    def _active_items(self) -> list[Token]:
        if self.section_index is not None:
            return self._active_sections()[self.section_index].items
        if self.annex_index is not None:
            return self.document.annexes[self.annex_index].items
        if self.chapter_index is not None:
            return self.document.chapters[self.chapter_index].items
        return self.document.items

    def feed(self, token: Token) -> bool:
        """
        Route one token. Returns False once the stream is finished.

        Raises LexError when the lexer reported malformed input.
        """
        if token.kind is TokenKind.LEX_ERROR:
            raise LexError(token.line, token.text)

        if token.kind is TokenKind.END_OF_INPUT:
            return False

        if token.kind is TokenKind.CHAPTER_HEADING:
            self.document.chapters.append(Chapter(title=token.text))
            self.chapter_index = len(self.document.chapters) - 1
            self.section_index = None
            self.annex_index = None

        elif token.kind is TokenKind.ANNEX_HEADING:
            self.document.annexes.append(Section(title=token.text))
            self.annex_index = len(self.document.annexes) - 1
            self.chapter_index = None
            self.section_index = None

        elif token.kind is TokenKind.SECTION_HEADING:
            sections = self._active_sections()
            sections.append(Section(title=token.text))
            self.section_index = len(sections) - 1
            self.annex_index = None

        else:
            self._active_items().append(token)

        return True

    def assemble(self, tokens: Iterable[Token]) -> Document:
        for token in tokens:
            if not self.feed(token):
                break

        logger.debug(
            "assembled document: %d top-level items, %d sections, %d chapters, %d annexes",
            len(self.document.items),
            len(self.document.sections),
            len(self.document.chapters),
            len(self.document.annexes),
        )
        return self.document


def assemble_document(tokens: Iterable[Token]) -> Document:
    """Fold a token stream into a fresh Document."""
    return DocumentAssembler().assemble(tokens)
