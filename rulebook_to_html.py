#!/usr/bin/env python3
"""
rulebook_to_html.py

Rulebook → HTML renderer built on the lexing pipeline:

- rulebook_lexer.lex() for the token stream
- rulebook_document.assemble_document() for chapters / sections / annexes
- HtmlBuilder for the HTML itself

Output layout:
- optional table of contents
- top-level content and sections -> <p>, <h3>
- chapters -> <h2> numbered with Roman numerals, nested sections -> <h3>
- annexes -> <div class='annex'> with <h2> lettered A, B, ...
- lists -> <ol class='roman'>, tables -> <table> with a title header row
"""
from __future__ import annotations

import argparse
import html
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from config_loader import DEFAULT_CONFIG, RulebookConfig, load_config
from helper import print_token_gray
from rulebook_document import Document, Section, assemble_document
from rulebook_errors import ConfigError, LexError
from rulebook_lexer import PAYLOAD_SEP, Token, TokenKind, escape_percent, lex, unescape_percent
from rulebook_reader import read_rulebook, read_source, safe_input_path
from rulebook_roman import to_roman

logger = logging.getLogger(__name__)

IMAGE_BASE_CLASS = "illustration"

# position argument of \img -> extra CSS class
IMAGE_POSITION_CLASSES: dict[str, Optional[str]] = {
    "left": "float-left",
    "right": "float-right",
    "center": None,
}


def anchor_name(title: str) -> str:
    """Anchor for a heading: lower-cased, spaces replaced by hyphens."""
    return title.lower().replace(" ", "-")


def annex_anchor_name(title: str) -> str:
    return f"annex-{anchor_name(title)}"


def annex_letter(index: int) -> str:
    """0 -> 'A', 1 -> 'B', ..."""
    return chr(ord("A") + index)


def split_payload(payload: str, *, last: bool = False) -> tuple[str, str]:
    """
    Split a Link or Command payload at its separator.

    Command names never contain the separator, so commands split at the
    first one. Link text may, so links split at the last one (last=True).
    """
    if last:
        head, _, tail = payload.rpartition(PAYLOAD_SEP)
    else:
        head, _, tail = payload.partition(PAYLOAD_SEP)
    return head, tail


class HtmlBuilder:
    """
    Walks a Document and renders HTML.

    Emission state:
      paragraph_open   a <p> is open
      new_section      a heading was just written; the next <p> gets class='indent'
      table_row_index  -1 until the title header of the current table is written
      table_title      title of the current table
      list_open / list_item_open
                       used to close a list abandoned at the end of a container
    """

    def __init__(self, config: RulebookConfig = DEFAULT_CONFIG):
        self.config = config
        self._reset()

    def _reset(self) -> None:
        self._parts: list[str] = []
        self.paragraph_open = False
        self.new_section = False
        self.table_row_index = -1
        self.table_title = ""
        self.list_open = False
        self.list_item_open = False

    def _append(self, s: str) -> None:
        self._parts.append(s)

    def _text(self, value: str) -> str:
        """Turn a lexed payload into output text."""
        value = unescape_percent(value)
        if self.config.escape_html:
            return html.escape(value, quote=True)
        return value

    # ---------------- Paragraphs ---------------------------------------------

    def close_paragraph(self) -> None:
        if self.paragraph_open:
            self.paragraph_open = False
            self._append("\n</p>\n")

    def open_paragraph(self) -> None:
        if self.paragraph_open:
            return
        self.paragraph_open = True
        if self.new_section:
            self.new_section = False
            self._append("<p class='indent'>\n")
        else:
            self._append("<p>\n")

    def _finish_container(self) -> None:
        """Close whatever the items of a container left open."""
        self.close_paragraph()
        if self.list_item_open:
            self.list_item_open = False
            self._append("\n</li>\n")
        if self.list_open:
            self.list_open = False
            self._append("</ol>\n\n")

    # ---------------- Tokens -------------------------------------------------

    def handle_token(self, token: Token) -> None:
        kind = token.kind

        if kind is TokenKind.NEW_LINE:
            self.close_paragraph()

        elif kind is TokenKind.LIST_OPEN:
            self.close_paragraph()
            self.list_open = True
            self._append("<ol class='roman'>\n")

        elif kind is TokenKind.LIST_CLOSE:
            self.list_open = False
            self._append("</ol>\n\n")

        elif kind is TokenKind.START_LIST_ITEM:
            self.list_item_open = True
            self._append("\n<li>\n")
            self.open_paragraph()

        elif kind is TokenKind.END_LIST_ITEM:
            self.close_paragraph()
            self.list_item_open = False
            self._append("\n</li>\n")

        elif kind is TokenKind.BOLD:
            if token.text:
                self.open_paragraph()
                self._append(f"<strong>{self._text(token.text)}</strong>")

        elif kind is TokenKind.EM:
            if token.text:
                self.open_paragraph()
                self._append(f"<em>{self._text(token.text)}</em>")

        elif kind is TokenKind.LINK:
            text, destination = split_payload(token.text, last=True)
            if text:
                self.open_paragraph()
                self._append(f"<a href='#{self._text(anchor_name(destination))}'>{self._text(text)}</a>")

        elif kind is TokenKind.COMMAND:
            name, raw_args = split_payload(token.text)
            self.handle_command(name.strip(), raw_args.split(","))

        elif kind is TokenKind.TABLE_START:
            self.close_paragraph()
            self.table_row_index = -1
            self.table_title = token.text
            self._append("<table>\n")

        elif kind is TokenKind.TABLE_ROW:
            self._handle_table_row(token.text)

        elif kind is TokenKind.TABLE_END:
            if self.table_row_index >= 0:
                self._append("</tbody>\n")
            self._append("</table>\n")

        elif token.text:
            self.open_paragraph()
            self._append(self._text(token.text))

    def _handle_table_row(self, row: str) -> None:
        cells = [cell.strip() for cell in row.split("|")]

        if self.table_row_index == -1:
            self._append("<thead>\n")
            self._append("<tr>\n")
            self._append(f"<th colspan='{len(cells)}'>{self._text(self.table_title)}</th>\n")
            self._append("</tr>\n")
            self._append("</thead>\n")
            self._append("<tbody>\n")

        self.table_row_index += 1
        # the first data row doubles as the column-header row
        cell_class = "head" if self.table_row_index == 0 else "lead"

        self._append("<tr>\n")
        self._append(f"<td class='head'>{self._text(cells[0])}</td>\n")
        for cell in cells[1:]:
            self._append(f"<td class='{cell_class}'>{self._text(cell)}</td>\n")
        self._append("</tr>\n")

    # ---------------- Commands -----------------------------------------------

    def handle_command(self, name: str, args: list[str]) -> None:
        """
        Dispatch a \\name(args) command.

          color(text, hex)                          inline coloured span
          img(src, alt[, left|right|center[, wN|hN]])  block image

        Unknown names produce nothing.
        """
        if name == "color":
            self._handle_color(args)
        elif name == "img":
            self._handle_image(args)
        else:
            logger.debug("ignoring unknown command %r", name)

    def _handle_color(self, args: list[str]) -> None:
        if not args[0].strip():
            return
        self.open_paragraph()
        text = self._text(args[0].strip())
        if len(args) < 2:
            self._append(text)
            return
        self._append(f"<span style='color: #{self._text(args[1].strip())}'>{text}</span>")

    def _handle_image(self, args: list[str]) -> None:
        self.close_paragraph()

        classes = [IMAGE_BASE_CLASS]
        if len(args) > 2:
            position_class = IMAGE_POSITION_CLASSES.get(args[2].strip())
            if position_class:
                classes.append(position_class)

        size_attr = ""
        if len(args) > 3:
            size = args[3].strip()
            if size.startswith("w") and size[1:]:
                size_attr = f" width='{self._text(size[1:])}'"
            elif size.startswith("h") and size[1:]:
                size_attr = f" height='{self._text(size[1:])}'"

        src = self._text(args[0].strip())
        alt = self._text(args[1].strip()) if len(args) > 1 else ""
        self._append(f"<img class='{' '.join(classes)}' src='{src}' alt='{alt}'{size_attr} />")

    # ---------------- Containers ---------------------------------------------

    def _build_items(self, items: list[Token]) -> None:
        for token in items:
            self.handle_token(token)
        self._finish_container()

    def _build_section(self, section: Section) -> None:
        self.new_section = True
        self._append(
            f"<h3><a name='{self._text(anchor_name(section.title))}'></a>{self._text(section.title)}</h3>\n"
        )
        self._build_items(section.items)

    def _build_table_of_contents(self, document: Document) -> None:
        self._append(f"<div id='summary'>\n<h3>{self._text(self.config.toc_title)}</h3>\n")

        self._append("<ol>\n")
        for section in document.sections:
            self._append(
                f"<li><a href='#{self._text(anchor_name(section.title))}'>{self._text(section.title)}</a></li>\n"
            )
        self._append("</ol>\n")

        self._append("<ol>\n")
        for index, chapter in enumerate(document.chapters):
            self._append(
                f"<li><strong>{to_roman(index + 1)}</strong> - "
                f"<a href='#{self._text(anchor_name(chapter.title))}'>{self._text(chapter.title)}</a></li>\n"
            )
            self._append("<ol class='roman'>\n")
            for section in chapter.sections:
                self._append(
                    f"<li><a href='#{self._text(anchor_name(section.title))}'>{self._text(section.title)}</a></li>\n"
                )
            self._append("</ol>\n")
        self._append("</ol>\n")

        self._append("<ol>\n")
        for index, annex in enumerate(document.annexes):
            self._append(
                f"<li><strong>{self._text(self.config.annex_label)} {annex_letter(index)}</strong>: "
                f"<a href='#{self._text(annex_anchor_name(annex.title))}'>{self._text(annex.title)}</a></li>\n"
            )
        self._append("</ol>\n")

        self._append("</div>\n")

    def build(self, document: Document) -> str:
        self._reset()

        if self.config.table_of_contents:
            self._build_table_of_contents(document)

        self._build_items(document.items)

        for section in document.sections:
            self._build_section(section)

        for index, chapter in enumerate(document.chapters):
            self.new_section = True
            self._append(
                f"<h2><a id='{self._text(anchor_name(chapter.title))}'></a>"
                f"{to_roman(index + 1)} - {self._text(chapter.title)}</h2>\n"
            )
            self._build_items(chapter.items)
            for section in chapter.sections:
                self._build_section(section)

        for index, annex in enumerate(document.annexes):
            self._append("<div class='annex'>\n")
            self._append(
                f"<h2><a name='{self._text(annex_anchor_name(annex.title))}'></a>"
                f"{self._text(self.config.annex_label)} {annex_letter(index)}: {self._text(annex.title)}</h2>\n"
            )
            self.new_section = True
            self._build_items(annex.items)
            self._append("</div>\n")

        return "".join(self._parts)


# ---------------- Pipeline ----------------------------------------------------


def build_document(text: str) -> Document:
    """Lex and assemble rulebook markup. Raises LexError on malformed input."""
    return assemble_document(lex(escape_percent(text)))


def build(text: str, config: RulebookConfig = DEFAULT_CONFIG) -> str:
    """Render rulebook markup to HTML body content."""
    document = build_document(text)
    body = HtmlBuilder(config).build(document)
    logger.debug("rendered %d characters of HTML", len(body))
    return body


def build_stream(reader: TextIO, writer: TextIO, config: RulebookConfig = DEFAULT_CONFIG) -> None:
    """
    Read all of `reader`, render it and write the result to `writer` in one go.
    Nothing is written when the input is malformed.
    """
    body = build(read_source(reader), config)
    writer.write(body)


def open_html_document(config: RulebookConfig) -> str:
    """Return the HTML prolog for a standalone document."""
    return (
        "<!doctype html>\n"
        "<html>\n"
        "<head>\n"
        "  <meta charset=\"utf-8\" />\n"
        f"  <title>{html.escape(config.document_title)}</title>\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />\n"
        f"  <link rel=\"stylesheet\" href=\"{html.escape(config.stylesheet)}\" />\n"
        "</head>\n"
        "<body>\n"
    )


def close_html_document() -> str:
    """Return the HTML epilog."""
    return "</body>\n</html>\n"


def render_rulebook_to_html_body(input_path: Path, config: RulebookConfig) -> str:
    """
    Render a rulebook file into HTML *body content*.
    """
    return build(read_rulebook(input_path), config)


def render_rulebook_to_html_document(input_path: Path, config: RulebookConfig) -> str:
    """
    Render a rulebook file into a complete HTML document.
    """
    body_html = render_rulebook_to_html_body(input_path, config)
    return open_html_document(config) + body_html + close_html_document()


def rulebook_to_html(input_path: Path, output_path: Path, config: RulebookConfig) -> None:
    """
    Convert a rulebook file to a complete HTML document and write it to disk.
    """
    document = render_rulebook_to_html_document(input_path, config)
    output_path.write_text(document, encoding="utf-8")


# ---------------- CLI ---------------------------------------------------------


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulebook-to-html",
        description="Convert a rulebook to HTML.",
    )
    parser.add_argument("input", nargs="?", default="-", help="Input rulebook file (default: stdin)")
    parser.add_argument("-o", "--output", default="-", help="Output HTML file (default: stdout)")
    parser.add_argument("-c", "--config", default=None, help="Config YAML file (default: built-in settings)")
    toc = parser.add_mutually_exclusive_group()
    toc.add_argument("--toc", dest="toc", action="store_true", default=None, help="Emit a table of contents")
    toc.add_argument("--no-toc", dest="toc", action="store_false", help="Omit the table of contents")
    parser.set_defaults(toc=None)
    parser.add_argument("--standalone", action="store_true", help="Wrap the output in a full HTML document")
    parser.add_argument("--tokens", action="store_true", help="Print the token stream instead of HTML")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[rulebook] %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_config(Path(args.config)) if args.config else DEFAULT_CONFIG
    except (OSError, ConfigError) as e:
        print(f"[rulebook] Failed to load config: {e}", file=sys.stderr)
        return 2
    cfg = cfg.with_overrides(table_of_contents=args.toc)

    if args.input == "-":
        source = read_source(sys.stdin)
    else:
        try:
            input_path = safe_input_path(args.input)
        except (ValueError, OSError) as e:
            print(f"[rulebook] Invalid input path: {e}", file=sys.stderr)
            return 2
        try:
            source = read_rulebook(input_path)
        except OSError as e:
            print(f"[rulebook] Error while reading: {e}", file=sys.stderr)
            return 1

    if args.tokens:
        for token in lex(escape_percent(source)):
            print_token_gray(token)
        return 0

    try:
        body = build(source, cfg)
    except LexError as e:
        logger.warning("lexical error at line %d: %s", e.line, e.message)
        print(f"[rulebook] Lexical error: {e}", file=sys.stderr)
        return 1

    out = open_html_document(cfg) + body + close_html_document() if args.standalone else body

    try:
        if args.output == "-":
            sys.stdout.write(out)
        else:
            Path(args.output).write_text(out, encoding="utf-8")
    except OSError as e:
        print(f"[rulebook] Error while writing: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
