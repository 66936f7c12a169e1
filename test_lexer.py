# test_lexer.py
#
# Run:
#   python -m unittest -v

import unittest

from rulebook_lexer import Lexer, Token, TokenKind, escape_percent, lex, unescape_percent


def pairs(text: str) -> list[tuple[str, str]]:
    """Lex `text` and return (kind, text) pairs."""
    return [(t.kind.value, t.text) for t in lex(text)]


class TestInlineTokens(unittest.TestCase):
    def test_plain_text_is_one_trimmed_text_token(self):
        self.assertEqual(pairs("  plain words here  "), [("Text", "plain words here"), ("EndOfInput", "")])

    def test_empty_input_yields_only_end_of_input(self):
        self.assertEqual(pairs(""), [("EndOfInput", "")])

    def test_bold_between_text(self):
        self.assertEqual(
            pairs("Hello *world*.\n"),
            [
                ("Text", "Hello "),
                ("Bold", "world"),
                ("Text", "."),
                ("NewLine", ""),
                ("EndOfInput", ""),
            ],
        )

    def test_emphasis(self):
        self.assertEqual(
            pairs("a __b__ c"),
            [("Text", "a "), ("Em", "b"), ("Text", "c"), ("EndOfInput", "")],
        )

    def test_unterminated_bold_is_absorbed_as_text(self):
        self.assertEqual(
            pairs("a *b c"),
            [("Text", "a "), ("Text", "b c"), ("EndOfInput", "")],
        )

    def test_unterminated_emphasis_is_absorbed_as_text(self):
        self.assertEqual(
            pairs("a __b c"),
            [("Text", "a "), ("Text", "b c"), ("EndOfInput", "")],
        )

    def test_link_payload_is_text_and_destination(self):
        self.assertEqual(
            pairs("See [the rules](Basic Rules) now"),
            [
                ("Text", "See "),
                ("Link", "the rules|Basic Rules"),
                ("Text", "now"),
                ("EndOfInput", ""),
            ],
        )

    def test_command_payload_is_name_and_raw_args(self):
        self.assertEqual(
            pairs("\\img(pic.png, A cat)"),
            [("Command", "img|pic.png, A cat"), ("EndOfInput", "")],
        )


class TestHeadings(unittest.TestCase):
    def test_chapter_heading(self):
        tokens = list(lex("#Intro\nHello"))
        self.assertEqual(
            [(t.kind, t.text, t.line) for t in tokens],
            [
                (TokenKind.CHAPTER_HEADING, "Intro", 1),
                (TokenKind.NEW_LINE, "", 1),
                (TokenKind.TEXT, "Hello", 2),
                (TokenKind.END_OF_INPUT, "", 2),
            ],
        )

    def test_section_heading_is_trimmed(self):
        self.assertEqual(pairs("##  Rules \n")[0], ("SectionHeading", "Rules"))

    def test_annex_heading(self):
        self.assertEqual(pairs("ANNEX Spells\n")[0], ("AnnexHeading", "Spells"))

    def test_heading_without_newline_falls_back_to_text(self):
        self.assertEqual(pairs("#Intro"), [("Text", "Intro"), ("EndOfInput", "")])

    def test_text_before_heading_is_flushed_untrimmed(self):
        self.assertEqual(
            pairs("Hello ##Sec\n")[:2],
            [("Text", "Hello "), ("SectionHeading", "Sec")],
        )


class TestLists(unittest.TestCase):
    def test_two_items_then_paragraph(self):
        self.assertEqual(
            pairs("Intro\n- one\n- two\nAfter"),
            [
                ("Text", "Intro"),
                ("ListOpen", ""),
                ("StartListItem", ""),
                ("Text", "one"),
                ("EndListItem", ""),
                ("StartListItem", ""),
                ("Text", "two"),
                ("EndListItem", ""),
                ("ListClose", ""),
                ("NewLine", ""),
                ("Text", "After"),
                ("EndOfInput", ""),
            ],
        )

    def test_bold_inside_list_item(self):
        self.assertEqual(
            pairs("\n- a *b* c\n")[:6],
            [
                ("ListOpen", ""),
                ("StartListItem", ""),
                ("Text", "a "),
                ("Bold", "b"),
                ("Text", " c"),
                ("EndListItem", ""),
            ],
        )

    def test_list_at_end_of_input_is_left_open(self):
        self.assertEqual(
            pairs("\n- one"),
            [("ListOpen", ""), ("StartListItem", ""), ("Text", "one"), ("EndOfInput", "")],
        )

    def test_link_inside_list_item_stays_text(self):
        kinds = [k for k, _ in pairs("\n- see [x](y)\n")]
        self.assertNotIn("Link", kinds)


class TestTables(unittest.TestCase):
    def test_table_rows_and_lines(self):
        tokens = list(lex("-table-Weapons\nSword|1d8\nDagger|1d4\n-table-\nNext"))
        self.assertEqual(
            [(t.kind.value, t.text) for t in tokens],
            [
                ("TableStart", "Weapons"),
                ("TableRow", "Sword|1d8"),
                ("TableRow", "Dagger|1d4"),
                ("TableEnd", ""),
                ("NewLine", ""),
                ("Text", "Next"),
                ("EndOfInput", ""),
            ],
        )
        self.assertEqual([t.line for t in tokens[:3]], [1, 2, 3])

    def test_row_written_against_closing_marker(self):
        self.assertEqual(
            pairs("-table-T\na|b-table-")[:3],
            [("TableStart", "T"), ("TableRow", "a|b"), ("TableEnd", "")],
        )


class TestLexErrors(unittest.TestCase):
    def test_unclosed_command_arguments_report_line(self):
        tokens = list(lex("Title\n\\img(pic.png, cat"))
        self.assertEqual(tokens[-1].kind, TokenKind.LEX_ERROR)
        self.assertEqual(tokens[-1].line, 2)
        self.assertIn("img", tokens[-1].text)

    def test_error_is_the_last_token(self):
        tokens = list(lex("[dangling"))
        self.assertEqual(len(tokens), 1)
        self.assertEqual(tokens[0].kind, TokenKind.LEX_ERROR)
        self.assertEqual(tokens[0].line, 1)

    def test_command_without_arguments(self):
        tokens = list(lex("a\nb\n\\noparen"))
        self.assertEqual(tokens[-1].kind, TokenKind.LEX_ERROR)
        self.assertEqual(tokens[-1].line, 3)

    def test_unterminated_table(self):
        tokens = list(lex("x\n-table-T\na|b\n"))
        self.assertEqual(tokens[-1].kind, TokenKind.LEX_ERROR)
        self.assertEqual(tokens[-1].line, 2)


class TestLineCounting(unittest.TestCase):
    def test_bold_across_newline(self):
        tokens = list(lex("*a\nb* c"))
        self.assertEqual(tokens[0], Token(TokenKind.BOLD, "a\nb", 1))
        self.assertEqual(tokens[1], Token(TokenKind.TEXT, "c", 2))

    def test_backup_across_newline_restores_line(self):
        lexer = Lexer("a\nb")
        lexer._next()
        lexer._next()
        self.assertEqual(lexer.line, 2)
        lexer._backup()
        self.assertEqual(lexer.line, 1)

    def test_backup_at_end_of_input_is_a_no_op(self):
        lexer = Lexer("\n")
        lexer._next()
        lexer._next()
        lexer._backup()
        self.assertEqual((lexer.pos, lexer.line), (1, 2))


class TestPercent(unittest.TestCase):
    def test_escape_round_trip(self):
        self.assertEqual(escape_percent("50% off"), "50%% off")
        self.assertEqual(unescape_percent(escape_percent("a%%b%")), "a%%b%")


class TestTokenString(unittest.TestCase):
    def test_str(self):
        self.assertEqual(str(Token(TokenKind.BOLD, "x", 3)), "Bold: x (line 3)")


if __name__ == "__main__":
    unittest.main(verbosity=2)
