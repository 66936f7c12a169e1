# rulebook_roman.py
from __future__ import annotations

ROMAN_NUMERALS: tuple[tuple[int, str], ...] = (
    (1000, "M"),
    (900, "CM"),
    (500, "D"),
    (400, "CD"),
    (100, "C"),
    (90, "XC"),
    (50, "L"),
    (40, "XL"),
    (10, "X"),
    (9, "IX"),
    (5, "V"),
    (4, "IV"),
    (1, "I"),
)


def to_roman(number: int) -> str:
    """
    Convert a non-negative integer to an uppercase Roman numeral.

    Greedy: always subtract the largest value that still fits.
    Zero yields an empty string.
    """
    if number < 0:
        raise ValueError(f"Roman numerals need a non-negative number, got {number}")

    out: list[str] = []
    for value, symbol in ROMAN_NUMERALS:
        while number >= value:
            out.append(symbol)
            number -= value
    return "".join(out)
