"""Text helpers for report bodies.

Market reports are typed by hand and freely mix full-width (zenkaku) and
half-width characters, so every line is canonicalised before it is matched.
"""

from typing import Iterator

FULLWIDTH_OFFSET = 0xFEE0
IDEOGRAPHIC_SPACE = "　"


def _build_table() -> dict[int, str]:
    table = {ord(IDEOGRAPHIC_SPACE): " "}
    for start, end in (("Ａ", "Ｚ"), ("ａ", "ｚ"), ("０", "９")):
        for code in range(ord(start), ord(end) + 1):
            table[code] = chr(code - FULLWIDTH_OFFSET)
    return table


_HALFWIDTH_TABLE = _build_table()


def normalize(s: str) -> str:
    """Replace full-width Latin letters, digits and spaces with half-width ones."""
    return s.translate(_HALFWIDTH_TABLE)


class LineCursor:
    """Sequential reader over the non-empty, normalized lines of a body.

    read() returns "" once the lines run out, so a caller can pull a fixed
    number of fields and let pattern matching reject short bodies.
    """

    def __init__(self, text: str):
        self._lines = self._iter_lines(text)

    @staticmethod
    def _iter_lines(text: str) -> Iterator[str]:
        for line in text.splitlines():
            line = normalize(line.strip())
            if line:
                yield line

    def read(self) -> str:
        return next(self._lines, "")
