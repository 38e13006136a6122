"""Character-count word wrapping with hyphenation and orphan control.

Everything here is pure: no I/O, no shared state, so the font fitter can call
it many times per text block while searching for a font size.
"""
from typing import List, Tuple

# Characters at which an oversized word may be broken without adding a hyphen
BREAK_CHARS = "-/."

ORPHAN_MIN_CHARS = 6
ORPHAN_MIN_RATIO = 0.25


def wrap_smart(text: str, max_chars: int) -> List[str]:
    """
    Wrap text into lines of at most max_chars characters.

    Words are packed greedily. A word longer than the limit is broken at its
    rightmost hyphen, slash or period that keeps the left part within the
    limit, or force-hyphenated near its midpoint. A single orphan-control pass
    then pulls the last word of the second-to-last line down onto a very
    short final line.

    Blank input yields [""] so callers can always count at least one line.
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be positive, got {max_chars}")
    if not text or not text.strip():
        return [""]

    lines: List[str] = []
    line = ""
    for word in text.split():
        if not line:
            done, line = _break_word(word, max_chars)
            lines.extend(done)
        elif len(line) + 1 + len(word) <= max_chars:
            line = f"{line} {word}"
        else:
            lines.append(line)
            done, line = _break_word(word, max_chars)
            lines.extend(done)
    if line:
        lines.append(line)

    return fix_orphan(lines, max_chars)


def _break_word(word: str, max_chars: int) -> Tuple[List[str], str]:
    """
    Split a word into completed lines plus the fragment that stays open.

    The open fragment may still receive following words on the same line.
    """
    done: List[str] = []
    rest = word
    while len(rest) > max_chars:
        piece, rest = _split_once(rest, max_chars)
        done.append(piece)
    return done, rest


def _split_once(word: str, max_chars: int) -> Tuple[str, str]:
    cut = max(word.rfind(ch, 0, max_chars) for ch in BREAK_CHARS)
    if 0 < cut < len(word) - 1:
        return word[:cut + 1], word[cut + 1:]

    # Force-hyphenate: the fragment plus its hyphen must still fit the line
    idx = max(1, min(max_chars - 1, max(3, len(word) // 2)))
    return word[:idx] + "-", word[idx:]


def fix_orphan(lines: List[str], max_chars: int) -> List[str]:
    """Run one orphan-control pass and return a new list"""
    if len(lines) < 2:
        return list(lines)

    last = lines[-1]
    if len(last) >= max(ORPHAN_MIN_CHARS, max_chars * ORPHAN_MIN_RATIO):
        return list(lines)

    prev = lines[-2]
    cut = prev.rfind(" ")
    if cut <= 0:
        return list(lines)

    merged = f"{prev[cut + 1:]} {last}" if last else prev[cut + 1:]
    if len(merged) > max_chars:
        return list(lines)

    return lines[:-2] + [prev[:cut], merged]


def max_line_length(lines: List[str]) -> int:
    return max((len(line) for line in lines), default=0)
