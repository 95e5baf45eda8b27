"""Deterministic Hangul romanization and ASCII substitution tables.

Every table in this module is immutable data created at import time. The
functions are pure: the same input always produces the same output, in this
process and in any other.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

# Initial consonants (choseong), indices 0..18.
LEADS: tuple[str, ...] = (
    "g", "kk", "n", "d", "tt", "r", "m", "b", "pp", "s",
    "ss", "", "j", "jj", "ch", "k", "t", "p", "h",
)

# Medial vowels (jungseong), indices 0..20.
VOWELS: tuple[str, ...] = (
    "a", "ae", "ya", "yae", "eo", "e", "yeo", "ye", "o", "wa", "wae",
    "oe", "yo", "u", "wo", "we", "wi", "yu", "eu", "ui", "i",
)

# Final consonants (jongseong), indices 0..27; index 0 means "no final".
TRAILS: tuple[str, ...] = (
    "", "k", "k", "ks", "n", "nj", "nh", "d", "l", "lg", "lm", "lb", "ls", "lt",
    "lp", "lh", "m", "b", "bs", "s", "ss", "ng", "j", "ch", "k", "t", "p", "h",
)

SYLLABLE_FIRST = 0xAC00
SYLLABLE_LAST = 0xD7A3
_TRAIL_COUNT = len(TRAILS)
_BLOCK_SIZE = len(VOWELS) * _TRAIL_COUNT

# Characters removed without replacement.
DELETED_CHARACTERS: frozenset[str] = frozenset("()[]{}'\",;!$^`~")

# Characters replaced by a hyphen-delimited word.
SUBSTITUTIONS: Mapping[str, str] = MappingProxyType(
    {
        "&": "-and-",
        "+": "-plus-",
        "@": "-at-",
        "#": "-num-",
        "%": "-pct-",
        "=": "-eq-",
    }
)

_HANGUL_RANGES: tuple[tuple[int, int], ...] = (
    (0xAC00, 0xD7AF),  # syllables
    (0x1100, 0x11FF),  # jamo
    (0x3130, 0x318F),  # compatibility jamo
)


def _is_ascii_alnum_or_space(char: str) -> bool:
    return char == " " or (char.isascii() and char.isalnum())


def romanize_syllable(char: str) -> str:
    """Return the romanization of a single precomposed Hangul syllable."""

    index = ord(char) - SYLLABLE_FIRST
    lead, rest = divmod(index, _BLOCK_SIZE)
    vowel, trail = divmod(rest, _TRAIL_COUNT)
    return LEADS[lead] + VOWELS[vowel] + TRAILS[trail]


def transliterate(text: str) -> str:
    """Map ``text`` to an ASCII-friendly form.

    ASCII letters, digits and spaces are kept, Hangul syllables are romanized,
    characters from :data:`DELETED_CHARACTERS` are dropped and characters from
    :data:`SUBSTITUTIONS` are replaced. Everything else is left untouched for
    the sanitization pass to deal with. Distinct inputs may collide.
    """

    parts: list[str] = []
    for char in text:
        if _is_ascii_alnum_or_space(char):
            parts.append(char)
        elif SYLLABLE_FIRST <= ord(char) <= SYLLABLE_LAST:
            parts.append(romanize_syllable(char))
        elif char in DELETED_CHARACTERS:
            continue
        elif char in SUBSTITUTIONS:
            parts.append(SUBSTITUTIONS[char])
        else:
            parts.append(char)
    return "".join(parts)


def contains_hangul(text: str) -> bool:
    """Return ``True`` when ``text`` has any Hangul syllable or jamo."""

    for char in text:
        code = ord(char)
        for first, last in _HANGUL_RANGES:
            if first <= code <= last:
                return True
    return False
