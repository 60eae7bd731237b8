"""
Lexical profanity filter for Russian chat text.

The filter runs before any AI call and catches the common evasion tricks:

- Latin and digit look-alikes (``нaхуй`` with a Latin ``a``, ``3аеб``)
- letter stretching (``ахуееееено``)
- spacing and punctuation (``н а х у й``, ``н.а.х.у.й``)
- single-character typos, via Levenshtein distance per word

Ambiguous fragments lean towards "not profane": whitelisted words are skipped
and a root buried deep inside an unrelated word is ignored unless it follows a
legitimate prefix. The word lists live in ``data/profanity_lexicon.yml``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Tuple

import yaml

from tonecord.util.logger import get_logger

logger = get_logger("profanity_filter")

DEFAULT_LEXICON_PATH = Path(__file__).parent / "data" / "profanity_lexicon.yml"

NON_ALPHABET = re.compile(r"[^а-яё]")

# A root may follow this many arbitrary letters of its word and still count
MAX_FREE_PREFIX = 2
MIN_WORD_LENGTH = 3
SHORT_ROOT_LENGTH = 5


@dataclass(frozen=True)
class ProfanityLexicon:
    """Word tables driving :class:`ProfanityFilter`."""

    banned_roots: Tuple[str, ...]
    whitelist: FrozenSet[str] = frozenset()
    prefixes: FrozenSet[str] = frozenset()
    homoglyphs: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ProfanityLexicon:
        roots = tuple(str(r).lower() for r in data.get("banned_roots") or [])
        if not roots:
            raise ValueError("Profanity lexicon has no banned_roots")
        return cls(
            banned_roots=roots,
            whitelist=frozenset(str(w).lower() for w in data.get("whitelist") or []),
            prefixes=frozenset(str(p).lower() for p in data.get("prefixes") or []),
            homoglyphs={str(k).lower(): str(v) for k, v in (data.get("homoglyphs") or {}).items()},
        )

    @classmethod
    def load(cls, path: Path | None = None) -> ProfanityLexicon:
        """Load a lexicon from YAML, defaulting to the packaged one."""
        lexicon_path = path or DEFAULT_LEXICON_PATH
        with lexicon_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        lexicon = cls.from_dict(data)
        logger.debug(
            "Loaded profanity lexicon from %s (%d roots, %d whitelisted)",
            lexicon_path,
            len(lexicon.banned_roots),
            len(lexicon.whitelist),
        )
        return lexicon


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute) between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        previous = current
    return previous[-1]


class ProfanityFilter:
    """Pure text -> bool profanity check over a :class:`ProfanityLexicon`."""

    def __init__(self, lexicon: ProfanityLexicon):
        self.lexicon = lexicon
        self._translation = str.maketrans(lexicon.homoglyphs)

    def normalize(self, text: str) -> str:
        """Lowercase and map look-alike characters onto Cyrillic."""
        return text.lower().translate(self._translation)

    def collapse(self, word: str) -> str:
        """Strip non-Cyrillic characters and squeeze repeated letters."""
        letters = NON_ALPHABET.sub("", self.normalize(word))
        return re.sub(r"(.)\1+", r"\1", letters)

    def _collapse_with_positions(self, text: str) -> Tuple[str, List[Tuple[int, int]], List[str]]:
        """Collapse the whole text across word boundaries.

        Returns the collapsed string, a ``(word index, offset in word)`` pair
        for every character in it, and the individually collapsed words.
        """
        chars: List[str] = []
        positions: List[Tuple[int, int]] = []
        words = self.normalize(text).split()
        for index, word in enumerate(words):
            offset = 0
            for char in NON_ALPHABET.sub("", word):
                if chars and chars[-1] == char:
                    continue
                chars.append(char)
                positions.append((index, offset))
                offset += 1
        return "".join(chars), positions, [self.collapse(word) for word in words]

    def _root_accepted(self, collapsed: str, positions: List[Tuple[int, int]], start: int) -> bool:
        _, head_length = positions[start]
        if head_length <= MAX_FREE_PREFIX:
            return True
        return collapsed[start - head_length:start] in self.lexicon.prefixes

    def _inside_whitelisted_word(self, positions: List[Tuple[int, int]], words: List[str], start: int, end: int) -> bool:
        first_word, _ = positions[start]
        last_word, _ = positions[end - 1]
        return first_word == last_word and words[first_word] in self.lexicon.whitelist

    def _whitelist_absorbs(self, collapsed: str) -> bool:
        return any(
            white in collapsed and len(white) >= len(collapsed) - 1
            for white in self.lexicon.whitelist
        )

    def _matches_whole_text(self, text: str) -> bool:
        collapsed, positions, words = self._collapse_with_positions(text)
        if not collapsed or self._whitelist_absorbs(collapsed):
            return False

        for root in self.lexicon.banned_roots:
            start = collapsed.find(root)
            while start != -1:
                end = start + len(root)
                if (
                    self._root_accepted(collapsed, positions, start)
                    and not self._inside_whitelisted_word(positions, words, start, end)
                ):
                    return True
                start = collapsed.find(root, start + 1)
        return False

    def _matches_word(self, word: str) -> bool:
        if len(word) < MIN_WORD_LENGTH or word in self.lexicon.whitelist:
            return False
        for root in self.lexicon.banned_roots:
            threshold = 1 if len(root) <= SHORT_ROOT_LENGTH else 2
            if levenshtein_distance(word, root) <= threshold:
                return True
        return False

    def is_profane(self, text: str) -> bool:
        """Return True when ``text`` contains a banned root or a near miss of one."""
        if not text:
            return False
        if self._matches_whole_text(text):
            return True
        return any(self._matches_word(self.collapse(word)) for word in text.split())


_default_filter: ProfanityFilter | None = None


def get_default_filter() -> ProfanityFilter:
    """Return the process-wide filter built from the packaged lexicon."""
    global _default_filter
    if _default_filter is None:
        _default_filter = ProfanityFilter(ProfanityLexicon.load())
    return _default_filter


def is_profane(text: str) -> bool:
    """Module-level shortcut using the packaged lexicon."""
    return get_default_filter().is_profane(text)
