"""Tests for the lexical profanity filter."""

from pathlib import Path

import pytest

from tonecord.moderation.profanity_filter import (
    ProfanityFilter,
    ProfanityLexicon,
    get_default_filter,
    is_profane,
    levenshtein_distance,
)


@pytest.fixture(scope="module")
def profanity_filter() -> ProfanityFilter:
    return ProfanityFilter(ProfanityLexicon.load())


class TestLevenshteinDistance:
    def test_identical_strings(self):
        assert levenshtein_distance("сука", "сука") == 0

    def test_empty_string(self):
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3

    def test_classic_example(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_single_substitution(self):
        assert levenshtein_distance("суко", "сука") == 1


class TestProfanityLexicon:
    def test_packaged_lexicon_loads(self):
        lexicon = ProfanityLexicon.load()
        assert "хуй" in lexicon.banned_roots
        assert "команда" in lexicon.whitelist
        assert "недо" in lexicon.prefixes
        assert lexicon.homoglyphs["a"] == "а"

    def test_from_dict_requires_roots(self):
        with pytest.raises(ValueError):
            ProfanityLexicon.from_dict({"whitelist": ["есть"]})

    def test_load_custom_file(self, tmp_path: Path):
        path = tmp_path / "lexicon.yml"
        path.write_text("banned_roots:\n  - дурак\n", encoding="utf-8")

        custom = ProfanityFilter(ProfanityLexicon.load(path))

        assert custom.is_profane("ты дурак")
        assert not custom.is_profane("ты сука")


class TestNormalization:
    def test_homoglyphs_map_to_cyrillic(self, profanity_filter):
        assert profanity_filter.normalize("CYKA") == "сука"

    def test_collapse_squeezes_repeats_and_strips_separators(self, profanity_filter):
        assert profanity_filter.collapse("ааа-ххх!") == "ах"
        assert profanity_filter.collapse("н.а.х.у.й") == "нахуй"


class TestIsProfane:
    @pytest.mark.parametrize(
        "text",
        [
            "ты сука",
            "ну бля",
            "нaхуй",          # Latin "a"
            "cyka",           # fully Latin look-alike
            "3аеб",           # digit look-alike
            "ахуееееено",     # stretched letters
            "н а х у й",      # spaced out
            "н.а.х.у.й",      # punctuation between letters
            "выебал",         # two-letter prefix
            "недоебан",       # listed prefix
        ],
    )
    def test_detects_banned_roots(self, profanity_filter, text):
        assert profanity_filter.is_profane(text)

    def test_detects_single_typo(self, profanity_filter):
        assert profanity_filter.is_profane("ну ты суко")

    def test_letter_stretching_does_not_change_result(self, profanity_filter):
        assert profanity_filter.is_profane("ахуееееено") == profanity_filter.is_profane("ахуено")
        assert profanity_filter.is_profane("ахуено")

    @pytest.mark.parametrize(
        "text",
        [
            "команда",
            "тоже хуже",
            "дай два рубля",
            "он потребляет много",
            "Привет, как дела?",
            "Спасибо большое",
            "рука",
            "дай руку, вот моя рука",
            "мука",
            "щука",
            "дебат",
            "вчера были дебаты",
        ],
    )
    def test_ignores_clean_text(self, profanity_filter, text):
        assert not profanity_filter.is_profane(text)

    def test_empty_text(self, profanity_filter):
        assert not profanity_filter.is_profane("")
        assert not profanity_filter.is_profane("   ")

    def test_module_shortcut_uses_packaged_lexicon(self):
        assert get_default_filter() is get_default_filter()
        assert is_profane("ты сука")
        assert not is_profane("команда")
