"""Tests for deterministic text normalization."""

from understanding.normalizer import apply_phrases, clean_text, normalize_tokens, unique_prefix


class TestCleanText:
    def test_lowercases_and_strips_punctuation(self):
        assert clean_text("Call Mom!! (today)") == "call mom today"

    def test_underscores_become_spaces(self):
        assert clean_text("call_mom") == "call mom"

    def test_empty(self):
        assert clean_text("") == ""
        assert clean_text(None) == ""


class TestPhrases:
    def test_longer_phrase_first(self):
        assert apply_phrases("working out") == "workout"
        assert apply_phrases("work out") == "workout"

    def test_word_bounded(self):
        # "set up" inside "reset upstairs" must not collapse
        assert apply_phrases("reset upstairs") == "reset upstairs"


class TestNormalizeTokens:
    def test_drops_time_words(self):
        assert normalize_tokens("Work out today") == ["workout"]
        assert normalize_tokens("weekly budget review") == ["finance", "review"]

    def test_token_map_before_stopwords(self):
        # "down" is a stopword but maps to "mood" first
        assert normalize_tokens("feeling down") == ["feeling", "mood"]

    def test_stopwords_and_short_tokens(self):
        assert normalize_tokens("I need to check the budget") == ["need", "review", "finance"]
        assert normalize_tokens("go to bed by 10") == ["bed"]

    def test_synonyms_collapse(self):
        assert normalize_tokens("gym") == normalize_tokens("exercise") == ["workout"]

    def test_order_preserved(self):
        assert normalize_tokens("call mom about trip") == ["call", "mom", "visit"]


class TestUniquePrefix:
    def test_dedupes_in_order(self):
        assert unique_prefix(["a", "b", "a", "c", "d", "e"], 4) == ["a", "b", "c", "d"]

    def test_shorter_than_limit(self):
        assert unique_prefix(["x", "x"], 4) == ["x"]
