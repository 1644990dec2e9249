from __future__ import annotations

from eventfeed.tokenize import STOP_WORDS, tokenize


def test_tokenize_lowercases_and_strips_punctuation():
    assert tokenize("Bank RAISES rates!") == {"bank", "raises", "rates"}


def test_tokenize_drops_short_tokens_and_stop_words():
    tokens = tokenize("The UN says it will act on new EU plan after talks")
    assert tokens == {"act", "plan", "talks"}
    assert not tokens & STOP_WORDS
    assert all(len(token) > 2 for token in tokens)


def test_tokenize_splits_on_symbols():
    assert tokenize("U.S.-China trade/tariff row") == {"china", "trade", "tariff", "row"}


def test_tokenize_is_deterministic():
    title = "Earthquake hits coastal region, thousands evacuated"
    assert tokenize(title) == tokenize(title)


def test_tokenize_empty():
    assert tokenize("") == set()
    assert tokenize("a an of") == set()
