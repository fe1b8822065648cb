import pytest


def make_words(n: int, prefix: str = "w") -> str:
    """n distinct space-separated tokens without sentence terminators."""
    return " ".join(f"{prefix}{i}" for i in range(n))


def make_sentence(n: int, prefix: str = "s") -> str:
    """An n-token sentence closed by a full stop."""
    return make_words(n - 1, prefix) + " end."


@pytest.fixture()
def words():
    return make_words


@pytest.fixture()
def sentence():
    return make_sentence
