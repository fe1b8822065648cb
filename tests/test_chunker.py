"""Chunking behaviour: short-circuit, paragraph packing, sentence splitting, merging."""

import pytest

from textformatter.chunker import (
    FLASHCARD_CHUNKING,
    MAX_CHUNK_WORDS,
    MIN_CHUNK_WORDS,
    ChunkingOptions,
    _pack_sentences,
    split_paragraphs,
    split_sentences,
    split_text_into_chunks,
    word_count,
)


def test_word_count_trims_and_ignores_repeated_whitespace():
    assert word_count("") == 0
    assert word_count("   \n\t ") == 0
    assert word_count("  one\ttwo\n\nthree  ") == 3


def test_empty_text_is_a_single_empty_chunk():
    assert split_text_into_chunks("") == [""]


def test_short_text_is_returned_unchanged(words):
    text = "  " + words(10) + "\n\n\n" + words(5, "x") + "  "
    assert split_text_into_chunks(text) == [text]


def test_text_of_exactly_max_words_is_not_split(words):
    text = words(MAX_CHUNK_WORDS // 2, "a") + "\n\n" + words(MAX_CHUNK_WORDS // 2, "b")
    assert split_text_into_chunks(text) == [text]


def test_unterminated_oversized_paragraph_stays_whole(words):
    text = words(2500)
    chunks = split_text_into_chunks(text)
    assert chunks == [text]
    assert word_count(chunks[0]) == 2500


def test_two_large_paragraphs_are_emitted_separately(words):
    p1 = words(1200, "a")
    p2 = words(1200, "b")
    chunks = split_text_into_chunks(p1 + "\n\n" + p2)
    assert chunks == [p1, p2]


def test_oversized_paragraph_is_packed_by_sentence(sentence):
    sentences = [sentence(500, f"s{i}_") for i in range(5)]
    text = " ".join(sentences)

    chunks = split_text_into_chunks(text)

    assert chunks == [" ".join(sentences[:4]), sentences[4]]
    assert [word_count(c) for c in chunks] == [2000, 500]


def test_paragraph_of_exactly_max_words_is_kept_whole(sentence, words):
    p1 = " ".join(sentence(10, f"s{i}_") for i in range(MAX_CHUNK_WORDS // 10))
    p2 = words(500, "t")
    assert word_count(p1) == MAX_CHUNK_WORDS

    chunks = split_text_into_chunks(f"{p1}\n\n{p2}")

    assert chunks[0] == p1
    assert chunks == [p1, p2]


def test_small_leftover_is_appended_to_last_chunk(words, sentence):
    lead = words(300, "a")
    s1 = sentence(800, "b")
    s2 = sentence(1300, "c")
    tail = words(100, "d")
    text = f"{lead}\n\n{s1} {s2}\n\n{tail}"

    chunks = split_text_into_chunks(text)

    assert chunks == [f"{lead}\n\n{s1}", f"{s2}\n\n{tail}"]


def test_small_leftover_stays_separate_when_merge_would_overflow(words):
    p1 = words(1500, "a")
    p2 = words(1800, "b")
    p3 = words(300, "c")

    chunks = split_text_into_chunks(f"{p1}\n\n{p2}\n\n{p3}")

    assert chunks == [p1, p2, p3]
    assert word_count(chunks[1]) + word_count(chunks[2]) > MAX_CHUNK_WORDS


def test_small_chunks_are_merged_up_to_min_words():
    opts = ChunkingOptions(min_words=4, max_words=5)
    text = "a b c\n\nd e f\n\ng h i\n\nj"
    # Pass A: ["a b c", "d e f", "g h i\n\nj"]; merging pairs the first two
    assert split_text_into_chunks(text, opts) == ["a b c\n\nd e f", "g h i\n\nj"]


def test_blank_paragraphs_are_dropped(words):
    p1 = words(1200, "a")
    p2 = words(1200, "b")
    chunks = split_text_into_chunks(f"{p1}\n\n   \n\n\n{p2}")
    assert chunks == [p1, p2]


@pytest.mark.parametrize(
    "sizes",
    [
        [1200, 1200],
        [300, 900, 1700, 50, 600, 2400, 10],
        [100] * 45,
        [2100, 20, 1999, 1],
    ],
)
def test_words_are_conserved_in_order(words, sizes):
    paragraphs = [words(n, f"p{i}_") for i, n in enumerate(sizes)]
    text = "\n\n".join(paragraphs)

    chunks = split_text_into_chunks(text)

    assert sum(word_count(c) for c in chunks) == word_count(text)
    assert " ".join(chunks).split() == text.split()
    assert all(c.strip() for c in chunks)


def test_merged_chunks_reach_min_words_except_last(words):
    text = "\n\n".join(words(100, f"p{i}_") for i in range(45))

    chunks = split_text_into_chunks(text)

    assert len(chunks) > 1
    assert all(word_count(c) >= MIN_CHUNK_WORDS for c in chunks[:-1])
    assert all(word_count(c) <= MAX_CHUNK_WORDS for c in chunks)


def test_flashcard_options_pack_paragraphs_without_merging(words):
    p1 = words(1000, "a")
    p2 = words(1000, "b")
    assert split_text_into_chunks(f"{p1}\n\n{p2}", FLASHCARD_CHUNKING) == [p1, p2]


def test_flashcard_options_never_split_sentences(sentence, words):
    big = " ".join(sentence(400, f"s{i}_") for i in range(4))
    small = words(100, "t")

    chunks = split_text_into_chunks(f"{big}\n\n{small}", FLASHCARD_CHUNKING)

    assert chunks == [big, small]


def test_split_paragraphs_requires_two_newlines():
    assert split_paragraphs("a\nb\n\nc\n\n\n\nd") == ["a\nb", "c", "d"]


def test_split_sentences_handles_arabic_question_mark():
    assert split_sentences("ما هذا؟ هذا كتاب.") == ["ما هذا؟ ", "هذا كتاب."]


def test_split_sentences_without_terminators_returns_whole_text():
    assert split_sentences("no terminators here") == ["no terminators here"]
    assert split_sentences("") == [""]


def test_split_sentences_keeps_stray_terminators():
    assert split_sentences("Hi. ... there") == ["Hi. ", "... there"]
    assert "".join(split_sentences("Wait. ?!")) == "Wait. ?!"


def test_sentence_packs_have_no_trailing_whitespace(monkeypatch):
    monkeypatch.setattr("textformatter.chunker.split_sentences", lambda paragraph: ["a b", " ", "c d"])
    assert _pack_sentences("ignored", 3) == ["a b", "c d"]
