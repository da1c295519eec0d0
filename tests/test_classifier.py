"""Tests for the greeting-vs-question gate."""

import pytest

from mira.src.core.classifier import QueryClassifier, compile_greeting_pattern, is_greeting
from mira.src.core.models import QueryKind


@pytest.fixture
def classifier() -> QueryClassifier:
    return QueryClassifier()


class TestGreetings:
    @pytest.mark.parametrize(
        "message",
        ["hi", "Hi", "  hi  ", "hii", "hiiiii", "hello", "hellooo", "hey", "heyy", "yo", "yoo", "sup", "good morning", "Good Evening!", "good afternoon team", "good night", "hi, how are you?", "hey there friend how's it"],
    )
    def test_short_greetings(self, classifier: QueryClassifier, message: str) -> None:
        assert classifier.classify(message) is QueryKind.GREETING

    def test_five_words_is_still_a_greeting(self, classifier: QueryClassifier) -> None:
        assert classifier.classify("hello there how are you") is QueryKind.GREETING


class TestQuestions:
    @pytest.mark.parametrize(
        "message",
        [
            "hello there how are you doing today",
            "hi, what does section 3 of my contract say about termination",
            "what color is the sky",
            "hiking trails near the lake",
            "height of the building",
            "yoga schedule",
            "supper menu",
            "good mornings",
            "say hi",
        ],
    )
    def test_not_greetings(self, classifier: QueryClassifier, message: str) -> None:
        assert classifier.classify(message) is QueryKind.QUESTION

    def test_six_word_greeting_falls_through(self, classifier: QueryClassifier) -> None:
        assert classifier.classify("hey hey hey hey hey hey") is QueryKind.QUESTION

    def test_literal_entries_do_not_repeat(self, classifier: QueryClassifier) -> None:
        assert classifier.classify("suppp") is QueryKind.QUESTION


class TestConfigurableVocabulary:
    def test_custom_vocabulary_and_threshold(self) -> None:
        classifier = QueryClassifier(greeting_words=["hola+", "buenos dias"], max_words=2)

        assert classifier.classify("holaaa amigo") is QueryKind.GREETING
        assert classifier.classify("buenos   dias") is QueryKind.GREETING
        assert classifier.classify("hi") is QueryKind.QUESTION
        assert classifier.classify("hola que tal") is QueryKind.QUESTION

    def test_predicate_is_pure(self) -> None:
        pattern = compile_greeting_pattern(["hi+"])

        assert is_greeting("HIII", pattern, 5)
        assert not is_greeting("hi one two three four five", pattern, 5)

    def test_empty_vocabulary_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            compile_greeting_pattern([])

    def test_repeating_multi_word_entry_matches_any_whitespace(self) -> None:
        classifier = QueryClassifier(greeting_words=["good night+"])

        assert classifier.classify("good   nighttt") is QueryKind.GREETING
        assert classifier.classify("good\tnight") is QueryKind.GREETING
        assert classifier.classify("good nights") is QueryKind.QUESTION
