"""
Tests for per-message linguistic features.
"""

from __future__ import annotations

import pytest

from threadclear.capsule.features import (
    analyze_message,
    detect_sentiment,
    detect_urgency,
    extract_questions,
    score_politeness,
)
from threadclear.capsule.models import LinguisticFeatures, Sentiment, Urgency


class TestQuestions:
    def test_question_marks_and_interrogative_openers(self):
        text = "Thanks for the draft. Can you add the totals. Where is the appendix?"

        assert extract_questions(text) == ["Can you add the totals?", "Where is the appendix?"]

    def test_statement_is_not_a_question(self):
        assert extract_questions("Shipping the fix tonight.") == []


class TestTone:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("I'm frustrated that this slipped again", Sentiment.NEGATIVE),
            ("Great work, thanks!", Sentiment.POSITIVE),
            ("The meeting moved to 3pm", Sentiment.NEUTRAL),
        ],
    )
    def test_sentiment(self, text, expected):
        assert detect_sentiment(text) == expected

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Need this ASAP", Urgency.HIGH),
            ("Call me back!!!", Urgency.HIGH),
            ("Please look at this soon", Urgency.MEDIUM),
            ("Whenever you get a chance", Urgency.LOW),
        ],
    )
    def test_urgency(self, text, expected):
        assert detect_urgency(text) == expected

    def test_politeness(self):
        assert score_politeness("Could you please review the draft") == 0.8
        assert score_politeness("You must fix this!") == 0.2
        assert score_politeness("Meeting moved to Tuesday") == 0.5


class TestAnalyzeMessage:
    def test_counts(self):
        features = analyze_message("Hi team. The build is green! Can we ship?")

        assert features.word_count == 9
        assert features.sentence_count == 3
        assert features.contains_question is True
        assert features.questions == ["Can we ship?"]

    def test_blank_content(self):
        assert analyze_message("   ") == LinguisticFeatures()
