"""
Per-message linguistic features.

Cheap regex signals computed during assembly so downstream consumers (the
external analyzer, dashboards) get question, tone and urgency hints without
a model call. Nothing here is a judgement the analyzer is bound by.
"""

from __future__ import annotations

import re

from threadclear.capsule.models import LinguisticFeatures, Sentiment, Urgency

# A sentence is a run of text up to and including its terminal punctuation.
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]*")

INTERROGATIVE_START = re.compile(
    r"^(?:what|when|where|who|why|how|can|could|would|should|is|are|do|does)\b",
    re.IGNORECASE,
)

NEGATIVE_WORDS = re.compile(r"\b(?:frustrated|angry|disappointed|upset|annoyed|concerned)\b")
POSITIVE_WORDS = re.compile(r"\b(?:great|excellent|perfect|thank|thanks|appreciate|happy|glad)\b")

HIGH_URGENCY_WORDS = re.compile(r"\b(?:asap|urgent|urgently|immediately|critical|emergency)\b")
MEDIUM_URGENCY_WORDS = re.compile(r"\b(?:soon|quickly|important|priority)\b")

POLITE_WORDS = re.compile(r"\b(?:please|thank|thanks|appreciate|kindly|would you)\b")
DEMANDING_WORDS = re.compile(r"\b(?:must|need|have to|should have)\b")


def _sentences(content: str) -> list[str]:
    return [s.strip() for s in SENTENCE_PATTERN.findall(content) if s.strip(" \t\n.!?")]


def extract_questions(content: str) -> list[str]:
    """Sentences ending in "?" or opening with an interrogative, each normalized to end in one "?"."""
    questions = []
    for sentence in _sentences(content):
        if sentence.endswith("?") or INTERROGATIVE_START.match(sentence):
            questions.append(sentence.rstrip(" .!?") + "?")
    return questions


def detect_sentiment(content: str) -> Sentiment:
    lowered = content.lower()
    if NEGATIVE_WORDS.search(lowered):
        return Sentiment.NEGATIVE
    if POSITIVE_WORDS.search(lowered):
        return Sentiment.POSITIVE
    return Sentiment.NEUTRAL


def detect_urgency(content: str) -> Urgency:
    lowered = content.lower()
    if HIGH_URGENCY_WORDS.search(lowered) or "!!!" in content:
        return Urgency.HIGH
    if MEDIUM_URGENCY_WORDS.search(lowered) or "!!" in content:
        return Urgency.MEDIUM
    return Urgency.LOW


def score_politeness(content: str) -> float:
    """0.5 baseline, +0.3 for courtesy words, -0.2 for demands without "please", -0.1 for "!"."""
    lowered = content.lower()
    score = 0.5
    if POLITE_WORDS.search(lowered):
        score += 0.3
    if DEMANDING_WORDS.search(lowered) and "please" not in lowered:
        score -= 0.2
    if "!" in content:
        score -= 0.1
    return round(max(0.0, min(1.0, score)), 2)


def analyze_message(content: str) -> LinguisticFeatures:
    if not content or not content.strip():
        return LinguisticFeatures()

    return LinguisticFeatures(
        questions=extract_questions(content),
        contains_question="?" in content,
        word_count=len(content.split()),
        sentence_count=len(_sentences(content)),
        sentiment=detect_sentiment(content),
        urgency=detect_urgency(content),
        politeness=score_politeness(content),
    )
