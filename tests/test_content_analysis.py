from datetime import datetime

from footprint_tracker.content_analysis import (
    analyze_content,
    analyze_content_quality,
    analyze_sentiment,
    calculate_readability,
    count_syllables,
    detect_content_bubbles,
    extract_topics,
    round_half_up,
)
from footprint_tracker.lexicon import LEXICON_VERSION
from footprint_tracker.models import ContentQuality, Sentiment

READABILITY_SAMPLE = (
    "cat table cat table cat table cat table cat table. "
    "cat table cat table cat table cat table cat table."
)


def test_sentiment_counts_whole_words():
    text = "This is an amazing and wonderful day, truly great!"
    assert analyze_sentiment(text) == Sentiment.POSITIVE
    assert analyze_sentiment("A terrible, awful disaster.") == Sentiment.NEGATIVE
    assert analyze_sentiment("good but bad") == Sentiment.NEUTRAL
    # "badge" must not count as "bad"
    assert analyze_sentiment("A great badge") == Sentiment.POSITIVE


def test_sentiment_tolerates_non_text():
    assert analyze_sentiment(None) == Sentiment.NEUTRAL
    assert analyze_sentiment(42) == Sentiment.NEUTRAL
    assert analyze_sentiment("") == Sentiment.NEUTRAL


def test_single_harm_word_in_twenty_words_is_harmful():
    text = (
        "The museum exhibit explains how the old bomb shelter was built during "
        "the war and later restored for visitors today"
    )
    assert len(text.split()) == 20
    assert analyze_content_quality(text) == ContentQuality.HARMFUL


def test_quality_biased_informative_neutral():
    assert analyze_content_quality("Everyone always says this is obviously true") == (
        ContentQuality.BIASED
    )
    assert analyze_content_quality("According to the report, rates rose.") == (
        ContentQuality.INFORMATIVE
    )
    assert analyze_content_quality("The cat sat on the mat.") == ContentQuality.NEUTRAL
    assert analyze_content_quality(None) == ContentQuality.NEUTRAL


def test_extract_topics_ranks_by_score():
    text = "Software and computer programming news, plus a football game."
    assert extract_topics(text) == ["Technology", "Sports"]
    assert extract_topics(text, max_topics=1) == ["Technology"]
    assert extract_topics("") == []
    assert extract_topics(["not", "text"]) == []


def test_syllable_heuristic():
    assert count_syllables("cat") == 1
    assert count_syllables("table") == 2
    assert count_syllables("rhythm") == 1


def test_readability_matches_flesch_sample():
    """20 words, 30 syllables, 2 sentences: 206.835 - 10.15 - 126.9 -> 70."""
    assert calculate_readability(READABILITY_SAMPLE) == 70


def test_readability_bounds_and_defaults():
    assert calculate_readability("") == 0
    assert calculate_readability("...!?") == 0
    assert calculate_readability(None) == 0
    long_words = "Internationalization institutionalization characterization. " * 3
    assert calculate_readability(long_words) == 0
    assert calculate_readability("Go. Run. Sit.") == 100


def test_round_half_up():
    assert round_half_up(69.5) == 70
    assert round_half_up(34.5) == 35
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0


def test_analyze_content_bundles_results():
    ts = datetime(2024, 5, 1, 12, 0)
    result = analyze_content("This is an amazing and wonderful day, truly great!", ts)
    assert result.sentiment == Sentiment.POSITIVE
    assert result.analyzed_at == ts
    assert result.lexicon_version == LEXICON_VERSION

    empty = analyze_content(None, ts)
    assert empty.sentiment == Sentiment.NEUTRAL
    assert empty.quality == ContentQuality.NEUTRAL
    assert empty.topics == ()
    assert empty.readability == 0


def test_content_bubbles():
    ts = datetime(2024, 5, 1)
    assert detect_content_bubbles([]) == {"diversity": 0, "topTopics": []}

    repeated = [analyze_content("football game", ts) for _ in range(3)]
    bubbles = detect_content_bubbles(repeated)
    assert bubbles["diversity"] == 33
    assert bubbles["topTopics"] == [{"topic": "Sports", "count": 3}]
