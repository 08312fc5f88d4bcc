from __future__ import annotations

import copy
import json

import pytest

from layout_bench import analytics
from layout_bench.domain.errors import ParseError
from layout_bench.domain.models import Representation, Variant
from layout_bench.generator import generate

ENGAGEMENT_105_520 = 20.1923


def _complex_doc(i: int = 1) -> dict:
    return json.loads(generate(i, Variant.COMPLEX, Representation.DOCUMENT))


def test_complex_document_gets_all_derived_blocks() -> None:
    result = analytics.transform(_complex_doc(1))

    assert result["profile"]["total_achievement_points"] == 325
    assert result["profile"]["statistics"]["engagement_rate"] == pytest.approx(
        ENGAGEMENT_105_520, abs=1e-4
    )
    assert result["metadata"]["tag_analysis"] == {
        "total_tags": 4,
        "verified_tags": 0,
        "verification_rate": 0.0,
    }
    bio = result["profile"]["bio_analysis"]
    assert bio["word_count"] == 22
    assert bio["sentence_count"] == 1
    assert bio["avg_words_per_sentence"] == 22.0
    assert bio["char_count"] == len(result["profile"]["bio"])


def test_transform_leaves_input_untouched() -> None:
    doc = _complex_doc(3)
    snapshot = copy.deepcopy(doc)

    result = analytics.transform(doc)

    assert doc == snapshot
    assert result is not doc
    assert "engagement_rate" not in doc["profile"]["statistics"]
    assert "tag_analysis" not in doc["metadata"]


def test_engagement_rate_values() -> None:
    assert analytics.engagement_rate(105, 520) == pytest.approx(ENGAGEMENT_105_520, abs=1e-4)
    assert analytics.engagement_rate(105, 0) == 0


def test_zero_followers_yields_exact_zero() -> None:
    doc = {"profile": {"statistics": {"posts_count": 12, "followers_count": 0}}}
    assert analytics.transform(doc)["profile"]["statistics"]["engagement_rate"] == 0


def test_tag_analysis_counts_exact_verified_entries() -> None:
    result = analytics.tag_analysis(["tag_1", "category_1", "active", "verified"])
    assert result == {"total_tags": 4, "verified_tags": 1, "verification_rate": 25.0}

    assert analytics.tag_analysis(["unverified", "Verified", "verified "])["verified_tags"] == 0
    assert analytics.tag_analysis([]) == {
        "total_tags": 0,
        "verified_tags": 0,
        "verification_rate": 0,
    }


def test_achievements_without_points_contribute_zero() -> None:
    achievements = [{"points": 110}, {"name": "no points"}, {"points": "15"}, "junk", {"points": 215}]
    assert analytics.total_achievement_points(achievements) == 325


def test_bio_without_periods_has_no_sentences() -> None:
    result = analytics.bio_analysis("no full stop here at all")
    assert result == {
        "word_count": 6,
        "char_count": 24,
        "sentence_count": 0,
        "avg_words_per_sentence": 0,
    }


def test_bio_counts_unicode_scalars_not_bytes() -> None:
    result = analytics.bio_analysis("héllo  wörld.")
    assert result["char_count"] == 13
    assert result["word_count"] == 2
    assert result["sentence_count"] == 1


def test_bio_words_split_on_unicode_whitespace_only() -> None:
    assert analytics.bio_analysis("a\x1fb\x1cc")["word_count"] == 1
    assert analytics.bio_analysis("a\u3000b\xa0c\td\ne")["word_count"] == 5
    assert analytics.bio_analysis(" \u2003 ")["word_count"] == 0


def test_bio_sentence_count_is_period_count() -> None:
    result = analytics.bio_analysis("One. Two... three")
    assert result["sentence_count"] == 4
    assert result["avg_words_per_sentence"] == pytest.approx(3 / 4)


def test_missing_statistics_only_skips_engagement() -> None:
    doc = _complex_doc(2)
    del doc["profile"]["statistics"]

    result = analytics.transform(doc)

    assert "statistics" not in result["profile"]
    assert result["profile"]["total_achievement_points"] == (100 + 20) + (200 + 30)
    assert "bio_analysis" in result["profile"]
    assert "tag_analysis" in result["metadata"]


def test_missing_followers_omits_engagement_rate() -> None:
    doc = {"profile": {"statistics": {"posts_count": 5}, "bio": "Hi."}}
    result = analytics.transform(doc)

    assert "engagement_rate" not in result["profile"]["statistics"]
    assert result["profile"]["bio_analysis"]["sentence_count"] == 1


def test_boolean_counts_are_not_numbers() -> None:
    doc = {"profile": {"statistics": {"posts_count": True, "followers_count": 10}}}
    assert "engagement_rate" not in analytics.transform(doc)["profile"]["statistics"]


def test_simple_document_only_gets_bio_analysis() -> None:
    doc = json.loads(generate(4, Variant.SIMPLE, Representation.DOCUMENT))
    result = analytics.transform(doc)

    assert set(result["profile"]) - set(doc["profile"]) == {"bio_analysis"}
    assert "metadata" not in result


def test_document_without_profile_or_metadata_is_returned_as_is() -> None:
    doc = {"id": "x", "name": "nobody"}
    assert analytics.transform(doc) == doc


def test_non_mapping_substructures_are_skipped() -> None:
    doc = {"profile": "flattened", "metadata": {"tags": "not-a-list"}}
    assert analytics.transform(doc) == doc


def test_decode_rejects_malformed_payloads() -> None:
    with pytest.raises(ParseError):
        analytics.decode('{"profile": ')
    with pytest.raises(ParseError):
        analytics.decode("[1, 2, 3]")
    assert analytics.decode('{"a": 1}') == {"a": 1}


def test_process_drops_and_counts_undecodable_documents() -> None:
    raws = [
        generate(1, Variant.COMPLEX, Representation.DOCUMENT),
        "{not json",
        generate(2, Variant.COMPLEX, Representation.DOCUMENT),
        '"just a string"',
    ]

    outcome = analytics.process(raws)

    assert outcome.processed == 2
    assert outcome.dropped == 2
    assert [doc["profile"]["total_achievement_points"] for doc in outcome.documents] == [325, 350]
