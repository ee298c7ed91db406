"""Unit tests for Keyword normalization and JobDescription validation."""

import pytest

from cvforge.contexts.intake.job_data_structure import (
    JobDescription,
    Keyword,
    KeywordSource,
    normalize_keyword,
    normalize_keywords,
)
from cvforge.exceptions import ValidationError


@pytest.mark.unit
def test_plain_string_becomes_full_weight_keyword():
    keyword = normalize_keyword("  React ")

    assert keyword == Keyword(text="React", weight=1.0)
    assert keyword.source is KeywordSource.PATTERN


@pytest.mark.unit
def test_mapping_shape_is_normalized():
    keyword = normalize_keyword({"keyword": "AWS", "weight": "0.7", "category": "cloud"})

    assert keyword.text == "AWS"
    assert keyword.weight == 0.7
    assert keyword.category == "cloud"


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw_weight, expected",
    [(5, 1.0), (-0.3, 0.0), ("abc", 1.0), (None, 1.0), (float("nan"), 1.0), (0.25, 0.25)],
)
def test_weight_is_always_within_bounds(raw_weight, expected):
    assert normalize_keyword({"keyword": "x", "weight": raw_weight}).weight == expected


@pytest.mark.unit
@pytest.mark.parametrize("raw", [None, 42, "", "   ", {"weight": 0.5}, {"keyword": ""}])
def test_unusable_keywords_are_dropped(raw):
    assert normalize_keyword(raw) is None


@pytest.mark.unit
def test_keyword_instances_pass_through():
    keyword = Keyword("Docker", 0.9, source=KeywordSource.GENERATED)

    assert normalize_keyword(keyword) is keyword


@pytest.mark.unit
def test_normalize_keywords_mixed_shapes():
    keywords = normalize_keywords(["python", None, {"text": "Go", "weight": 0.4}, 7])

    assert [(k.text, k.weight) for k in keywords] == [("python", 1.0), ("Go", 0.4)]
    assert normalize_keywords(None) == []


@pytest.mark.unit
def test_source_tag_from_mapping():
    keyword = normalize_keyword({"keyword": "Rust", "source": "generated"})

    assert keyword.is_generated


@pytest.mark.unit
def test_job_description_validation_collects_issues():
    with pytest.raises(ValidationError) as excinfo:
        JobDescription.from_dict({"title": "", "description": "too short"})

    assert len(excinfo.value.issues) == 2
    assert "title is required" in excinfo.value.issues


@pytest.mark.unit
def test_job_description_rejects_long_title(job_text):
    with pytest.raises(ValidationError):
        JobDescription.from_dict({"title": "x" * 151, "description": job_text})


@pytest.mark.unit
def test_with_keywords_returns_new_instance(job_text):
    job = JobDescription.from_dict({"title": "Dev", "description": job_text})
    populated = job.with_keywords(["python", {"keyword": "aws", "weight": 0.8}])

    assert job.keywords == ()
    assert [k.text for k in populated.keywords] == ["python", "aws"]
    assert populated.top_keywords(1)[0].text == "python"
    assert populated.to_dict()["keywords"][1]["weight"] == 0.8
