"""Tests for include/exclude record filtering."""
import pytest

from sitescraper.core.errors import FilterValidationError
from sitescraper.core.filters import FilterPipeline
from sitescraper.models.config import FilterSet

RECORDS = [
    {"title": "Foo fighters", "genre": "rock"},
    {"title": "Bar none", "genre": "FOO jazz"},
    {"title": "Baz", "genre": None},
    {"title": "Foobar", "genre": "pop"},
]


@pytest.fixture
def pipeline():
    return FilterPipeline()


def test_no_filters_keeps_everything(pipeline):
    assert pipeline.apply(RECORDS, None) == RECORDS
    assert pipeline.apply(RECORDS, FilterSet()) == RECORDS


def test_include_matches_any_field_case_insensitively(pipeline):
    kept = pipeline.apply(RECORDS, FilterSet(include="foo"))
    assert [r["title"] for r in kept] == ["Foo fighters", "Bar none", "Foobar"]


def test_include_and_exclude(pipeline):
    kept = pipeline.apply(RECORDS, FilterSet(include="foo", exclude="bar"))
    assert [r["title"] for r in kept] == ["Foo fighters"]


def test_exclude_only(pipeline):
    kept = pipeline.apply(RECORDS, FilterSet(exclude="ROCK|pop"))
    assert [r["title"] for r in kept] == ["Bar none", "Baz"]


def test_null_values_never_match(pipeline):
    kept = pipeline.apply([{"a": None}], FilterSet(include=".*"))
    assert kept == []


@pytest.mark.parametrize("filters", [FilterSet(include="("), FilterSet(exclude="[a-")])
def test_invalid_pattern_fails_the_call(pipeline, filters):
    with pytest.raises(FilterValidationError):
        pipeline.apply(RECORDS, filters)
