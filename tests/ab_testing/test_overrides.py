"""Tests for manual variant overrides."""
import logging

import pytest
from src.ab_testing.assignment import assign_variant
from src.ab_testing.config import ABTestingSettings
from src.ab_testing.overrides import OverrideController, parse_override_param
from src.ab_testing.schema import AssignmentState
from src.ab_testing.store import AssignmentStore


@pytest.fixture
def overrides(store):
    return OverrideController(store)


def _subject_bucketed_to(registry, experiment_id, variant_id):
    exp = registry.lookup(experiment_id)
    return next(f"s{i}" for i in range(1000) if assign_variant(exp, f"s{i}") == variant_id)


def test_force_takes_precedence_over_bucketing(registry, storage):
    subject = _subject_bucketed_to(registry, "cta-button-text", "A")
    store = AssignmentStore(registry, storage, subject)
    assert store.get_variant("cta-button-text") == "A"

    assert OverrideController(store).force_variant("cta-button-text", "B")
    assert store.get_variant("cta-button-text") == "B"
    # Survives the next page load
    assert AssignmentStore(registry, storage, subject).get_variant("cta-button-text") == "B"


def test_force_rewrites_bucketed_b_to_a(registry, storage):
    """Concrete scenario: forcing A after a B bucketing stores A."""
    subject = _subject_bucketed_to(registry, "cta-button-text", "B")
    store = AssignmentStore(registry, storage, subject)
    assert store.get_variant("cta-button-text") == "B"

    OverrideController(store).force_variant("cta-button-text", "A")
    assert store.get_all()["cta-button-text"].variant_id == "A"


def test_force_before_any_bucketing(overrides, store):
    assert overrides.force_variant("cta-color", "orange")
    assert store.get_variant("cta-color") == "orange"
    assert store.state("cta-color") == AssignmentState.FORCED


def test_force_unknown_variant_is_noop(overrides, store, caplog):
    store.get_variant("cta-button-text")
    before = store.get_all()
    with caplog.at_level(logging.ERROR):
        assert not overrides.force_variant("cta-button-text", "Z")
    assert store.get_all() == before
    assert any("Cannot force" in r.message for r in caplog.records)


def test_force_unknown_experiment_is_noop(overrides, store):
    assert not overrides.force_variant("missing", "A")
    assert store.get_all() == {}


def test_clear_all_removes_forced_and_natural(overrides, store):
    store.get_variant("cta-button-text")
    overrides.force_variant("cta-color", "green")
    overrides.clear_all()
    assert store.get_all() == {}
    assert store.state("cta-color") == AssignmentState.UNASSIGNED


def test_parse_override_param():
    assert parse_override_param("cta-button-text:B") == [("cta-button-text", "B")]
    assert parse_override_param("exp1:A, exp2:B") == [("exp1", "A"), ("exp2", "B")]
    assert parse_override_param("bad,:A,exp:,") == []
    assert parse_override_param("") == []


@pytest.mark.parametrize("url", [
    "https://example.com/marketplace?ab_debug=cta-button-text:B,cta-color:green",
    "?ab_debug=cta-button-text:B,cta-color:green",
    "ab_debug=cta-button-text:B,cta-color:green&utm_source=x",
])
def test_apply_query_string(overrides, store, url):
    applied = overrides.apply_query_string(url)
    assert applied == [("cta-button-text", "B"), ("cta-color", "green")]
    assert store.get_variant("cta-button-text") == "B"
    assert store.get_variant("cta-color") == "green"


def test_apply_query_string_skips_invalid_pairs(overrides, store):
    applied = overrides.apply_query_string("?ab_debug=cta-button-text:Z,price-display:annual")
    assert applied == [("price-display", "annual")]
    assert "cta-button-text" not in store.get_all()


def test_apply_query_string_without_param(overrides, store):
    assert overrides.apply_query_string("https://example.com/?page=2") == []
    assert overrides.apply_query_string("") == []
    assert store.get_all() == {}


@pytest.mark.parametrize("url,expected", [
    ("https://example.com/marketplace?ab_panel", True),
    ("?ab_panel=1&page=2", True),
    ("https://example.com/?page=2", False),
    ("?ab_debug=cta-button-text:B", False),
    ("", False),
])
def test_panel_requested_by_url(overrides, url, expected):
    assert overrides.panel_requested(url) is expected


def test_panel_always_on_when_enabled(registry, storage):
    store = AssignmentStore(registry, storage, "s1", settings=ABTestingSettings(debug_panel=True))
    assert OverrideController(store).panel_requested("") is True
