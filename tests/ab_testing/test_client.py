"""Tests for the public client surface."""
import json

import pytest
from src.ab_testing.client import ABTestingClient
from src.ab_testing.config import ABTestingSettings
from src.ab_testing.storage import JsonFileStorage, read_serialized_variant


@pytest.fixture
def client(registry, storage):
    return ABTestingClient.from_settings(
        settings=ABTestingSettings(storage_path=None),
        registry=registry,
        storage=storage,
        subject_id="subject_001",
    )


def test_two_phase_resolution(client):
    first = client.initial_resolution("marketplace-layout")
    assert first.variant == "grid"
    assert first.resolved is False
    assert client.get_all_assignments() == {}

    steady = client.resolve("marketplace-layout")
    assert steady.resolved is True
    assert steady.variant == client.get_variant("marketplace-layout")


def test_initial_resolution_unknown_experiment(client):
    res = client.initial_resolution("missing")
    assert res.variant == "A"
    assert not res.resolved


def test_resolve_with_meta(client):
    res = client.resolve_with_meta("price-display")
    assert res.experiment.id == "price-display"
    assert res.percentage == {"standard": 90, "annual": 10}[res.variant]


def test_public_surface_round_trip(client):
    v = client.get_variant("cta-button-text")
    assert client.get_all_assignments()["cta-button-text"].variant_id == v

    other = "A" if v == "B" else "B"
    assert client.force_variant("cta-button-text", other)
    assert client.get_variant("cta-button-text") == other

    client.clear_assignments()
    assert client.get_all_assignments() == {}
    assert client.get_variant("cta-button-text") == v


def test_list_experiments_and_percentage(client):
    assert [e.id for e in client.list_experiments()] == [
        "cta-button-text", "marketplace-layout", "price-display", "cta-color",
    ]
    assert client.get_variant_percentage("cta-button-text", "B") == 50
    assert client.get_variant_percentage("nope", "B") == 0


def test_get_variant_never_raises(client, monkeypatch):
    def explode(experiment_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(client.store, "get_variant", explode)
    assert client.get_variant("price-display") == "standard"


def test_apply_url_overrides(client):
    client.apply_url_overrides("/marketplace?ab_debug=cta-color:orange")
    assert client.get_variant("cta-color") == "orange"


def test_debug_state(client):
    client.force_variant("cta-button-text", "B")
    df = client.debug_state()
    assert len(df) == 9  # 2 + 2 + 2 + 3 variants
    row = df[(df["experiment_id"] == "cta-button-text") & (df["variant_id"] == "B")].iloc[0]
    assert bool(row["is_current"])
    assert row["percentage"] == 50
    assert not df[df["experiment_id"] == "cta-color"]["is_current"].any()


def test_from_settings_persists_to_file(tmp_path, registry):
    path = tmp_path / "ab" / "storage.json"
    settings = ABTestingSettings(storage_path=str(path))

    first = ABTestingClient.from_settings(settings=settings, registry=registry)
    v = first.get_variant("cta-color")

    second = ABTestingClient.from_settings(settings=settings, registry=registry)
    assert second.store.subject_id == first.store.subject_id
    assert second.get_variant("cta-color") == v

    raw = JsonFileStorage(str(path)).get_item(settings.storage_key)
    assert read_serialized_variant(raw, "cta-color") == v
    assert json.loads(raw)["cta-color"]["variantId"] == v


def test_explicit_subject_id_overrides_browser_id(registry, storage):
    settings = ABTestingSettings(storage_path=None)
    a = ABTestingClient.from_settings(settings=settings, registry=registry, storage=storage, subject_id="user_42")
    assert a.store.subject_id == "user_42"
    assert storage.get_item(settings.subject_key) is None


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("AB_TESTING_STORAGE_PATH", "")
    monkeypatch.setenv("AB_TESTING_STORAGE_KEY", "custom_key")
    monkeypatch.setenv("AB_TESTING_MAX_AGE_DAYS", "30")
    settings = ABTestingSettings.from_env()
    assert settings.storage_path is None
    assert settings.storage_key == "custom_key"
    assert settings.max_age_days == 30.0


def test_settings_from_env_ignores_bad_age(monkeypatch):
    monkeypatch.delenv("AB_TESTING_STORAGE_PATH", raising=False)
    monkeypatch.setenv("AB_TESTING_MAX_AGE_DAYS", "soon")
    assert ABTestingSettings.from_env().max_age_days is None


def test_settings_from_env_debug_panel(monkeypatch):
    monkeypatch.setenv("AB_TESTING_DEBUG_PANEL", "1")
    assert ABTestingSettings.from_env().debug_panel is True
    monkeypatch.setenv("AB_TESTING_DEBUG_PANEL", "0")
    assert ABTestingSettings.from_env().debug_panel is False


def test_choose_renders_option_for_variant(client):
    client.force_variant("cta-button-text", "B")
    assert client.choose("cta-button-text", {"A": "Book Now", "B": "Get Started"}) == "Get Started"


def test_choose_falls_back_when_no_option_matches(client):
    variant = client.get_variant("cta-color")
    assert client.choose("cta-color", {variant: "x"}) == "x"
    assert client.choose("cta-color", {"nope": "x"}, fallback="default") == "default"
    assert client.choose("cta-color", {}) is None


def test_from_settings_survives_undecodable_storage_file(tmp_path, registry):
    path = tmp_path / "storage.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    client = ABTestingClient.from_settings(
        settings=ABTestingSettings(storage_path=str(path)),
        registry=registry,
    )
    assert client.store.subject_id
    assert client.get_variant("cta-button-text") in ("A", "B")
