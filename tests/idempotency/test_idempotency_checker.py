import json
from pathlib import Path

import pytest

from gsd_opencode.idempotency import (
    ArtifactMapping,
    RunManifest,
    RunManifestStore,
    check_idempotency,
)
from gsd_opencode.writer import ArtifactWriter

SOURCE_HASH = "a" * 64
OTHER_HASH = "b" * 64


@pytest.fixture
def manifest() -> RunManifest:
    return RunManifest(
        last_run="2026-01-01T00:00:00+00:00",
        source_hash=SOURCE_HASH,
        output_hash=OTHER_HASH,
        backup="/backups/20260101",
        mappings=[ArtifactMapping(source="agents/qa.xml", target="agents.json")],
    )


@pytest.fixture
def store(tmp_path: Path) -> RunManifestStore:
    return RunManifestStore(tmp_path / ".gsd-opencode" / "manifest.json")


def test_unchanged_source_is_skipped(manifest) -> None:
    decision = check_idempotency(SOURCE_HASH, manifest)

    assert not decision.should_regenerate
    assert decision.reason == "already up to date"


@pytest.mark.parametrize(
    "kwargs, reason",
    [
        ({"source_hash": OTHER_HASH}, "source changed"),
        ({"force": True}, "forced regeneration"),
        ({"load_error": "Invalid JSON"}, "previous manifest unreadable"),
    ],
)
def test_regeneration_reasons(manifest, kwargs, reason) -> None:
    arguments = {"source_hash": SOURCE_HASH, "manifest": manifest, **kwargs}
    decision = check_idempotency(**arguments)

    assert decision.should_regenerate
    assert decision.reason == reason


def test_first_run_regenerates() -> None:
    decision = check_idempotency(SOURCE_HASH, None)
    assert decision.should_regenerate
    assert decision.reason == "no previous run"


def test_store_round_trip(store, manifest) -> None:
    assert not store.path.exists()
    store.save(manifest)

    loaded, error = store.load()

    assert store.path.is_file()
    assert error is None
    assert loaded == manifest


def test_store_missing_file(store) -> None:
    assert store.load() == (None, None)


def test_store_reports_corrupt_json(store) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    loaded, error = store.load()

    assert loaded is None
    assert error.startswith("Invalid JSON in")


def test_store_reports_schema_violation(store, manifest) -> None:
    payload = manifest.as_dict()
    payload["source_hash"] = "short"
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps(payload), encoding="utf-8")

    loaded, error = store.load()

    assert loaded is None
    assert "Invalid run manifest" in error


def test_store_save_through_writer_records_pre_image(store, manifest) -> None:
    store.save(manifest)
    previous = store.path.read_bytes()
    writer = ArtifactWriter()

    store.save(RunManifest(last_run="later", source_hash=OTHER_HASH, output_hash=OTHER_HASH), writer)

    assert writer.written == [store.path]
    assert writer.pre_images[store.path].content == previous
    assert store.load()[0].source_hash == OTHER_HASH
