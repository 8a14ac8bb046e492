"""Shared fixtures for the autosrc test suite."""

from unittest.mock import patch

import pytest

from autosrc.manifest import ManifestFile, ManifestStore


@pytest.fixture
def mock_config():
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "provider": "anthropic",
        "generator_model": "claude-test",
        "temperature": 0,
        "max_tokens": 1024,
        "mode": "single-shot",
        "manifest_path": "autosrc.json",
        "reference_paths": [],
        "max_cycles": 10,
        "llm_max_retries": 0,
        "remove_missing": "fail",
        "report_path": None,
    }
    with patch("autosrc.config._config", test_config):
        yield test_config


@pytest.fixture
def store(tmp_path):
    """Empty manifest store flushed to tmp_path/autosrc.json."""
    return ManifestStore(tmp_path / "autosrc.json")


@pytest.fixture
def seeded_store(tmp_path):
    """Manifest with two pending entries, already on disk."""
    s = ManifestStore(
        tmp_path / "autosrc.json",
        [
            ManifestFile("src/a.ts", "module a"),
            ManifestFile("src/b.ts", "module b"),
        ],
    )
    s.save()
    return s


@pytest.fixture
def base_state(seeded_store, tmp_path):
    """Minimal valid GenerationState."""
    return {
        "spec": {"name": "demo", "language": "typescript"},
        "references": [],
        "manifest": seeded_store,
        "root": str(tmp_path),
        "mode": "single-shot",
        "feedback": None,
        "last_failure": None,
        "error_history": [],
        "batch": [],
        "conversation": [],
        "notes": [],
        "cycle": 0,
        "status": "in_progress",
        "report": None,
    }
