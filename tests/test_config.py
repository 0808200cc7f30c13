"""Tests for rule families, Config overrides and process settings."""

import pytest
from pydantic import ValidationError

from archguard.config import FAMILIES, get_default_config
from archguard.settings import Settings


def _ids(family: str) -> set[str]:
    return {rule.id for rule in FAMILIES[family]}


def test_families():
    assert {"missing-use-client", "sequential-fetches", "file-size-limit", "raw-img-element"} <= _ids("architecture")
    assert {"component-naming", "unused-variable", "any-type", "long-lines", "file-size-limit"} <= _ids("style")
    assert {"disallowed-dependency", "unapproved-dependency", "dependency-version"} <= _ids("dependency")
    assert _ids("all") == _ids("architecture") | _ids("style") | _ids("dependency")


def test_rule_ids_are_unique_within_a_family():
    for rules in FAMILIES.values():
        ids = [rule.id for rule in rules]
        assert len(ids) == len(set(ids))


def test_manifests_follow_the_dependency_rules():
    assert not get_default_config("architecture").include_manifests
    assert not get_default_config("style").include_manifests
    assert get_default_config("dependency").include_manifests
    assert get_default_config("all").uses_policy


def test_overrides():
    config = get_default_config("style", max_lines=300, ci_strict=True)
    assert config.family == "style"
    assert config.max_lines == 300
    assert config.ci_strict


def test_unknown_override_rejected():
    with pytest.raises(TypeError, match="Unknown config option"):
        get_default_config(max_line=300)


def test_unknown_family_rejected():
    with pytest.raises(KeyError):
        get_default_config("security")



class TestSettings:
    @pytest.fixture(autouse=True)
    def isolated_env(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for name in ("ARCHGUARD_PORT", "ARCHGUARD_JOBS", "ARCHGUARD_PROJECT_ROOT", "ARCHGUARD_POLICY_FILE", "DEPENDENCY_POLICY_FILE"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self, tmp_path):
        settings = Settings()
        assert settings.port == 8765
        assert settings.jobs == 1
        assert settings.policy_file == ".dependency-policy.md"
        assert settings.default_root() == tmp_path

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("ARCHGUARD_PORT", "9000")
        monkeypatch.setenv("DEPENDENCY_POLICY_FILE", "docs/deps.md")
        settings = Settings()
        assert settings.port == 9000
        assert settings.policy_file == "docs/deps.md"

    def test_jobs_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(jobs=0)
