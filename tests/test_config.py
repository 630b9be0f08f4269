from pathlib import Path

import pytest

from resultant_rights.core.config import BUILTIN_ADMINISTRATOR, ConfigManager, RightsSettings
from resultant_rights.utils.errors import ConfigurationError


def test_load_config_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.yml"
    config_path.write_text(
        "store:\n  database: policy.db\nresolver:\n  separator: '|'\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("RIGHTS_CONFIG", str(config_path))
    settings = ConfigManager().load()
    assert settings.store.database == "policy.db"
    assert settings.resolver.separator == "|"
    assert settings.defaults.requestor == BUILTIN_ADMINISTRATOR


def test_toml_config_and_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[store]\nserver = "."\n', encoding="utf-8")
    settings = ConfigManager(config_path).load()
    assert settings.store.server == "."
    updated = settings.with_overrides(store__database="other.db", resolver__separator=None)
    assert updated.store.database == "other.db"
    assert updated.resolver.separator == ":"
    with pytest.raises(ConfigurationError):
        settings.with_overrides(resolver__separator="::")


def test_missing_default_config_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USERDOMAIN", "CONTOSO")
    settings = ConfigManager().load()
    assert settings.store.server == "localhost"
    assert settings.resolver.domain == "CONTOSO"


def test_invalid_configs(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        ConfigManager(tmp_path / "absent.yml").load()

    bad_separator = tmp_path / "bad.yml"
    bad_separator.write_text("resolver:\n  separator: '\\\\'\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigManager(bad_separator).load()

    not_a_mapping = tmp_path / "list.yml"
    not_a_mapping.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigManager(not_a_mapping).load()

    with pytest.raises(ConfigurationError):
        ConfigManager(tmp_path / "config.ini").load()


def test_validation_errors_are_collapsed_to_one_line() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        RightsSettings().with_overrides(resolver__separator="::", resolver__verify_guids="perhaps")
    message = str(excinfo.value)
    assert "\n" not in message
    assert message.startswith("resolver.separator: Value error, separator must be exactly one character; ")
    assert "resolver.verify_guids:" in message
