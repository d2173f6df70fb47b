from __future__ import annotations

from pathlib import Path

import pytest

from edi_import.config.loader import ConfigError, config_paths, load_config, overlay_path


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    for key in ("ENVIRONMENT", "COMPANY", "DFM_ID", "INPUT_FILE_LOCATION", "DISABLED", "DISABLED_FILE_LOCATION"):
        monkeypatch.delenv(f"EDI_IMPORT_{key}", raising=False)


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.input_file_location == "./input"
    assert cfg.company == "1"
    assert cfg.dfm_id == "15"
    assert cfg.disabled is False
    assert cfg.environment == "production"
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.logging.level == "INFO"
    assert cfg.logging.file_name == "EdiImport.log"
    assert cfg.logging.max_file_size_mb == 10


def test_load_config_defaults(temp_workdir: Path):
    path = temp_workdir / "config" / "edi_import.yml"
    path.write_text("input_file_location: ./in\n", encoding="utf-8")
    cfg = load_config(path)
    assert (cfg.company, cfg.dfm_id, cfg.disabled_file_location) == ("1", "15", "")
    assert cfg.database.dsn is None
    assert cfg.logging.file_path is None


def test_integer_ids_are_normalised_to_text(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace('company: "1"', "company: 2")
    write_config.write_text(text, encoding="utf-8")
    assert load_config(write_config).company == "2"


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("input_file_location: ./input\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    write_config.write_text(write_config.read_text(encoding="utf-8") + "extra_field: 1\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("input_file_location: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(write_config)


def test_load_config_wrong_type(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("disabled: false", "disabled: maybe")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_environment_overlay_is_merged(write_config: Path):
    overlay = overlay_path(write_config, "development")
    assert overlay.name == "edi_import.development.yml"
    overlay.write_text("input_file_location: ./dev-input\nlogging:\n  level: DEBUG\n", encoding="utf-8")

    dev = load_config(write_config, environment="development")
    prod = load_config(write_config)

    assert dev.environment == "development"
    assert dev.input_file_location == "./dev-input"
    assert dev.logging.level == "DEBUG"
    # nested keys not in the overlay are kept
    assert dev.logging.error_log_dir == "./logs"
    assert prod.input_file_location == "./input"


def test_environment_from_variable(write_config: Path, monkeypatch):
    monkeypatch.setenv("EDI_IMPORT_ENVIRONMENT", "staging")
    assert load_config(write_config).environment == "staging"


def test_invalid_environment(write_config: Path):
    with pytest.raises(ConfigError, match="invalid environment"):
        load_config(write_config, environment="qa")


def test_env_overrides(write_config: Path, monkeypatch):
    monkeypatch.setenv("EDI_IMPORT_COMPANY", "7")
    monkeypatch.setenv("EDI_IMPORT_DISABLED", "yes")
    cfg = load_config(write_config)
    assert cfg.company == "7"
    assert cfg.disabled is True


def test_env_override_invalid_bool(write_config: Path, monkeypatch):
    monkeypatch.setenv("EDI_IMPORT_DISABLED", "sometimes")
    with pytest.raises(ConfigError, match="invalid boolean"):
        load_config(write_config)


def test_config_paths():
    base = Path("config/edi_import.yml")
    assert config_paths(base, "production") == [base]
    assert config_paths(base, "staging") == [base, Path("config/edi_import.staging.yml")]
