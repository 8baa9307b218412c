"""Tests for configuration loading."""
import pytest

from init_mcp.config import ServerConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("INIT_MCP_CONFIG", raising=False)
    monkeypatch.delenv("INIT_MCP_LOG_LEVEL", raising=False)


def test_defaults():
    """No file and no environment gives the built-in defaults."""
    config = load_config()

    assert config.protocol_version == "2024-11-05"
    assert config.server.name == "init"
    assert config.server.version == "1.0.0"
    assert config.logging.level == "INFO"
    assert config.templates is None
    assert config.load_templates().destinations == ["LICENSE", "CONTRIBUTING.md"]


def test_from_yaml(tmp_path):
    """YAML values override defaults; relative sources resolve next to the file."""
    config_file = tmp_path / "init-mcp.yaml"
    config_file.write_text(
        "protocol_version: '2025-03-26'\n"
        "server:\n"
        "  name: scaffold\n"
        "logging:\n"
        "  level: debug\n"
        "templates:\n"
        "  - source: files/NOTICE\n"
        "    destination: NOTICE\n"
    )

    config = ServerConfig.from_yaml(config_file)

    assert config.protocol_version == "2025-03-26"
    assert config.server.name == "scaffold"
    assert config.server.version == "1.0.0"
    assert config.logging.level == "DEBUG"
    assert config.templates[0].source == tmp_path.resolve() / "files" / "NOTICE"


def test_empty_yaml_uses_defaults(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    assert ServerConfig.from_yaml(config_file) == ServerConfig()


def test_non_mapping_yaml_rejected(tmp_path):
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n")

    with pytest.raises(ValueError, match="expected a mapping"):
        ServerConfig.from_yaml(config_file)


def test_duplicate_template_destinations_rejected(tmp_path):
    """Two templates may not write the same file."""
    config_file = tmp_path / "dup.yaml"
    config_file.write_text(
        "templates:\n"
        "  - {source: a, destination: LICENSE}\n"
        "  - {source: b, destination: LICENSE}\n"
    )

    with pytest.raises(ValueError, match="duplicate template destinations: LICENSE"):
        ServerConfig.from_yaml(config_file)


def test_invalid_log_level_rejected(tmp_path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("logging:\n  level: LOUD\n")

    with pytest.raises(ValueError, match="Invalid configuration"):
        ServerConfig.from_yaml(config_file)


def test_config_path_from_environment(tmp_path, monkeypatch):
    config_file = tmp_path / "env.yaml"
    config_file.write_text("server:\n  version: 2.0.0\n")
    monkeypatch.setenv("INIT_MCP_CONFIG", str(config_file))

    assert load_config().server.version == "2.0.0"


def test_log_level_from_environment(monkeypatch):
    monkeypatch.setenv("INIT_MCP_LOG_LEVEL", "warning")

    assert load_config().logging.level == "WARNING"


def test_missing_explicit_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
