import json

from mediareader.config import AppConfig, get_default_config_path, mask_api_key
from mediareader.constants import API_ENDPOINT


def test_defaults_when_file_missing(tmp_path):
    config = AppConfig(tmp_path / "config.json")
    assert config.load_warning is None
    assert config.get("model") == "glm-4v-plus"
    assert config.get("temperature") == 0.7
    assert config.get("max_tokens") == 300
    assert config.get("endpoint") == API_ENDPOINT


def test_set_persists_and_reloads(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = AppConfig(path)
    assert config.set("model", "glm-4v")
    assert config.set("max_tokens", "512")

    reloaded = AppConfig(path)
    assert reloaded.get("model") == "glm-4v"
    assert reloaded.get("max_tokens") == 512
    assert json.loads(path.read_text(encoding="utf-8"))["model"] == "glm-4v"


def test_bad_numeric_values_fall_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"temperature": "warm", "max_tokens": None}), encoding="utf-8")
    config = AppConfig(path)
    assert config.get("temperature") == 0.7
    assert config.get("max_tokens") == 300


def test_corrupt_config_is_preserved(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    config = AppConfig(path)
    assert config.get("model") == "glm-4v-plus"
    assert "Using defaults" in config.load_warning
    assert (tmp_path / "config.json.corrupt").exists()


def test_non_object_config_warns(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    config = AppConfig(path)
    assert "not a JSON object" in config.load_warning


def test_env_override_for_config_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("MEDIA_READER_CONFIG_DIR", str(tmp_path))
    assert get_default_config_path() == tmp_path / "config.json"


def test_build_run_config_layers_overrides(tmp_path):
    config = AppConfig(tmp_path / "config.json")
    config.set("api_key", "stored-key")
    run_config = config.build_run_config("describe", temperature=0.1)
    assert run_config.api_key == "stored-key"
    assert run_config.temperature == 0.1
    assert run_config.max_tokens == 300
    assert run_config.prompt_text == "describe"
    run_config.validate()


def test_mask_api_key():
    assert mask_api_key("") == ""
    assert mask_api_key("abc") == "abc"
    assert mask_api_key("sk-123456") == "*****3456"


def test_masked_settings_hide_key(tmp_path):
    config = AppConfig(tmp_path / "config.json")
    config.set("api_key", "secret-abcd")
    assert config.masked_settings()["api_key"] == "*******abcd"
