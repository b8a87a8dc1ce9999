import json

from school_ranker import config


def test_load_ranker_config_missing_file(tmp_path):
    assert config.load_ranker_config(str(tmp_path / "nope.json")) is False


def test_load_ranker_config_overrides(tmp_path, monkeypatch):
    for name in (
        "GEOCODER_URL",
        "GEOCODER_USER_AGENT",
        "DEFAULT_DATA_PATH",
        "OUTPUT_DIR",
        "HTTP_TIMEOUT_SECONDS",
        "HTTP_RETRY_MAX",
        "SERVER_PORT",
    ):
        monkeypatch.setattr(config, name, getattr(config, name))

    path = tmp_path / "ranker_config.json"
    path.write_text(
        json.dumps(
            {
                "geocoder_url": "https://geo.example/search",
                "user_agent": "Carte des collèges",
                "default_data_path": "data/lille.csv",
                "http_retry_max": 0,
                "http_timeout_seconds": 3,
                "server_port": 8123,
            }
        ),
        encoding="utf-8",
    )

    assert config.load_ranker_config(str(path)) is True
    assert config.GEOCODER_URL == "https://geo.example/search"
    assert config.GEOCODER_USER_AGENT == "Carte des collèges"
    assert config.DEFAULT_DATA_PATH == "data/lille.csv"
    assert config.HTTP_RETRY_MAX == 1
    assert config.HTTP_TIMEOUT_SECONDS == 3.0
    assert config.SERVER_PORT == 8123
    assert config.OUTPUT_DIR == "out"


def test_env_overrides(monkeypatch):
    monkeypatch.setattr(config, "GEOCODER_URL", config.GEOCODER_URL)
    monkeypatch.setattr(config, "GEOCODER_USER_AGENT", config.GEOCODER_USER_AGENT)
    monkeypatch.setenv("GEOCODER_URL", "http://localhost:8080/search")
    monkeypatch.delenv("GEOCODER_USER_AGENT", raising=False)

    config.apply_env_overrides()

    assert config.GEOCODER_URL == "http://localhost:8080/search"
    assert config.GEOCODER_USER_AGENT == "School Distance Calculator"
