from __future__ import annotations

import pytest

from fixtures import FakeOpenAI
from quizify import config as config_mod


def test_defaults_without_any_file(tmp_path):
    cfg = config_mod.load_config(workspace=tmp_path / "ws", env={})

    assert cfg.openai.model == "gpt-4o-mini"
    assert cfg.quiz.default_questions == 10
    assert cfg.storage.max_upload_bytes == 50 * 1024 * 1024
    assert cfg.storage.upload_url_ttl_seconds == 900
    assert cfg.server.session_secret is None
    assert cfg.logging.level == "INFO"


def test_template_parses_back_to_defaults(tmp_path):
    path = config_mod.write_template(tmp_path / "quizify.toml")

    cfg = config_mod.load_config(explicit_path=path, env={})

    assert cfg == config_mod.default_config()


def test_partial_file_overrides_only_given_keys(tmp_path):
    path = tmp_path / "quizify.toml"
    path.write_text(
        '[openai]\nmodel = "gpt-4.1"\n\n[logging]\nlevel = "debug"\n',
        encoding="utf-8",
    )

    cfg = config_mod.load_config(explicit_path=path, env={})

    assert cfg.openai.model == "gpt-4.1"
    assert cfg.openai.temperature == 0.2
    assert cfg.logging.level == "DEBUG"


def test_env_variable_points_at_config(tmp_path):
    path = tmp_path / "elsewhere.toml"
    path.write_text("[server]\nport = 9001\n", encoding="utf-8")

    cfg = config_mod.load_config(
        env={config_mod.CONFIG_PATH_ENV: str(path)}
    )

    assert cfg.server.port == 9001


def test_workspace_config_is_picked_up(tmp_path):
    workspace = tmp_path / "ws"
    target = workspace / "config" / config_mod.CONFIG_FILENAME
    target.parent.mkdir(parents=True)
    target.write_text("[quiz]\ndefault_questions = 20\n", encoding="utf-8")

    cfg = config_mod.load_config(workspace=workspace, env={})

    assert cfg.quiz.default_questions == 20


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(config_mod.ConfigError, match="not found"):
        config_mod.load_config(
            explicit_path=tmp_path / "absent.toml", env={}
        )


@pytest.mark.parametrize(
    "body, message",
    [
        ("[quiz]\ndefault_questions = 4\n", "between 5 and 50"),
        ("[quiz]\ndefault_questions = 51\n", "between 5 and 50"),
        ("[openai]\ntemperature = 3.5\n", "temperature"),
        ("[server]\nport = true\n", "server.port"),
        ("[logging]\nlevel = \"LOUD\"\n", "logging.level"),
        ("[storage]\nmax_upload_bytes = 0\n", "positive integer"),
        ("[quiz]\nshuffle = true\n", "key 'quiz.shuffle'"),
        ("[quizz]\ndefault_questions = 5\n", "sections are"),
        ("quiz = 3\n", "Expected a \\[quiz\\] table"),
        ("[openai\nmodel = 1\n", "Failed to parse quizify.toml"),
    ],
)
def test_invalid_values_raise_config_error(tmp_path, body, message):
    path = tmp_path / "quizify.toml"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(config_mod.ConfigError, match=message):
        config_mod.load_config(explicit_path=path, env={})


def test_build_chat_client_uses_openai_section():
    sdk = FakeOpenAI("ok")
    settings = config_mod.default_config().openai

    client = config_mod.build_chat_client(settings, client=sdk)
    client.complete([{"role": "user", "content": "ping"}])

    assert client.model == settings.model
    assert sdk.calls[0]["timeout"] == settings.request_timeout_seconds


def test_unknown_key_lists_what_the_section_accepts(tmp_path):
    path = tmp_path / "quizify.toml"
    path.write_text("[openai]\nmodle = \"x\"\n", encoding="utf-8")

    with pytest.raises(config_mod.ConfigError) as excinfo:
        config_mod.load_config(explicit_path=path, env={})

    assert "openai.modle" in str(excinfo.value)
    assert "model" in str(excinfo.value).split("accepts", 1)[1]


def test_write_template_respects_overwrite(tmp_path):
    target = tmp_path / "nested" / "quizify.toml"

    config_mod.write_template(target)
    target.write_text("[quiz]\ndefault_questions = 20\n", encoding="utf-8")
    with pytest.raises(config_mod.ConfigError, match="already exists"):
        config_mod.write_template(target)
    config_mod.write_template(target, overwrite=True)

    assert target.read_text(encoding="utf-8") == config_mod.config_template()
