from __future__ import annotations

from quizify.config import load_config
from quizify.workspace import cli


def test_init_creates_workspace_and_config(tmp_path, capsys, monkeypatch):
    target = tmp_path / "workspace"
    monkeypatch.setenv("QUIZIFY_DATA_HOME", str(target))

    code = cli.main([])

    captured = capsys.readouterr()
    assert code == 0
    assert "Workspace ready" in captured.out
    for name in ("config", "logs", "uploads"):
        assert (target / name).is_dir()
    config_path = target.resolve() / "config" / "quizify.toml"
    assert config_path.is_file()
    assert f"Config: {config_path} (written)" in captured.out


def test_init_supports_custom_path(tmp_path, capsys):
    target = tmp_path / "custom"

    code = cli.main(["--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert target.is_dir()
    assert str(target) in captured.out


def test_init_keeps_existing_config(tmp_path, capsys):
    target = tmp_path / "keep"
    cli.main(["--path", str(target), "--quiet"])
    config_path = target / "config" / "quizify.toml"
    config_path.write_text("[quiz]\ndefault_questions = 7\n")

    code = cli.main(["--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert "(exists)" in captured.out
    assert load_config(workspace=target).quiz.default_questions == 7


def test_init_force_rewrites_config(tmp_path, capsys):
    target = tmp_path / "force"
    cli.main(["--path", str(target), "--quiet"])
    config_path = target / "config" / "quizify.toml"
    config_path.write_text("[quiz]\ndefault_questions = 7\n")

    code = cli.main(["--path", str(target), "--force", "--quiet"])

    assert code == 0
    assert capsys.readouterr().out == ""
    assert load_config(workspace=target).quiz.default_questions == 10


def test_init_reports_unusable_path(tmp_path, capsys):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    code = cli.main(["--path", str(blocker)])

    assert code == 1
    assert capsys.readouterr().err
