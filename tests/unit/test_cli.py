# tests/unit/test_cli.py

from __future__ import annotations
import json
import sys
from pathlib import Path
from typer.testing import CliRunner

# Ensure "src" is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from glide.cli import app  # Typer app


def _echo_config(tmp_path: Path) -> Path:
    cfg = tmp_path / "config" / "default.yaml"
    cfg.parent.mkdir(parents=True, exist_ok=True)
    cfg.write_text(
        """
        model:
          provider: echo
          name: echo-model
        providers:
          echo:
            latency: 0.0
        """,
        encoding="utf-8",
    )
    return cfg


def _template(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "prompt.txt"
    p.write_text(text, encoding="utf-8")
    return p


def test_cli_generate_text_with_echo(tmp_path: Path):
    cfg = _echo_config(tmp_path)
    tmpl = _template(tmp_path, "Summarise:\n{{EMAIL_THREAD}}")
    body = tmp_path / "body.txt"
    body.write_text("Hello team. " * 500, encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["generate", str(tmpl), "--config", str(cfg),
         "--var", f"EMAIL_THREAD=@{body}",
         "--context-var", "EMAIL_THREAD", "--max-context-tokens", "100"],
        catch_exceptions=False,
    )

    assert result.exit_code == 0
    # Echo provider returns a fixed lorem ipsum
    assert "Lorem ipsum" in result.output


def test_cli_generate_json_mode(tmp_path: Path):
    cfg = _echo_config(tmp_path)
    tmpl = _template(tmp_path, "Score this: {{TEXT}}")

    result = CliRunner().invoke(
        app, ["generate", str(tmpl), "-c", str(cfg), "-v", "TEXT=hi", "--json"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert json.loads(result.output)["text"].startswith("Lorem ipsum")


def test_cli_smoke_with_echo(tmp_path: Path):
    cfg = _echo_config(tmp_path)
    result = CliRunner().invoke(app, ["smoke", "--config", str(cfg)], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Lorem ipsum" in result.output


def test_cli_reports_classified_error(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    cfg = tmp_path / "gemini.yaml"
    cfg.write_text("model: { provider: gemini, name: m }\nsecrets: { method: env }\n", encoding="utf-8")

    result = CliRunner().invoke(app, ["smoke", "--config", str(cfg)])
    assert result.exit_code == 1
    assert "[INVALID_API_KEY]" in result.output
    assert "Traceback" not in result.output


def test_cli_bad_config_exit_code(tmp_path: Path):
    result = CliRunner().invoke(app, ["smoke", "--config", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 2
    assert "[config]" in result.output


def test_cli_placeholders(tmp_path: Path):
    tmpl = _template(tmp_path, "{{TONE}} reply to {{ORIGINAL_EMAIL}} in {{TONE}}")
    result = CliRunner().invoke(app, ["placeholders", str(tmpl)], catch_exceptions=False)
    assert result.exit_code == 0
    assert result.output.split() == ["TONE", "ORIGINAL_EMAIL"]
