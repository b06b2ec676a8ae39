"""Tests for the narrate-ms command line."""
import json

import pytest

from narrate_ms import cli


@pytest.fixture
def write_settings(tmp_path):
    def _write(timeout_ms=2000):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "synthesis:\n"
            "  api_key: tts-key\n"
            "  voice_id: voiceA\n"
            "  base_url: https://tts.test\n"
            f"  timeout_ms: {timeout_ms}\n"
            "storage:\n"
            "  url: https://proj.supabase.co\n"
            "  service_key: svc-key\n"
            "  bucket: audio\n",
            encoding="utf-8",
        )
        return str(path)
    return _write


@pytest.fixture
def settings_file(write_settings):
    return write_settings()


@pytest.fixture
def fake_service(monkeypatch, backend, make_service):
    monkeypatch.setattr(cli, "NarrateService", lambda config: make_service(backend, config))
    return backend


def test_cli_dry_run(capsys, settings_file, narration_id):
    code = cli.main([
        "--title", "Card A", "--campaign", "Camp1", "--text", "  Hello   world ",
        "--settings", settings_file, "--dry-run", "--json",
    ])
    assert code == 0
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    nid = narration_id("Hello world")
    assert payload["id"] == nid
    assert payload["object_path"] == f"cards/{nid}.mp3"
    assert payload["filename"] == f"Camp1__Card_A--{nid}.mp3"
    assert payload["canonical_chars"] == len("Hello world")


def test_cli_dry_run_voice_override(capsys, settings_file, narration_id):
    code = cli.main([
        "--title", "t", "--campaign", "c", "--text", "Hello world",
        "--voice", "voiceB", "--settings", settings_file, "--dry-run", "--json",
    ])
    assert code == 0
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["id"] == narration_id("Hello world", voice="voiceB")


def test_cli_dry_run_rejects_bad_voice(capsys, settings_file):
    code = cli.main([
        "--title", "t", "--campaign", "c", "--text", "x",
        "--voice", "a::b", "--settings", settings_file, "--dry-run", "--json",
    ])
    assert code == 1
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["code"] == "VOICE_ID_INVALID_FORMAT"


def test_cli_text_from_file(capsys, tmp_path, settings_file, narration_id):
    text_file = tmp_path / "card.txt"
    text_file.write_text("Hello world\r\n", encoding="utf-8")
    code = cli.main([
        "--title", "t", "--campaign", "c", "--file", str(text_file),
        "--settings", settings_file, "--dry-run", "--json",
    ])
    assert code == 0
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["id"] == narration_id("Hello world")


def test_cli_requires_text(settings_file):
    with pytest.raises(SystemExit):
        cli.main(["--title", "t", "--campaign", "c", "--settings", settings_file])


def test_cli_narrates(capsys, settings_file, fake_service):
    code = cli.main([
        "--title", "Card A", "--campaign", "Camp1", "--text", "Hello world",
        "--settings", settings_file, "--json",
    ])
    assert code == 0
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["ok"] is True
    assert payload["url"].startswith("https://proj.supabase.co/storage/v1/object/public/audio/cards/")
    assert len(fake_service.tts_calls) == 1


def test_cli_processing_exit_code(capsys, write_settings, fake_service):
    fake_service.tts_delay = 1.0
    settings = write_settings(timeout_ms=50)

    code = cli.main([
        "--title", "t", "--campaign", "c", "--text", "slow", "--settings", settings, "--json",
    ])
    assert code == 2
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["status"] == "processing"


def test_cli_upstream_error_exit_code(capsys, settings_file, fake_service):
    fake_service.tts_status = 500
    code = cli.main([
        "--title", "t", "--campaign", "c", "--text", "boom", "--settings", settings_file, "--json",
    ])
    assert code == 1
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["status_code"] == 500
