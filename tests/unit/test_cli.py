from __future__ import annotations

from pathlib import Path

import pytest

from veryfiable.cli import build_parser, main
from veryfiable.core.exceptions import MissingSettingsError

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_cli_help_includes_subcommands(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main([])
    assert rc == 2
    out = capsys.readouterr().out
    assert "register-schema" in out
    assert "api" in out
    assert "init-db" in out


def test_cli_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--version"])
    assert rc == 0
    assert capsys.readouterr().out.strip().startswith("veryfiable v")


def test_cli_unknown_command_errors() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["nope"])


@pytest.mark.parametrize("cmd", ["register-schema", "api", "init-db"])
def test_cli_parses_all_subcommands(cmd: str) -> None:
    ns = build_parser().parse_args([cmd])
    assert ns.command == cmd


def test_register_schema_takes_no_flags() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["register-schema", "--force"])


def test_register_schema_success_prints_uid(
    tmp_path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    seen = []

    def fake_register(eas):
        seen.append(eas)
        return "0x" + "ab" * 32

    monkeypatch.setattr("veryfiable.integrations.registration.register_public_review_schema", fake_register)

    rc = main(["register-schema"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "Schema UID: 0x" + "ab" * 32 in out
    assert "Next steps" in out
    assert len(seen) == 1


def test_register_schema_missing_settings_exits_1(
    tmp_path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    # No config/ directory in tmp_path: environment only, and it is empty.
    monkeypatch.chdir(tmp_path)

    rc = main(["register-schema"])
    assert rc == 1
    err = capsys.readouterr().err
    assert "VERYFIABLE_EAS__RPC_URL" in err
    assert "VERYFIABLE_EAS__PRIVATE_KEY" in err
    assert "VERYFIABLE_EAS__SCHEMA_REGISTRY_ADDRESS" in err
    assert "Traceback" not in err


def test_register_schema_debug_prints_traceback(
    tmp_path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VERYFIABLE_DEBUG", "true")

    def fake_register(eas):
        raise MissingSettingsError(["VERYFIABLE_EAS__PRIVATE_KEY"])

    monkeypatch.setattr("veryfiable.integrations.registration.register_public_review_schema", fake_register)

    rc = main(["register-schema"])
    assert rc == 1
    err = capsys.readouterr().err
    assert "Traceback" in err
    assert "MissingSettingsError" in err


def test_register_schema_debug_env_wins_over_repo_yaml(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    # config/default.yaml sets debug: false; the environment must still win.
    monkeypatch.chdir(REPO_ROOT)
    monkeypatch.setenv("VERYFIABLE_DEBUG", "true")

    rc = main(["register-schema"])
    assert rc == 1
    err = capsys.readouterr().err
    assert "VERYFIABLE_EAS__PRIVATE_KEY" in err
    assert "Traceback" in err


def test_register_schema_debug_traceback_for_broken_yaml(
    tmp_path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "default.yaml").write_text("- not\n- a mapping\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VERYFIABLE_DEBUG", "1")

    rc = main(["register-schema"])
    assert rc == 1
    err = capsys.readouterr().err
    assert "must contain a mapping" in err
    assert "Traceback" in err
    assert "ConfigError" in err
