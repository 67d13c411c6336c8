from pathlib import Path

import pytest

from btc_dashboard import cli


@pytest.fixture(autouse=True)
def no_home_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("btc_dashboard.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")


def test_parser_maps_flags_to_overrides() -> None:
    args = cli.build_parser().parse_args(
        ["--commands", "c.json", "--address-book", "a.json", "--backend", "rpc", "--debug"]
    )

    assert cli._overrides(args) == {
        "commands_path": "c.json",
        "address_book_path": "a.json",
        "backend": "rpc",
    }
    assert args.debug is True


def test_unknown_backend_is_rejected_by_parser() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.build_parser().parse_args(["--backend", "grpc"])

    assert excinfo.value.code == 2


def test_missing_command_list_exits_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    argv = [
        "--commands", str(tmp_path / "missing.json"),
        "--address-book", str(tmp_path / "addresses.json"),
        "--log-file", str(tmp_path / "dashboard.log"),
    ]

    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 1
    assert "missing.json" in capsys.readouterr().err


def test_missing_config_file_exits_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path / "nope.yaml")])

    assert excinfo.value.code == 1
    assert "Config file not found" in capsys.readouterr().err


def test_session_exit_code_is_propagated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr("btc_dashboard.session.run_session", lambda config: 3)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--log-file", str(tmp_path / "dashboard.log")])

    assert excinfo.value.code == 3


def test_clean_exit_returns_normally(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen = []
    monkeypatch.setattr("btc_dashboard.session.run_session", seen.append)

    cli.main(["--backend", "rpc", "--log-file", str(tmp_path / "dashboard.log")])

    assert seen[0].backend == "rpc"


def test_config_directory_exits_with_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "Cannot read config file" in capsys.readouterr().err
