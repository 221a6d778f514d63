"""Tests for trill.cli — argument parsing and ``trill`` startup."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from trill.app import DevServer
from trill.cli import build_parser, main
from trill.cli._run import config_from_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TRILL_ROOT", "TRILL_HOST", "TRILL_PORT", "TRILL_EXTS", "TRILL_WATCH"):
        monkeypatch.delenv(name, raising=False)


class TestConfigFromArgs:
    def test_defaults(self) -> None:
        config = config_from_args(build_parser().parse_args([]))
        assert config.root == "."
        assert config.port == 8000
        assert config.watch is True
        assert config.verbose is False

    def test_flags(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(
            [
                str(tmp_path),
                "--host",
                "0.0.0.0",
                "--port",
                "3000",
                "--ext",
                ".js",
                "--ext",
                ".ts",
                "--ignore",
                "vendor",
                "--no-watch",
                "-v",
            ]
        )
        config = config_from_args(args)
        assert config.root == str(tmp_path)
        assert config.host == "0.0.0.0"
        assert config.port == 3000
        assert config.extensions == (".js", ".ts")
        assert config.ignore == ("vendor",)
        assert config.watch is False
        assert config.verbose is True

    def test_flags_override_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRILL_PORT", "5000")
        monkeypatch.setenv("TRILL_EXTS", ".ts")
        config = config_from_args(build_parser().parse_args(["--port", "6000"]))
        assert config.port == 6000
        assert config.extensions == (".ts",)


class TestMain:
    @patch("trill.server.dev.run_dev_server")
    def test_starts_server(
        self, mock_server: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main([str(tmp_path), "--port", "3000", "--no-watch"])

        mock_server.assert_called_once()
        app, host, port = mock_server.call_args[0]
        assert isinstance(app, DevServer)
        assert app.config.root_path == tmp_path.resolve()
        assert (host, port) == ("127.0.0.1", 3000)
        assert "Server running at http://127.0.0.1:3000" in capsys.readouterr().err

    def test_missing_root_exits_2(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing")])
        assert exc_info.value.code == 2
        assert "not a directory" in capsys.readouterr().err

    def test_invalid_extension_exits_2(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path), "--ext", "ts"])
        assert exc_info.value.code == 2
        assert "Error: Invalid extension" in capsys.readouterr().err
