import io
import json
from unittest.mock import MagicMock

import pytest

from helpscope import cli
from helpscope.discovery.types import DiscoveredCLI, HelpQuality, InstallCategory

HELP_TEXT = """Usage: tool [command]

Commands:
  add      Add an item
  remove   Remove an item
"""


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    configure = MagicMock()
    monkeypatch.setattr(cli, "configure_structlog", configure)
    return configure


class TestParseCommand:
    def test_parses_file(self, tmp_path, capsys) -> None:
        path = tmp_path / "help.txt"
        path.write_text(HELP_TEXT)
        assert cli.main(["parse", str(path)]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert [c["name"] for c in payload["commands"]] == ["add", "remove"]
        assert payload["usages"][0]["raw"] == "tool [command]"

    def test_reads_stdin(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(HELP_TEXT))
        assert cli.main(["parse"]) == 0
        assert json.loads(capsys.readouterr().out)["commands"]

    def test_missing_file(self, tmp_path, capsys) -> None:
        assert cli.main(["parse", str(tmp_path / "nope.txt")]) == 1
        assert "cannot read" in capsys.readouterr().err

    def test_debug_flag_reaches_logging(self, tmp_path, quiet_logging) -> None:
        path = tmp_path / "help.txt"
        path.write_text("")
        cli.main(["--debug", "parse", str(path)])
        quiet_logging.assert_called_once_with(debug=True)


class TestIntrospectCommand:
    def test_prints_structure(self, monkeypatch, capsys, fake_executor_factory) -> None:
        executor = fake_executor_factory({("--help",): HELP_TEXT})
        monkeypatch.setattr(cli, "CommandExecutor", lambda program: executor)
        assert cli.main(["introspect", "tool"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert [c["name"] for c in payload["commands"]] == ["add", "remove"]
        assert payload["telemetry"]["probes"][0]["args"] == ["--help"]


class TestDiscoverCommand:
    def test_passes_overrides(self, monkeypatch, capsys) -> None:
        found = DiscoveredCLI(
            name="mytool",
            path="/usr/local/bin/mytool",
            score=21,
            has_help=True,
            help_quality=HelpQuality.BASIC,
            category=InstallCategory.USER_INSTALLED,
        )
        discover = MagicMock(return_value=[found])
        monkeypatch.setattr(cli, "discover_clis", discover)

        assert cli.main(["discover", "--limit", "5", "--timeout", "0.5", "--no-cache"]) == 0

        options = discover.call_args.args[0]
        assert options.limit == 5
        assert options.timeout == 0.5
        assert options.use_cache is False
        assert json.loads(capsys.readouterr().out) == [found.to_dict()]

    def test_invalid_option_exits_2(self, monkeypatch, capsys) -> None:
        discover = MagicMock()
        monkeypatch.setattr(cli, "discover_clis", discover)
        assert cli.main(["discover", "--max-concurrent", "0"]) == 2
        discover.assert_not_called()
        assert "max_concurrent" in capsys.readouterr().err
