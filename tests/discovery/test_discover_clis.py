import json
import os
from unittest.mock import MagicMock, patch

import pytest

from helpscope.discovery import (
    DiscoveryCache,
    DiscoveryOptions,
    discover_clis,
    register_cli,
)
from helpscope.discovery.cache import hash_search_path
from helpscope.discovery.orchestrator import perform_discovery, probe_help_support

RICH_HELP = "USAGE: tool [options]\n\nOPTIONS:\n" + "  --flag   does a thing\n" * 30


def _make(directory, name):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def bin_dir(tmp_path):
    directory = tmp_path / "local" / "bin"
    for name in ("alpha", "bravo", "charlie"):
        _make(directory, name)
    return directory


def _options(**overrides) -> DiscoveryOptions:
    values = {"use_cache": False, "max_concurrent": 4, "timeout": 1.0, "min_score": 0, "limit": 100}
    values.update(overrides)
    return DiscoveryOptions(**values)


class TestDiscoveryOptions:
    def test_defaults_come_from_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("HELPSCOPE_DISCOVERY_TIMEOUT", "3.5")
        monkeypatch.setenv("HELPSCOPE_DISCOVERY_LIMIT", "7")
        options = DiscoveryOptions()
        assert options.timeout == 3.5
        assert options.limit == 7
        assert options.max_concurrent == 8
        assert options.cache_ttl == 86400.0
        assert options.use_cache is True

    @pytest.mark.parametrize(
        "field,value",
        [("max_concurrent", 0), ("timeout", 0), ("limit", -1), ("cache_ttl", 0)],
    )
    def test_rejects_invalid_values(self, field, value) -> None:
        with pytest.raises(ValueError):
            DiscoveryOptions(**{field: value})


class TestDiscoverClis:
    def test_noise_is_never_probed(self, tmp_path) -> None:
        directory = tmp_path / "bin"
        for name in ("a", "libfoo.so", "archive-2.3.4", "goodtool"):
            _make(directory, name)
        probe = MagicMock(return_value=RICH_HELP)

        result = discover_clis(_options(), search_path=str(directory), probe=probe)

        probed = [call.args[0] for call in probe.call_args_list]
        assert probed == [str(directory / "goodtool")]
        assert [cli.name for cli in result] == ["goodtool"]

    def test_probe_receives_timeout(self, bin_dir) -> None:
        probe = MagicMock(return_value=None)
        discover_clis(_options(timeout=0.5), search_path=str(bin_dir), probe=probe)
        assert {call.args[1] for call in probe.call_args_list} == {0.5}

    def test_ranks_by_score(self, bin_dir) -> None:
        outputs = {
            str(bin_dir / "alpha"): None,
            str(bin_dir / "bravo"): RICH_HELP,
            str(bin_dir / "charlie"): "usage: charlie -x",
        }
        result = discover_clis(
            _options(), search_path=str(bin_dir), probe=lambda path, timeout: outputs[path]
        )
        assert [cli.name for cli in result] == ["bravo", "charlie", "alpha"]
        assert [cli.score for cli in result] == [25, 21, 7]
        assert result[0].help_quality == "rich"
        assert not result[2].has_help

    def test_min_score_and_limit(self, bin_dir) -> None:
        probe = MagicMock(side_effect=lambda path, timeout: RICH_HELP if path.endswith("bravo") else None)
        result = discover_clis(_options(min_score=10), search_path=str(bin_dir), probe=probe)
        assert [cli.name for cli in result] == ["bravo"]

        result = discover_clis(_options(limit=2), search_path=str(bin_dir), probe=probe)
        assert len(result) == 2

    def test_identical_inputs_give_identical_results(self, bin_dir) -> None:
        probe = MagicMock(return_value="usage: x --flag")
        first = discover_clis(_options(max_concurrent=2), search_path=str(bin_dir), probe=probe)
        second = discover_clis(_options(max_concurrent=2), search_path=str(bin_dir), probe=probe)
        assert first == second
        assert [cli.name for cli in first] == ["alpha", "bravo", "charlie"]

    def test_progress_reported_per_batch(self, bin_dir) -> None:
        progress = []
        discover_clis(
            _options(max_concurrent=2),
            search_path=str(bin_dir),
            probe=MagicMock(return_value=None),
            on_progress=lambda done, total: progress.append((done, total)),
        )
        assert progress == [(2, 3), (3, 3)]

    def test_empty_search_path(self) -> None:
        probe = MagicMock()
        assert discover_clis(_options(), search_path="", probe=probe) == []
        probe.assert_not_called()


class TestDiscoveryCaching:
    def test_fresh_cache_skips_probing(self, bin_dir, tmp_path) -> None:
        cache = DiscoveryCache(tmp_path / "cache.json")
        probe = MagicMock(return_value=RICH_HELP)
        options = _options(use_cache=True)

        first = discover_clis(options, search_path=str(bin_dir), probe=probe, cache=cache)
        assert probe.call_count == 3

        second = discover_clis(options, search_path=str(bin_dir), probe=probe, cache=cache)
        assert probe.call_count == 3
        assert second == first

    def test_expired_cache_rediscovers(self, bin_dir, tmp_path) -> None:
        now = [1000.0]
        cache = DiscoveryCache(tmp_path / "cache.json", clock=lambda: now[0])
        probe = MagicMock(return_value=None)
        options = _options(use_cache=True, cache_ttl=60)

        discover_clis(options, search_path=str(bin_dir), probe=probe, cache=cache)
        now[0] += 61
        discover_clis(options, search_path=str(bin_dir), probe=probe, cache=cache)
        assert probe.call_count == 6

    def test_other_search_path_misses(self, bin_dir, tmp_path) -> None:
        cache = DiscoveryCache(tmp_path / "cache.json")
        probe = MagicMock(return_value=None)
        options = _options(use_cache=True)
        other = tmp_path / "other"
        _make(other, "delta")

        discover_clis(options, search_path=str(bin_dir), probe=probe, cache=cache)
        result = discover_clis(options, search_path=str(other), probe=probe, cache=cache)
        assert [cli.name for cli in result] == ["delta"]
        assert probe.call_count == 4

    def test_malformed_cache_is_overwritten(self, bin_dir, tmp_path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("garbage")
        cache = DiscoveryCache(path)

        result = discover_clis(
            _options(use_cache=True), search_path=str(bin_dir), probe=MagicMock(return_value=None), cache=cache
        )
        assert len(result) == 3
        assert json.loads(path.read_text())["path_hash"] == hash_search_path(str(bin_dir))

    def test_non_utf8_cache_is_overwritten(self, bin_dir, tmp_path) -> None:
        path = tmp_path / "cache.json"
        path.write_bytes(b"\xff\xfe{garbage")
        probe = MagicMock(return_value=None)

        result = discover_clis(
            _options(use_cache=True), search_path=str(bin_dir), probe=probe, cache=DiscoveryCache(path)
        )
        assert len(result) == 3
        assert probe.call_count == 3
        assert json.loads(path.read_text())["path_hash"] == hash_search_path(str(bin_dir))

    def test_full_set_is_persisted_before_limiting(self, bin_dir, tmp_path) -> None:
        path = tmp_path / "cache.json"
        cache = DiscoveryCache(path)
        result = discover_clis(
            _options(use_cache=True, limit=1),
            search_path=str(bin_dir),
            probe=MagicMock(return_value=None),
            cache=cache,
        )
        assert len(result) == 1
        assert len(json.loads(path.read_text())["clis"]) == 3

    def test_default_cache_lives_under_home_dir(self, bin_dir, isolated_home) -> None:
        discover_clis(
            _options(use_cache=True), search_path=str(bin_dir), probe=MagicMock(return_value=None)
        )
        assert (isolated_home / "cli-discovery-cache.json").exists()

    def test_use_cache_false_writes_nothing(self, bin_dir, isolated_home) -> None:
        discover_clis(_options(), search_path=str(bin_dir), probe=MagicMock(return_value=None))
        assert not (isolated_home / "cli-discovery-cache.json").exists()


class TestRegisterCli:
    def test_upserts_without_duplicates(self, bin_dir, tmp_path) -> None:
        cache = DiscoveryCache(tmp_path / "cache.json")
        discover_clis(
            _options(use_cache=True),
            search_path=str(bin_dir),
            probe=MagicMock(return_value=None),
            cache=cache,
        )

        cli = register_cli(
            "bravo", search_path=str(bin_dir), probe=MagicMock(return_value=RICH_HELP), cache=cache
        )
        assert cli.score == 25

        stored = cache.load().clis
        assert [r.name for r in stored] == ["bravo", "alpha", "charlie"]
        assert stored[0].help_quality == "rich"

    def test_register_into_empty_cache(self, bin_dir, tmp_path) -> None:
        cache = DiscoveryCache(tmp_path / "cache.json")
        register_cli("alpha", search_path=str(bin_dir), probe=MagicMock(return_value=None), cache=cache)
        assert [r.name for r in cache.load().clis] == ["alpha"]

    def test_unknown_name(self, bin_dir, tmp_path) -> None:
        cache = DiscoveryCache(tmp_path / "cache.json")
        probe = MagicMock()
        assert register_cli("nope", search_path=str(bin_dir), probe=probe, cache=cache) is None
        probe.assert_not_called()
        assert cache.load() is None


@pytest.mark.skipif(os.name == "nt", reason="needs a POSIX shell")
class TestProbeHelpSupport:
    def _write(self, tmp_path, body: str) -> str:
        path = _make(tmp_path / "scripts", "probe-target")
        path.write_text("#!/bin/sh\n" + body)
        return str(path)

    def test_returns_first_flag_with_enough_output(self, tmp_path) -> None:
        path = self._write(
            tmp_path,
            'if [ "$1" = "-h" ]; then echo "usage: probe-target [options]"; fi\n',
        )
        assert probe_help_support(path, 2.0).strip() == "usage: probe-target [options]"

    def test_short_output_is_not_help(self, tmp_path) -> None:
        path = self._write(tmp_path, 'echo "ok"\n')
        assert probe_help_support(path, 2.0) is None

    def test_hanging_program_times_out(self, tmp_path) -> None:
        path = self._write(tmp_path, "exec sleep 5\n")
        assert probe_help_support(path, 0.2) is None


class TestDefaultHelpProbe:
    def test_sandbox_setup_is_built_once_per_run(self, bin_dir) -> None:
        env = {"PATH": "/bin"}
        limits = MagicMock()
        with patch(
            "helpscope.discovery.orchestrator.build_sandbox_env", return_value=env
        ) as build_env, patch(
            "helpscope.discovery.orchestrator.build_limit_applier", return_value=limits
        ) as build_limits, patch(
            "helpscope.discovery.orchestrator.run_sandboxed", return_value=None
        ) as run:
            perform_discovery(_options(max_concurrent=2), str(bin_dir))

        build_env.assert_called_once_with()
        build_limits.assert_called_once()
        assert run.call_count == 9
        for call in run.call_args_list:
            assert call.kwargs["env"] is env
            assert call.kwargs["limits"] is limits


@pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell")
class TestConcurrentSandboxedDiscovery:
    def test_parallel_batches_with_limits_enabled(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("HELPSCOPE_PROBE_CPU_SECONDS", "5")
        directory = tmp_path / "local" / "bin"
        names = ["alpha", "bravo", "charlie", "delta", "echo-tool"]
        for name in names:
            path = _make(directory, name)
            path.write_text(f'#!/bin/sh\necho "usage: {name} [options] --flag"\n')

        result = perform_discovery(_options(max_concurrent=4, timeout=5.0), str(directory))

        assert sorted(cli.name for cli in result) == sorted(names)
        assert all(cli.has_help for cli in result)
