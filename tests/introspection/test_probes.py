from helpscope.introspection.probes import build_probe_attempts, probe_timeout


class TestBuildProbeAttempts:
    def test_root_attempts(self) -> None:
        assert build_probe_attempts([]) == [
            ["--help"],
            ["-h"],
            ["help"],
            ["--help", "all"],
            ["--help", "full"],
            ["--long"],
        ]

    def test_path_attempts_include_fused_forms_and_are_capped(self) -> None:
        assert build_probe_attempts(["remote"]) == [
            ["remote", "--help"],
            ["remote", "-h"],
            ["remote", "help"],
            ["help", "remote"],
            ["remote", "--help", "all"],
            ["remote", "--help=all"],
        ]


class TestProbeTimeout:
    def test_grows_with_depth_and_caps(self) -> None:
        assert probe_timeout(0) == 5.0
        assert probe_timeout(1) == 6.0
        assert probe_timeout(3) == 8.0
        assert probe_timeout(10) == 8.0
