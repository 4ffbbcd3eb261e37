"""
textpipe CLI tests.

Black-box subprocess tests: stdin in, stdout/stderr and exit code out.
"""

import os
import subprocess
import sys

import pytest

from tests.conftest import SRC_DIR, run_cli


class TestHelpText:

    def test_help(self):
        result = run_cli("--help")
        assert result.returncode == 0
        out = result.stdout.decode()
        assert "--queue-size" in out
        assert "--metrics" in out


class TestRun:

    def test_sentinel_only_exits_cleanly(self):
        result = run_cli(input_bytes=b"STOP\n")
        assert result.returncode == 0
        assert result.stdout == b""

    def test_writes_80_character_blocks(self):
        data = b"x" * 40 + b"\n" + b"y" * 40 + b"\nSTOP\n"
        result = run_cli(input_bytes=data)
        assert result.returncode == 0
        assert result.stdout == b"x" * 40 + b" " + b"y" * 39 + b"\n"

    def test_plus_pairs_collapse(self):
        result = run_cli("--queue-size", "1", input_bytes=b"++" * 90 + b"\nSTOP\n")
        assert result.returncode == 0
        assert result.stdout == b"^" * 80 + b"\n"

    def test_closed_stdin_without_sentinel(self):
        result = run_cli(input_bytes=b"a" * 100)
        assert result.returncode == 0
        assert result.stdout == b"a" * 80 + b"\n"

    def test_metrics_go_to_stderr(self):
        result = run_cli("--metrics", input_bytes=b"abc\nSTOP\n")
        assert result.returncode == 0
        assert result.stdout == b""
        assert b"Stage 4 (output)" in result.stderr

    def test_monolith_matches(self):
        data = (b"a+b++c+++d\n" * 30) + b"STOP\n"
        threaded = run_cli(input_bytes=data)
        single = run_cli("--monolith", input_bytes=data)
        assert threaded.returncode == single.returncode == 0
        assert threaded.stdout == single.stdout
        assert threaded.stdout


class TestOpenStdin:
    """stdin stays open after the sentinel line; the process must still exit."""

    @pytest.mark.parametrize("args", [(), ("--monolith",)])
    def test_exits_after_sentinel(self, args):
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC_DIR), env.get("PYTHONPATH")) if p)
        proc = subprocess.Popen(
            [sys.executable, "-m", "textpipe", *args],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
        )
        try:
            proc.stdin.write(b"a" * 80 + b"\nSTOP\n")
            proc.stdin.flush()
            # output is far below the pipe buffer size, so waiting first cannot block the child
            assert proc.wait(timeout=30) == 0
            out = proc.stdout.read()
        finally:
            if proc.poll() is None:
                proc.kill()
            proc.stdin.close()
            proc.stdout.close()
            proc.stderr.close()
        assert out == b"a" * 80 + b"\n"


class TestBadArguments:

    def test_zero_queue_size_rejected(self):
        result = run_cli("--queue-size", "0", input_bytes=b"STOP\n")
        assert result.returncode == 2
        assert b"queue size must be >= 1" in result.stderr

    def test_unknown_flag_rejected(self):
        result = run_cli("--nope")
        assert result.returncode == 2
