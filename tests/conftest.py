"""
textpipe test configuration.

Provides in-memory byte sources/sinks and a subprocess helper for CLI tests.
"""

import io
import os
import subprocess
import sys
from pathlib import Path

import pytest

from textpipe.Pipelines.parallel_pipeline import ParallelPipeline
from textpipe.Utils.bounded_buffer import BoundedBuffer

SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def run_cli(*args: str, input_bytes: bytes = b"") -> subprocess.CompletedProcess:
    """Run `python -m textpipe` as a subprocess, feeding input_bytes on stdin."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC_DIR), env.get("PYTHONPATH")) if p)
    return subprocess.run(
        [sys.executable, "-m", "textpipe", *args],
        input=input_bytes,
        capture_output=True,
        env=env,
        timeout=60,
    )


def run_bytes(data: bytes, queue_size: int = 8):
    """Run the threaded pipeline over data. Returns (output bytes, pipeline)."""
    sink = io.BytesIO()
    pipeline = ParallelPipeline(source=io.BytesIO(data), sink=sink, queue_size=queue_size)
    pipeline.start()
    finished = pipeline.wait_for_completion(timeout=30)
    assert finished, "pipeline threads did not finish"
    return sink.getvalue(), pipeline


def run_filter(filter_obj, data: bytes, capacity: int = 4096) -> bytes:
    """
    Run a single middle stage on one thread: pre-load data into a closed
    input buffer, let the stage drain it, and collect what it produced.
    """
    in_q = BoundedBuffer(capacity, name="in")
    out_q = BoundedBuffer(capacity, name="out")
    for ch in data:
        in_q.put(ch)
    in_q.close()
    filter_obj.process(in_q, out_q)
    assert out_q.closed
    return bytes(out_q)


class FailingSource(io.RawIOBase):
    """Yields data, then raises OSError instead of reporting end of stream."""

    def __init__(self, data: bytes):
        self._data = io.BytesIO(data)

    def readable(self):
        return True

    def read(self, n=-1):
        chunk = self._data.read(n)
        if not chunk:
            raise OSError("device went away")
        return chunk


class GuardedSource(io.RawIOBase):
    """
    Serves `allowed` followed by `forbidden`. Reading any byte of `forbidden`
    fails the test with AssertionError, which no stage catches.
    """

    def __init__(self, allowed: bytes, forbidden: bytes = b"must not be read\n"):
        self._data = io.BytesIO(allowed + forbidden)
        self._limit = len(allowed)

    def readable(self):
        return True

    def read(self, n=-1):
        pos = self._data.tell()
        chunk = self._data.read(n)
        assert pos + len(chunk) <= self._limit, f"read past byte {self._limit}"
        return chunk


class FailingSink(io.RawIOBase):
    """Accepts `good_writes` writes, then raises OSError on every write."""

    def __init__(self, good_writes: int = 0):
        self.good_writes = good_writes
        self.buf = bytearray()
        self.calls = 0

    def writable(self):
        return True

    def write(self, b):
        self.calls += 1
        if self.calls > self.good_writes:
            raise OSError("broken pipe")
        self.buf += b
        return len(b)


@pytest.fixture(params=[1, 2, 8, 256])
def queue_size(request) -> int:
    """Buffer capacities worth covering: the minimum, tiny, default and roomy."""
    return request.param
