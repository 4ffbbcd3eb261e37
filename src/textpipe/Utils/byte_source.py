# src/textpipe/Utils/byte_source.py
# Wraps a binary stream (stdin by default) and hands out one byte at a time.
# read errors surface as SourceReadFailure; a clean end of stream as None.

import sys
from typing import BinaryIO, Iterator, Optional

from textpipe.Utils.errors import SourceReadFailure


class ByteSource:
    """
    Read-one-byte view over a binary stream.
    read() returns an int in 0..255, or None once the stream is exhausted.
    """
    def __init__(self, stream: Optional[BinaryIO] = None):
        self.stream = stream if stream is not None else sys.stdin.buffer
        self._eof = False

    @property
    def at_eof(self) -> bool:
        return self._eof

    def read(self) -> Optional[int]:
        if self._eof:
            return None
        try:
            data = self.stream.read(1)
        except (OSError, ValueError) as e:
            # ValueError: read on a closed file
            self._eof = True
            raise SourceReadFailure(f"cannot read from byte source: {e}", stage="input") from e
        if not data:
            self._eof = True
            return None
        return data[0]

    def __iter__(self) -> Iterator[int]:
        while True:
            ch = self.read()
            if ch is None:
                return
            yield ch
