import sys
from typing import BinaryIO, Optional

import numpy as np

from textpipe.Utils.bounded_buffer import BoundedBuffer
from textpipe.Utils.constants import LINE_WIDTH, NEWLINE
from textpipe.Utils.errors import SinkWriteFailure


class OutputFilter:
    """
    Sink stage. Packs bytes into blocks of exactly LINE_WIDTH and writes each
    block followed by a newline. A residual shorter than LINE_WIDTH at end of
    stream is dropped.

    If the sink fails, writing stops but the input buffer is still drained to
    end of stream so upstream stages can finish; SinkWriteFailure is raised
    after that.
    """
    def __init__(self, sink: Optional[BinaryIO] = None, line_width: int = LINE_WIDTH):
        self.sink = sink if sink is not None else sys.stdout.buffer
        self.line_width = int(line_width)
        self.stage_name = "output"
        self.consumed = 0
        self.produced = 0
        self.blocks_written = 0
        self.discarded = 0
        self._block = np.zeros(self.line_width, dtype=np.uint8)
        self._fill = 0
        self._write_error = None

    def _write_block(self):
        data = self._block.tobytes() + bytes([NEWLINE])
        try:
            self.sink.write(data)
            self.sink.flush()
        except (OSError, ValueError) as e:
            self._write_error = e
            self.discarded += self.line_width
            return
        self.produced += len(data)
        self.blocks_written += 1

    def process(self, in_q: BoundedBuffer, out_q: Optional[BoundedBuffer] = None):
        # out_q is unused: this stage writes to the sink
        self.consumed = 0
        self.produced = 0
        self.blocks_written = 0
        self.discarded = 0
        self._fill = 0
        self._write_error = None
        while True:
            ch, ok = in_q.get()
            if not ok:
                break
            self.consumed += 1
            if self._write_error is not None:
                self.discarded += 1
                continue
            self._block[self._fill] = ch
            self._fill += 1
            if self._fill == self.line_width:
                self._write_block()
                self._fill = 0
        self.discarded += self._fill
        self._fill = 0
        if self._write_error is not None:
            raise SinkWriteFailure(f"cannot write to byte sink: {self._write_error}", stage=self.stage_name) from self._write_error
