# src/textpipe/Filters/input_filter.py
# Reads the byte source line by line and pushes every byte of each line into
# the first buffer. The line "STOP\n" is swallowed and closes the buffer.

from typing import BinaryIO, Optional, Union

from textpipe.Utils.bounded_buffer import BoundedBuffer
from textpipe.Utils.byte_source import ByteSource
from textpipe.Utils.constants import NEWLINE, STOP_LINE
from textpipe.Utils.errors import SourceReadFailure


class InputFilter:
    """
    Source stage. Accumulates a line until its terminator arrives, then either
    forwards it (terminator included) or, if it is the sentinel, stops reading.
    End of stream before the sentinel flushes the partial line first.
    Either way the output buffer is closed on exit.
    """
    def __init__(self, source: Union[ByteSource, BinaryIO, None] = None):
        if not isinstance(source, ByteSource):
            source = ByteSource(source)
        self.source = source
        self.stage_name = "input"
        self.consumed = 0
        self.produced = 0
        self.saw_sentinel = False

    def _flush(self, line: bytearray, output_queue: BoundedBuffer):
        for ch in line:
            output_queue.put(ch)
            self.produced += 1
        line.clear()

    def process(self, input_queue: Optional[BoundedBuffer], output_queue: BoundedBuffer):
        # input_queue is unused: this stage is fed by the byte source
        self.consumed = 0
        self.produced = 0
        line = bytearray()
        try:
            for ch in self.source:
                self.consumed += 1
                line.append(ch)
                if ch != NEWLINE:
                    continue
                if line[:-1] == STOP_LINE:
                    line.clear()
                    self.saw_sentinel = True
                    return
                self._flush(line, output_queue)
            self._flush(line, output_queue)
        except SourceReadFailure:
            # a failing source counts as end of input
            self._flush(line, output_queue)
            raise
        finally:
            output_queue.close()
