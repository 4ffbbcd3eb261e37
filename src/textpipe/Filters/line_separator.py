from textpipe.Utils.bounded_buffer import BoundedBuffer
from textpipe.Utils.constants import NEWLINE, SPACE


class LineSeparatorFilter:
    """Replace every line terminator with a single space. One byte in, one byte out."""
    def __init__(self):
        self.stage_name = "line_separator"
        self.consumed = 0
        self.produced = 0

    def process(self, in_q: BoundedBuffer, out_q: BoundedBuffer):
        self.consumed = 0
        self.produced = 0
        while True:
            ch, ok = in_q.get()
            if not ok:
                out_q.close()
                break
            self.consumed += 1
            out_q.put(SPACE if ch == NEWLINE else ch)
            self.produced += 1
