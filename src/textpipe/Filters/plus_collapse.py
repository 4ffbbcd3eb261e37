from textpipe.Utils.bounded_buffer import BoundedBuffer
from textpipe.Utils.constants import CARET, PLUS

NORMAL = "NORMAL"
SEEN_PLUS = "SEEN_PLUS"


class PlusCollapseFilter:
    """
    Collapse each pair of adjacent '+' bytes into a single '^'.

    The stage never looks ahead in its input buffer. Instead it holds back one
    '+' (state SEEN_PLUS) until the next byte decides what it becomes:

        NORMAL    '+'    -> SEEN_PLUS
        NORMAL    other  -> emit other
        SEEN_PLUS '+'    -> emit '^', NORMAL
        SEEN_PLUS other  -> emit '+', emit other, NORMAL
        SEEN_PLUS EOS    -> emit '+', then close

    So "+++" becomes "^+" and "++++" becomes "^^"; an emitted '^' never pairs
    with a later '+'.
    """
    def __init__(self):
        self.stage_name = "plus_collapse"
        self.state = NORMAL
        self.consumed = 0
        self.produced = 0

    def _emit(self, out_q: BoundedBuffer, ch: int):
        out_q.put(ch)
        self.produced += 1

    def process(self, in_q: BoundedBuffer, out_q: BoundedBuffer):
        self.state = NORMAL
        self.consumed = 0
        self.produced = 0
        while True:
            ch, ok = in_q.get()
            if not ok:
                if self.state == SEEN_PLUS:
                    self._emit(out_q, PLUS)
                    self.state = NORMAL
                out_q.close()
                break
            self.consumed += 1
            if self.state == NORMAL:
                if ch == PLUS:
                    self.state = SEEN_PLUS
                else:
                    self._emit(out_q, ch)
            else:
                if ch == PLUS:
                    self._emit(out_q, CARET)
                else:
                    self._emit(out_q, PLUS)
                    self._emit(out_q, ch)
                self.state = NORMAL
