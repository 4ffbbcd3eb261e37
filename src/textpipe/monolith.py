# file: monolith.py

import sys
import time
from typing import BinaryIO, Optional, Union

from textpipe.Utils.byte_source import ByteSource
from textpipe.Utils.constants import CARET, LINE_WIDTH, NEWLINE, PLUS, SPACE, STOP_LINE
from textpipe.Utils.errors import SinkWriteFailure, SourceReadFailure


def _separate_and_collapse(data) -> bytearray:
    # 2. LINE SEPARATOR
    spaced = bytes(SPACE if ch == NEWLINE else ch for ch in data)

    # 3. PLUS COLLAPSE
    collapsed = bytearray()
    pending_plus = False
    for ch in spaced:
        if pending_plus:
            if ch == PLUS:
                collapsed.append(CARET)
            else:
                collapsed.append(PLUS)
                collapsed.append(ch)
            pending_plus = False
        elif ch == PLUS:
            pending_plus = True
        else:
            collapsed.append(ch)
    if pending_plus:
        collapsed.append(PLUS)
    return collapsed


def process_monolith(data: bytes) -> bytes:
    """Apply all four transformations in a single pass, no threads and no buffers."""

    # 1. INPUT: keep every line up to the sentinel, terminators included
    kept = bytearray()
    line = bytearray()
    for ch in data:
        line.append(ch)
        if ch != NEWLINE:
            continue
        if line[:-1] == STOP_LINE:
            line.clear()
            break
        kept += line
        line.clear()
    kept += line  # partial last line when there is no sentinel

    collapsed = _separate_and_collapse(kept)

    # 4. OUTPUT: full blocks only
    out = bytearray()
    n_full = len(collapsed) // LINE_WIDTH
    for i in range(n_full):
        out += collapsed[i * LINE_WIDTH:(i + 1) * LINE_WIDTH]
        out.append(NEWLINE)
    return bytes(out)


def _write_blocks(sink: BinaryIO, pending: bytearray) -> int:
    written = 0
    while len(pending) >= LINE_WIDTH:
        try:
            sink.write(bytes(pending[:LINE_WIDTH]) + bytes([NEWLINE]))
            sink.flush()
        except (OSError, ValueError) as e:
            raise SinkWriteFailure(f"cannot write to byte sink: {e}", stage="monolith") from e
        del pending[:LINE_WIDTH]
        written += 1
    return written


def run_monolith(source: Union[ByteSource, BinaryIO, None] = None, sink: Optional[BinaryIO] = None) -> int:
    """
    Stream source to sink one line at a time, stopping at the sentinel line
    without reading past it. Returns 0, or 1 if the source or sink failed.

    Every forwarded line ends in a space after separation, so a '+' pair never
    spans two lines and each line can be collapsed on its own.
    """
    if not isinstance(source, ByteSource):
        source = ByteSource(source)
    sink = sink if sink is not None else sys.stdout.buffer

    start_time = time.time()
    pending = bytearray()
    line = bytearray()
    blocks = 0
    code = 0
    try:
        try:
            for ch in source:
                line.append(ch)
                if ch != NEWLINE:
                    continue
                if line[:-1] == STOP_LINE:
                    line.clear()
                    break
                pending += _separate_and_collapse(line)
                line.clear()
                blocks += _write_blocks(sink, pending)
        except SourceReadFailure as e:
            # a failing source counts as end of input
            print(f"[Monolith] {e}", file=sys.stderr)
            code = 1
        pending += _separate_and_collapse(line)
        blocks += _write_blocks(sink, pending)
    except SinkWriteFailure as e:
        print(f"[Monolith] {e}", file=sys.stderr)
        return 1
    duration = time.time() - start_time

    print(f"[Monolith] Wrote {blocks} block(s) in {duration:.4f}s", file=sys.stderr)
    return code


if __name__ == "__main__":
    sys.exit(run_monolith())
