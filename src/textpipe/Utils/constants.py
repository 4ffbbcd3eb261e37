# Byte-level protocol constants shared by every stage. All values are ints
# (0..255) or bytes so stages never mix str and bytes.

NEWLINE = ord("\n")
SPACE = ord(" ")
PLUS = ord("+")
CARET = ord("^")

# Input line (without its terminator) that ends the pipeline; compared exactly.
STOP_LINE = b"STOP"

# Width of every block the output stage writes.
LINE_WIDTH = 80

DEFAULT_QUEUE_SIZE = 8

# Buffer contract:
# get() -> (byte, True) while data remains
#       -> (END_OF_STREAM, False) once closed and drained
END_OF_STREAM = 0
