import sys
import argparse

from textpipe.Pipelines.parallel_pipeline import run_pipeline
from textpipe.Utils.constants import DEFAULT_QUEUE_SIZE


def _queue_size(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid queue size: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"queue size must be >= 1, got {n}")
    return n


def create_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="textpipe",
        description="Read lines from stdin until STOP, write 80-character blocks to stdout.",
    )
    p.add_argument("--queue-size", type=_queue_size, default=DEFAULT_QUEUE_SIZE, help="Capacity of each buffer between stages")
    p.add_argument("--verbose", action="store_true", help="Log stage start/finish to stderr")
    p.add_argument("--metrics", action="store_true", help="Print per-stage metrics to stderr at exit")
    p.add_argument("--monolith", action="store_true", help="Run the single-threaded version instead")
    return p


def main(argv=None) -> int:
    args = create_parser().parse_args(argv)

    if args.monolith:
        from textpipe.monolith import run_monolith
        return run_monolith()

    try:
        return run_pipeline(queue_size=args.queue_size, verbose=args.verbose, metrics=args.metrics)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
