import sys
import time
import threading
import traceback
from typing import BinaryIO, List, Optional, Tuple

from textpipe.Filters.input_filter import InputFilter
from textpipe.Filters.line_separator import LineSeparatorFilter
from textpipe.Filters.plus_collapse import PlusCollapseFilter
from textpipe.Filters.output_filter import OutputFilter

from textpipe.Utils.bounded_buffer import BoundedBuffer
from textpipe.Utils.constants import DEFAULT_QUEUE_SIZE
from textpipe.Utils.metrics import MetricsCollector
from textpipe.Utils.thread_log import log_start, log_end, log_pipeline


class ParallelPipeline:
    """
    input -> A -> line_separator -> B -> plus_collapse -> C -> output

    One thread per stage. The only way the pipeline ends is the close chain:
    the input stage closes A, and every later stage closes its output buffer
    once its input buffer is closed and drained.
    """
    def __init__(self, source: Optional[BinaryIO] = None, sink: Optional[BinaryIO] = None, queue_size: int = DEFAULT_QUEUE_SIZE, verbose: bool = False):
        self.queue_size = int(queue_size)
        self.verbose = bool(verbose)

        # BoundedBuffer rejects queue_size < 1
        self.queues = [BoundedBuffer(self.queue_size, name=n) for n in ("A", "B", "C")]

        # (filter, in_q, out_q)
        self.stages: List[Tuple[object, Optional[BoundedBuffer], Optional[BoundedBuffer]]] = [
            (InputFilter(source), None, self.queues[0]),
            (LineSeparatorFilter(), self.queues[0], self.queues[1]),
            (PlusCollapseFilter(), self.queues[1], self.queues[2]),
            (OutputFilter(sink), self.queues[2], None),
        ]
        self.num_stages = len(self.stages)
        self.metrics = MetricsCollector(self.num_stages)
        self.threads: List[threading.Thread] = []

    @staticmethod
    def _drain(in_q: BoundedBuffer):
        # keep the upstream producer from blocking on a full buffer forever
        for _ in in_q:
            pass

    def _stage_worker(self, stage_idx: int, filter_obj, in_q: Optional[BoundedBuffer], out_q: Optional[BoundedBuffer]):
        log_start(filter_obj.stage_name, enabled=self.verbose)
        start = time.time()
        try:
            filter_obj.process(in_q, out_q)
        except Exception as e:
            self.metrics.record_error(stage_idx)
            trace = traceback.format_exc()
            print(f"[Stage {stage_idx}] {filter_obj.stage_name} failed: {e}\n{trace}", file=sys.stderr, flush=True)
            if out_q is not None:
                out_q.close()
            if in_q is not None:
                self._drain(in_q)
            log_end(filter_obj.stage_name, status="error", enabled=self.verbose)
        else:
            log_end(filter_obj.stage_name, enabled=self.verbose,
                    detail=f"consumed={filter_obj.consumed} produced={filter_obj.produced}")
        finally:
            self.metrics.record_run(stage_idx, filter_obj.consumed, filter_obj.produced, time.time() - start)

    def start(self):
        for stage_idx, (filter_obj, in_q, out_q) in enumerate(self.stages):
            thread_name = f"Thread-{stage_idx}-{filter_obj.stage_name}"
            t = threading.Thread(target=self._stage_worker, args=(stage_idx, filter_obj, in_q, out_q), name=thread_name, daemon=True)
            self.threads.append(t)
        # all workers begin together; none of them touches a buffer before start()
        for t in self.threads:
            t.start()
        if self.verbose:
            for stage_idx, (filter_obj, _, _) in enumerate(self.stages):
                log_pipeline(f"Started stage {stage_idx} ({filter_obj.__class__.__name__})")

    def wait_for_completion(self, timeout: Optional[float] = None) -> bool:
        """
        Join every stage thread. With a timeout, returns False if some thread
        is still running when it expires; the pipeline itself is never interrupted.
        """
        deadline = None if timeout is None else time.time() + timeout
        for t in self.threads:
            if deadline is None:
                t.join()
            else:
                t.join(max(0.0, deadline - time.time()))
        return not any(t.is_alive() for t in self.threads)

    @property
    def failed(self) -> bool:
        return self.metrics.total_errors() > 0

    def run(self) -> bool:
        """Start all stages, wait for the close chain to finish. True if no stage failed."""
        start_time = time.time()
        self.start()
        self.wait_for_completion()
        if self.verbose:
            log_pipeline(f"Completed all stages in {time.time() - start_time:.4f}s")
        return not self.failed

    def print_metrics(self):
        snap = self.metrics.snapshot()
        lines = []
        for entry in snap:
            idx = entry["stage"]
            name = self.stages[idx][0].stage_name
            out_q = self.stages[idx][2]
            queue = f"{out_q.qsize()}/{out_q.capacity}" if out_q is not None else "-"
            lines.append(f"Stage {idx+1} ({name}): consumed={entry['consumed']}, produced={entry['produced']}, "
                         f"errors={entry['errors']}, elapsed={entry['elapsed']:.4f}s, queue={queue}")
        print("\n".join(lines), file=sys.stderr, flush=True)


def run_pipeline(source: Optional[BinaryIO] = None, sink: Optional[BinaryIO] = None, queue_size: int = DEFAULT_QUEUE_SIZE, verbose: bool = False, metrics: bool = False) -> int:
    """Run the pipeline to completion and return a process exit code."""
    pipeline = ParallelPipeline(source=source, sink=sink, queue_size=queue_size, verbose=verbose)
    ok = pipeline.run()
    if metrics:
        pipeline.print_metrics()
    return 0 if ok else 1
