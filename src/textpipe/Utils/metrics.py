import threading
from typing import List, Dict, Any

class MetricsCollector:
    """
    Thread-safe per-stage metrics: bytes consumed/produced, errors, run time.
    Workers call record_run once their stage returns and record_error on failure.
    """
    def __init__(self, num_stages: int):
        self._lock = threading.Lock()
        self._num_stages = max(0, int(num_stages))
        self._consumed = [0] * self._num_stages
        self._produced = [0] * self._num_stages
        self._errors = [0] * self._num_stages
        self._elapsed = [0.0] * self._num_stages

    def record_run(self, stage_idx: int, consumed: int, produced: int, elapsed: float):
        if stage_idx < 0 or stage_idx >= self._num_stages:
            return
        with self._lock:
            self._consumed[stage_idx] += int(consumed)
            self._produced[stage_idx] += int(produced)
            self._elapsed[stage_idx] += float(elapsed)

    def record_error(self, stage_idx: int):
        if stage_idx < 0 or stage_idx >= self._num_stages:
            return
        with self._lock:
            self._errors[stage_idx] += 1

    def total_errors(self) -> int:
        with self._lock:
            return sum(self._errors)

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            out = []
            for i in range(self._num_stages):
                out.append({
                    "stage": i,
                    "consumed": self._consumed[i],
                    "produced": self._produced[i],
                    "errors": self._errors[i],
                    "elapsed": self._elapsed[i],
                })
            return out
