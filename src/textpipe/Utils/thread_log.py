import sys
import threading

# stdout carries pipeline output, so every diagnostic goes to stderr.

def log_start(stage_name, enabled=True):
    if not enabled:
        return
    thread_name = threading.current_thread().name
    print(f"[{thread_name}][{stage_name}] START", file=sys.stderr, flush=True)

def log_end(stage_name, status="done", enabled=True, detail=""):
    if not enabled:
        return
    thread_name = threading.current_thread().name
    suffix = f" {detail}" if detail else ""
    print(f"[{thread_name}][{stage_name}] {status.upper()}{suffix}", file=sys.stderr, flush=True)

def log_pipeline(message):
    print(f"[Pipeline] {message}", file=sys.stderr, flush=True)
