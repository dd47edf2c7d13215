"""
Queue processor for debounced checkbox triggers.
Each click waits out the configured delay, then runs a cycle in FIFO order.
"""

import time
import uuid
import logging
import threading
from datetime import datetime
from queue import Empty
from typing import Dict, Optional

from config import log_event
from models import QueueItem
from state import PROCESSING_QUEUE, PROCESSING_LOCK, PROCESSING_RESULTS

MAX_RESULTS = 100

# Background worker thread
_worker_thread: Optional[threading.Thread] = None
_worker_running = False


def enqueue_checkbox_trigger(note: str, line: int, delay_ms: int) -> str:
    """
    Add a checkbox trigger to the queue.
    Returns a request_id that can be used to check the result.
    """
    request_id = str(uuid.uuid4())[:8]
    queued_at = datetime.now().isoformat()

    item = QueueItem(
        request_id=request_id,
        note=note,
        line=line,
        due_at=time.monotonic() + max(delay_ms, 0) / 1000.0,
        queued_at=queued_at,
    )

    # Initialize result slot
    with PROCESSING_LOCK:
        PROCESSING_RESULTS[request_id] = {
            "status": "queued",
            "queued_at": queued_at,
            "note": note,
            "line": line,
        }

    PROCESSING_QUEUE.put(item)
    log_event(logging.INFO, "queue_enqueue",
              request_id=request_id,
              note=note,
              line=line,
              delay_ms=delay_ms,
              queue_size=PROCESSING_QUEUE.qsize())

    return request_id


def get_result(request_id: str) -> Optional[Dict]:
    """Get the result for a request ID."""
    with PROCESSING_LOCK:
        return PROCESSING_RESULTS.get(request_id)


def _update_result(request_id: str, **fields):
    with PROCESSING_LOCK:
        if request_id in PROCESSING_RESULTS:
            PROCESSING_RESULTS[request_id].update(fields)


def _trim_results():
    # Keep only the most recent results
    with PROCESSING_LOCK:
        if len(PROCESSING_RESULTS) > MAX_RESULTS:
            sorted_keys = sorted(
                PROCESSING_RESULTS.keys(),
                key=lambda k: PROCESSING_RESULTS[k].get("queued_at", "")
            )
            for key in sorted_keys[:-MAX_RESULTS]:
                del PROCESSING_RESULTS[key]


def process_item(item: QueueItem) -> Dict:
    """Wait until the trigger is due, then run the checkbox cycle."""
    # Import here to avoid circular imports
    from services.processing import handle_checkbox_click

    remaining = item.due_at - time.monotonic()
    if remaining > 0:
        time.sleep(remaining)

    _update_result(item.request_id, status="processing", started_at=datetime.now().isoformat())
    log_event(logging.INFO, "queue_process_start",
              request_id=item.request_id,
              note=item.note,
              queue_remaining=PROCESSING_QUEUE.qsize())

    try:
        result = handle_checkbox_click(item.note, item.line)
    except Exception as e:
        log_event(logging.ERROR, "queue_process_error", request_id=item.request_id, error=str(e))
        _update_result(item.request_id,
                       status="error",
                       error=str(e),
                       completed_at=datetime.now().isoformat())
        return {"status": "error", "message": str(e)}
    finally:
        _trim_results()

    _update_result(item.request_id,
                   status="completed",
                   completed_at=datetime.now().isoformat(),
                   result=result)
    log_event(logging.INFO, "queue_process_complete",
              request_id=item.request_id,
              note=item.note,
              status=result.get("status"))
    return result


def _process_queue():
    """Background worker that processes queue items in FIFO order."""
    log_event(logging.INFO, "queue_worker_started")

    while _worker_running:
        try:
            # Block for up to 1 second waiting for items
            item = PROCESSING_QUEUE.get(timeout=1.0)
        except Empty:
            continue

        try:
            process_item(item)
        finally:
            PROCESSING_QUEUE.task_done()

    log_event(logging.INFO, "queue_worker_stopped")


def start_queue_worker():
    """Start the background queue processing worker."""
    global _worker_thread, _worker_running

    if _worker_thread is not None and _worker_thread.is_alive():
        log_event(logging.WARNING, "queue_worker_already_running")
        return

    _worker_running = True
    _worker_thread = threading.Thread(target=_process_queue, daemon=True)
    _worker_thread.start()
    log_event(logging.INFO, "queue_worker_thread_started")


def stop_queue_worker():
    """Stop the background queue processing worker."""
    global _worker_running
    _worker_running = False
    if _worker_thread is not None:
        _worker_thread.join(timeout=5.0)
    log_event(logging.INFO, "queue_worker_thread_stopped")
