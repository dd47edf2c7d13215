"""
Application state management.
Per-note editor sessions, SSE clients, the processing latch and the trigger queue.
"""

from collections import defaultdict
from queue import Queue
from threading import Lock, RLock
from typing import Dict, List, Optional, Set

from models import EditorSession

# --- STATE CONTAINERS ---

# Editor state (cursor, scroll, view mode) per note
EDITOR_SESSIONS: Dict[str, EditorSession] = {}

# Note the commands run against when none is named
ACTIVE_NOTE: Dict[str, Optional[str]] = {"name": None}

# Connected SSE clients per note
CONNECTED_CLIENTS: Dict[str, List] = defaultdict(list)

# --- PROCESSING LATCH ---
# A single cycle may run at a time; released on a timer after completion
PROCESSING_LATCH: Dict[str, bool] = {"active": False}
LATCH_LOCK: Lock = Lock()

# Task keys recorded in the current cycle; self-clears shortly after
PROCESSED_TASK_KEYS: Set[str] = set()

# --- TRIGGER QUEUE ---
# FIFO queue of debounced checkbox triggers
PROCESSING_QUEUE: Queue = Queue()

# Lock for thread-safe access to results and sessions
PROCESSING_LOCK: Lock = Lock()

# Track trigger results by request ID
PROCESSING_RESULTS: Dict[str, Dict] = {}

# One writer per note file at a time
NOTE_LOCKS: Dict[str, RLock] = {}


def get_session(note: str) -> EditorSession:
    """Get or create the editor session for a note."""
    with PROCESSING_LOCK:
        session = EDITOR_SESSIONS.get(note)
        if session is None:
            session = EditorSession(note=note)
            EDITOR_SESSIONS[note] = session
        return session


def get_note_lock(note: str) -> RLock:
    """Get or create the lock guarding a note file's read-modify-write."""
    with PROCESSING_LOCK:
        lock = NOTE_LOCKS.get(note)
        if lock is None:
            lock = RLock()
            NOTE_LOCKS[note] = lock
        return lock
