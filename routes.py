"""
Flask routes for the task archiver API.
"""

import json
import queue
import logging
from dataclasses import asdict

from flask import Blueprint, Response, request, jsonify, stream_with_context

from config import (
    log_event,
    merge_settings,
    resolve_note_name,
    save_settings,
    get_note_path,
    get_notes_dir,
)
from models import Cursor, ScrollInfo
from state import CONNECTED_CLIENTS, get_note_lock, get_session
from services.archive import find_section_range
from services.markdown import (
    ensure_note_file,
    has_automove_enabled,
    list_notes,
    note_exists,
    read_note_file,
    write_note_file,
)
from services.processing import (
    broadcast_event,
    clear_current_note_section,
    current_settings,
    is_processing,
    process_current_note,
    resolve_active_note,
    set_active_note,
    toggle_checkbox,
    update_settings,
)
from services.queue_processor import enqueue_checkbox_trigger, get_result

# Create blueprint
api = Blueprint('api', __name__)

STATUS_CODES = {
    "no_active_note": 404,
    "busy": 409,
    "error": 500,
}


def _note_arg(data=None):
    """Note named in the JSON body or query string, if any."""
    value = (data or {}).get("note") or request.args.get("note")
    return resolve_note_name(value)


def _status_response(result):
    return jsonify(result), STATUS_CODES.get(result.get("status"), 200)


# --- HEALTH ---

@api.route('/health')
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "ok",
        "notes_dir": str(get_notes_dir()),
        "active_note": resolve_active_note(),
        "processing": is_processing(),
    })


# --- NOTES ---

@api.route('/api/notes', methods=['GET'])
def get_notes():
    """List every note."""
    return jsonify({"notes": list_notes(), "active": resolve_active_note()})


@api.route('/api/notes/<note>', methods=['GET'])
def get_note(note):
    """Get a note's content, archive section and editor state."""
    name = resolve_note_name(note)
    if not name or not note_exists(name):
        return jsonify({"error": "Note not found"}), 404

    content = read_note_file(name)
    section = find_section_range(content.split('\n'), current_settings())
    return jsonify({
        "note": name,
        "content": content,
        "automove": has_automove_enabled(content),
        "archive_section": asdict(section) if section else None,
        "session": asdict(get_session(name)),
    })


@api.route('/api/notes/<note>', methods=['PUT'])
def put_note(note):
    """Replace a note's content and, optionally, its editor state."""
    name = resolve_note_name(note)
    data = request.json or {}
    if not name:
        return jsonify({"error": "Invalid note name"}), 400

    with get_note_lock(name):
        if "content" in data:
            if not write_note_file(name, data["content"]):
                return jsonify({"error": "Failed to write note"}), 500
        else:
            ensure_note_file(name)

    session = get_session(name)
    if "cursor" in data:
        session.cursor = Cursor(int(data["cursor"].get("line", 0)), int(data["cursor"].get("ch", 0)))
    if "scroll" in data:
        session.scroll = ScrollInfo(data["scroll"].get("left", 0), data["scroll"].get("top", 0))
    if data.get("view_mode") in ("source", "preview"):
        session.view_mode = data["view_mode"]

    content = read_note_file(name)
    broadcast_event(name, {"type": "file_updated", "content": content, "change_info": {"action": "edit"}})
    log_event(logging.INFO, "api_note_saved", note=name, bytes=len(content))
    return jsonify({"note": name, "content": content, "session": asdict(session)})


@api.route('/api/active', methods=['POST'])
def set_active():
    """Set the note the commands run against."""
    data = request.json or {}
    name = resolve_note_name(data.get("note"))
    if name and not note_exists(name):
        return jsonify({"error": "Note not found"}), 404

    set_active_note(name)
    return jsonify({"active": name})


# --- COMMANDS ---

@api.route('/api/move', methods=['POST'])
def move_completed():
    """Command: move completed tasks to the end."""
    data = request.get_json(silent=True) or {}
    return _status_response(process_current_note(_note_arg(data)))


@api.route('/api/clear-section', methods=['POST'])
def clear_section():
    """Command: clear the completed tasks section."""
    data = request.get_json(silent=True) or {}
    return _status_response(clear_current_note_section(_note_arg(data)))


@api.route('/api/checkbox', methods=['POST'])
def click_checkbox():
    """Toggle a checkbox, then queue a debounced cycle."""
    data = request.json or {}
    name = resolve_active_note(_note_arg(data))
    if not name:
        return jsonify({"error": "No active note"}), 404

    try:
        line = int(data["line"])
    except (KeyError, TypeError, ValueError):
        return jsonify({"error": "A line number is required"}), 400

    try:
        text = toggle_checkbox(name, line, data.get("checked"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    request_id = enqueue_checkbox_trigger(name, line, current_settings().delay)
    log_event(logging.INFO, "api_checkbox_clicked", note=name, line=line, request_id=request_id)
    return jsonify({
        "status": "queued",
        "request_id": request_id,
        "note": name,
        "line": line,
        "text": text,
    })


@api.route('/api/queue/status/<request_id>', methods=['GET'])
def queue_status(request_id):
    """Check the status of a queued trigger."""
    result = get_result(request_id)
    if result is None:
        return jsonify({"error": "Request not found"}), 404
    return jsonify(result)


# --- SETTINGS ---

@api.route('/api/settings', methods=['GET'])
def get_settings():
    return jsonify(asdict(current_settings()))


@api.route('/api/settings', methods=['PUT'])
def put_settings():
    """Update and persist settings."""
    data = request.json or {}
    try:
        settings = merge_settings(current_settings(), data)
    except (TypeError, ValueError) as e:
        return jsonify({"error": f"Invalid settings: {e}"}), 400

    update_settings(settings)
    save_settings(settings)
    log_event(logging.INFO, "api_settings_updated", keys=",".join(sorted(data)))
    return jsonify(asdict(settings))


# --- STREAM & EXPORT ---

@api.route('/api/stream')
def stream():
    """SSE endpoint for real-time updates."""
    name = resolve_active_note(_note_arg())
    if not name:
        return jsonify({"error": "No active note"}), 404

    client_queue = queue.Queue()
    CONNECTED_CLIENTS[name].append(client_queue)

    def event_stream():
        # Send initial state
        try:
            init_data = {
                'type': 'init',
                'content': read_note_file(name),
                'session': asdict(get_session(name)),
                'note': name
            }
            yield f"data: {json.dumps(init_data)}\n\n"
        except Exception as e:
            log_event(logging.ERROR, "sse_init_error", error=str(e))
            yield f"data: {json.dumps({'type': 'init', 'content': '', 'note': name})}\n\n"

        try:
            while True:
                try:
                    data = client_queue.get(timeout=2.0)
                    yield f"data: {json.dumps(data)}\n\n"
                except queue.Empty:
                    yield f"data: {json.dumps({'type': 'heartbeat'})}\n\n"
        except GeneratorExit:
            pass
        finally:
            if client_queue in CONNECTED_CLIENTS[name]:
                CONNECTED_CLIENTS[name].remove(client_queue)

    return Response(
        stream_with_context(event_stream()),
        mimetype="text/event-stream",
        headers={
            'Cache-Control': 'no-cache',
            'Connection': 'keep-alive',
            'X-Accel-Buffering': 'no'
        }
    )


@api.route('/api/export')
def export_note():
    """Download a note."""
    name = resolve_active_note(_note_arg())
    if not name:
        return jsonify({"error": "No active note"}), 404

    return Response(
        read_note_file(name),
        mimetype="text/markdown",
        headers={"Content-Disposition": f"attachment; filename={get_note_path(name).name}"}
    )
