"""
Task Archiver
Moves completed markdown tasks into a "Completed Tasks" section with a timestamp.
"""

import logging

from flask import Flask
from flask_cors import CORS

from config import log_event, get_notes_dir, PORT
from routes import api
from services.processing import current_settings
from services.queue_processor import start_queue_worker, stop_queue_worker


def create_app(start_worker: bool = True) -> Flask:
    """Build the Flask app and start the trigger worker."""
    app = Flask(__name__)
    CORS(app)
    app.register_blueprint(api)

    get_notes_dir().mkdir(parents=True, exist_ok=True)
    if start_worker:
        start_queue_worker()
    return app


if __name__ == '__main__':
    app = create_app()
    settings = current_settings()
    log_event(
        logging.INFO,
        "server_startup",
        notes_dir=str(get_notes_dir()),
        section_title=settings.section_title,
        auto_move=settings.auto_move,
        port=PORT,
    )

    print(f"""
    ╔═══════════════════════════════════════════════════╗
    ║              ✅ TASK ARCHIVER                     ║
    ╠═══════════════════════════════════════════════════╣
    ║   Auto move:   {'✅ On' if settings.auto_move else '❌ Off'}                              ║
    ║   Section:     {settings.section_title:<30}     ║
    ║   Notes dir:   {str(get_notes_dir())[-30:]:<30}     ║
    ╠═══════════════════════════════════════════════════╣
    ║   Server: http://localhost:{PORT}                   ║
    ╚═══════════════════════════════════════════════════╝
    """)
    try:
        app.run(debug=True, port=PORT, threaded=True, use_reloader=False)
    finally:
        stop_queue_worker()
