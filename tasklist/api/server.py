"""
Flask application hosting the task REST API.
"""

import logging
import threading
from typing import Optional

from flask import Flask, jsonify
from werkzeug.serving import make_server

from tasklist.api.database import TaskDatabase
from tasklist.api.routes import api_bp, init_routes


def create_api_app(database: TaskDatabase) -> Flask:
    """
    Build the API Flask app around a database

    Args:
        database: Initialized TaskDatabase
    """
    logger = logging.getLogger(__name__)
    app = Flask(__name__)
    init_routes(database)
    app.register_blueprint(api_bp)

    @app.after_request
    def allow_cross_origin(response):
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, DELETE, OPTIONS'
        return response

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Route not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(Exception)
    def unhandled(e):
        logger.error(f"Unhandled API error: {e}", exc_info=True)
        return jsonify({'error': 'Something went wrong!'}), 500

    return app


class TaskApiServer:
    """
    REST backend running in a background thread
    """

    def __init__(self, db_path: str, host: str = '127.0.0.1', port: int = 3000):
        """
        Initialize API server

        Args:
            db_path: Path to SQLite database
            host: Interface to bind
            port: Port to bind (0 picks a free port)
        """
        self.logger = logging.getLogger(__name__)
        self.database = TaskDatabase(db_path)
        self.database.initialize()
        self.host = host
        self.port = port
        self.flask_app = create_api_app(self.database)
        self._server = None
        self._thread: Optional[threading.Thread] = None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self):
        """Bind the socket and serve in a daemon thread"""
        self._server = make_server(self.host, self.port, self.flask_app, threaded=True)
        self.port = self._server.server_port
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        self.logger.info(f"Task API running on {self.base_url}")

    def stop(self):
        """Shut down the server and close the database"""
        self.logger.info("Shutting down task API...")
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        self.database.close()
