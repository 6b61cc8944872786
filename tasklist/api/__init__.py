"""
Task REST API Module

Provides the optional backend service:
- TaskDatabase: SQLite table of tasks
- Flask Blueprint: REST API routes
- TaskApiServer: background server thread
"""

from .database import TaskDatabase
from .routes import api_bp, init_routes
from .server import TaskApiServer, create_api_app

__all__ = ['TaskDatabase', 'api_bp', 'init_routes', 'TaskApiServer', 'create_api_app']
