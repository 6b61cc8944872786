"""
Task List - Main Application
Starts the optional REST backend, chooses the persistence mode and serves the browser UI.
"""

import sys
import os
import logging
import signal

from tasklist.config import Config
from tasklist.api.server import TaskApiServer
from tasklist.core.store import TaskStore
from tasklist.storage.adapters import select_backend
from tasklist.ui.controller import TaskController
from tasklist.web.webserver import TaskListWebServer


class TaskListApp:
    """
    Main to-do list application
    """

    def __init__(self, config_path: str):
        """
        Initialize application

        Args:
            config_path: Path to config.yaml
        """
        # Load configuration
        self.config = Config(config_path)

        # Setup logging
        self._setup_logging()
        self.logger = logging.getLogger(__name__)
        self.logger.info("=" * 50)
        self.logger.info("Task List starting...")
        self.logger.info("=" * 50)

        self.api_server = None
        self.web_server = None
        self.controller = None

    def _setup_logging(self):
        """Configure logging"""
        log_level = getattr(logging, str(self.config.get('logging.level', 'INFO')).upper(), logging.INFO)
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        handlers = []

        # Console handler
        if self.config.get('logging.console', True):
            handlers.append(logging.StreamHandler())

        # File handler
        log_file = self.config.get('logging.file')
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))

        logging.basicConfig(
            level=log_level,
            format=log_format,
            handlers=handlers or [logging.NullHandler()]
        )

    def _start_api(self):
        """Start the REST backend if enabled"""
        if not self.config.get('api.enabled', True):
            self.logger.info("Task API disabled")
            return

        self.api_server = TaskApiServer(
            self.config.get('api.database', 'data/tasks.db'),
            host=self.config.get('api.host', '127.0.0.1'),
            port=int(self.config.get('api.port', 3000))
        )
        self.api_server.start()

    def build_controller(self) -> TaskController:
        """Choose the persistence variant and load the initial tasks"""
        backend = select_backend(self.config)
        self.logger.info(f"Persistence mode: {backend.mode.value}")

        controller = TaskController(TaskStore(), backend)
        controller.load()
        return controller

    def start(self):
        """Start the application"""
        try:
            self._start_api()
            self.controller = self.build_controller()

            self.web_server = TaskListWebServer(
                self.controller,
                host=self.config.get('web.host', '127.0.0.1'),
                port=int(self.config.get('web.port', 5000)),
                secret_key=self.config.get('web.secret_key'),
                removal_delay_ms=int(self.config.get('web.removal_delay_ms', 300))
            )

            signal.signal(signal.SIGTERM, self._signal_handler)

            self.logger.info("Task List started successfully!")
            self.logger.info("Press Ctrl+C to exit")
            self.web_server.serve()

        except KeyboardInterrupt:
            self.logger.info("Received interrupt signal")
        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
        finally:
            self.stop()

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        self.logger.info(f"Received signal {signum}")
        self.stop()
        sys.exit(0)

    def stop(self):
        """Clean shutdown"""
        self.logger.info("Shutting down gracefully...")

        if self.api_server:
            self.api_server.stop()
            self.api_server = None

        self.logger.info("Task List stopped")


def main():
    """Main entry point"""
    # Determine config path
    if len(sys.argv) > 1:
        config_path = sys.argv[1]
    else:
        config_path = os.environ.get('TASKLIST_CONFIG', os.path.join('config', 'config.yaml'))

    # Ensure config exists
    if not os.path.exists(config_path):
        print(f"ERROR: Configuration file not found: {config_path}")
        print(f"Usage: {os.path.basename(sys.argv[0])} [config_path]")
        sys.exit(1)

    # Create and start application
    app = TaskListApp(config_path)
    app.start()


if __name__ == '__main__':
    main()
