"""
Flask web server for the task list browser UI.
Provides web interface for:
- Adding, completing, editing and deleting tasks
- Filtering (all / pending / completed)
- Export, import and clear-all
"""

from flask import (
    Flask, Response, flash, get_flashed_messages, has_request_context, redirect,
    render_template_string, request, url_for
)
import logging
import secrets
import threading
from functools import wraps

from tasklist.core.errors import InvalidInputError
from tasklist.core.models import parse_deadline_input
from tasklist.ui.controller import TaskController


class TaskListWebServer:
    """
    Web server rendering the task list and dispatching user intents
    """

    def __init__(self, controller: TaskController, host: str = '127.0.0.1', port: int = 5000,
                 secret_key: str = None, removal_delay_ms: int = 300):
        """
        Initialize web server

        Args:
            controller: TaskController for this session
            host: Interface to bind
            port: Port to run server on
            secret_key: Flask secret key (used for flash messages)
            removal_delay_ms: Delete transition length in the page
        """
        self.logger = logging.getLogger(__name__)
        self.controller = controller
        self.controller.notify = self._notify
        self.host = host
        self.port = port
        self.removal_delay_ms = removal_delay_ms
        # user intents never interleave
        self.lock = threading.Lock()

        self.flask_app = Flask(__name__)
        self.flask_app.secret_key = secret_key or secrets.token_hex(16)
        self.flask_app.config['MAX_CONTENT_LENGTH'] = 5 * 1024 * 1024  # 5MB import limit

        self._setup_routes()

    def _notify(self, message: str):
        """Deliver a user-visible message as a flash alert"""
        if has_request_context():
            flash(message)
        else:
            self.logger.warning(message)

    def _intent(self, view):
        """Serialize a view on the controller lock and redirect home"""
        @wraps(view)
        def wrapper(*args, **kwargs):
            with self.lock:
                result = view(*args, **kwargs)
            return result if result is not None else redirect(url_for('index'))
        return wrapper

    def _setup_routes(self):
        """Setup Flask routes"""
        app = self.flask_app
        controller = self.controller

        @app.route('/')
        def index():
            """Main page with task form, filters and list"""
            with self.lock:
                context = {
                    'task_list': controller.render_tasks(),
                    'count_label': controller.count_label(),
                    'current_filter': controller.current_filter,
                    'editing': controller.editing_task_id is not None,
                    'mode': controller.adapter.name,
                    'stats': controller.stats(),
                }
            return render_template_string(
                HTML_TEMPLATE,
                messages=get_flashed_messages(),
                removal_delay_ms=self.removal_delay_ms,
                **context
            )

        @app.route('/tasks', methods=['POST'])
        @self._intent
        def add_task():
            """Add a task"""
            try:
                deadline = parse_deadline_input(request.form.get('deadline'))
            except InvalidInputError as e:
                flash(str(e))
                return None
            controller.add_task(request.form.get('text', ''), deadline)

        @app.route('/tasks/<task_id>/toggle', methods=['POST'])
        @self._intent
        def toggle_task(task_id):
            """Toggle completion"""
            controller.toggle_task(task_id)

        @app.route('/tasks/<task_id>/edit', methods=['GET'])
        @self._intent
        def begin_edit(task_id):
            """Switch a task into edit mode"""
            controller.begin_edit(task_id)

        @app.route('/tasks/<task_id>/edit', methods=['POST'])
        @self._intent
        def commit_edit(task_id):
            """Save edited text"""
            if controller.editing_task_id == task_id:
                controller.commit_edit(request.form.get('text', ''))

        @app.route('/tasks/<task_id>/cancel', methods=['POST'])
        @self._intent
        def cancel_edit(task_id):
            """Leave edit mode without saving"""
            controller.cancel_edit()

        @app.route('/tasks/<task_id>/delete', methods=['POST'])
        @self._intent
        def delete_task(task_id):
            """Delete a task after browser confirmation"""
            controller.delete_task(task_id, confirmed=request.form.get('confirmed') == '1')

        @app.route('/filter/<name>')
        @self._intent
        def set_filter(name):
            """Change the active filter"""
            controller.set_filter(name)

        @app.route('/clear', methods=['POST'])
        @self._intent
        def clear_all():
            """Delete all tasks after browser confirmation"""
            controller.clear_all(confirmed=request.form.get('confirmed') == '1')

        @app.route('/export')
        def export_tasks():
            """Download tasks as JSON"""
            with self.lock:
                filename, body = controller.export_tasks()
            self.logger.info(f"Exported tasks to {filename}")
            return Response(
                body,
                mimetype='application/json',
                headers={'Content-Disposition': f'attachment; filename={filename}'}
            )

        @app.route('/import', methods=['POST'])
        @self._intent
        def import_tasks():
            """Replace tasks with an uploaded export file"""
            upload = request.files.get('file')
            if upload is None or upload.filename == '':
                flash('No file selected')
                return None
            controller.import_tasks(upload.read())

    def serve(self):
        """Run the Flask server in the calling thread"""
        self.logger.info(f"Web interface available at http://{self.host}:{self.port}")
        self.flask_app.run(host=self.host, port=self.port, debug=False, use_reloader=False, threaded=True)


# HTML Template for the web interface
HTML_TEMPLATE = '''
<!DOCTYPE html>
<html>
<head>
    <title>Task Manager</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body {
            font-family: Arial, sans-serif;
            max-width: 800px;
            margin: 0 auto;
            padding: 20px;
            background: #f5f5f5;
        }
        h1 {
            color: #333;
        }
        .section {
            background: white;
            padding: 20px;
            margin: 20px 0;
            border-radius: 8px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }
        .task-form, .toolbar {
            display: flex;
            gap: 10px;
            align-items: center;
        }
        .task-form input[type="text"] {
            flex: 1;
            padding: 10px;
            font-size: 16px;
        }
        .btn {
            padding: 10px 15px;
            font-size: 14px;
            border: none;
            border-radius: 5px;
            cursor: pointer;
            background: #667eea;
            color: white;
            text-decoration: none;
        }
        .btn-danger {
            background: #f44336;
        }
        .filter-btn {
            background: #ddd;
            color: #333;
        }
        .filter-btn.active {
            background: #667eea;
            color: white;
        }
        .stats {
            color: #666;
            font-size: 14px;
        }
        .task-item {
            display: flex;
            align-items: center;
            gap: 12px;
            padding: 12px;
            border-bottom: 1px solid #eee;
            transition: opacity 0.3s, transform 0.3s;
        }
        .task-item.removing {
            opacity: 0;
            transform: translateX(100%);
        }
        .task-content {
            flex: 1;
        }
        .task-text.completed {
            text-decoration: line-through;
            color: #999;
        }
        .task-meta {
            font-size: 12px;
            color: #888;
            margin-top: 4px;
        }
        .task-meta span {
            margin-right: 12px;
        }
        .task-deadline.overdue {
            color: #f44336;
            font-weight: bold;
        }
        .task-deadline.due-soon {
            color: #ff9800;
        }
        .task-item.overdue {
            border-left: 4px solid #f44336;
        }
        .edit-input {
            width: 100%;
            padding: 8px 12px;
            border: 2px solid #667eea;
            border-radius: 6px;
            font-size: 16px;
            font-weight: 500;
        }
        form.inline {
            display: inline;
        }
        .task-btn {
            background: none;
            border: none;
            color: #667eea;
            cursor: pointer;
            text-decoration: none;
            font-size: 14px;
        }
        .delete-btn {
            color: #f44336;
        }
        .empty-state {
            text-align: center;
            color: #999;
            padding: 40px;
        }
    </style>
</head>
<body>
    <h1>Task Manager</h1>

    <div class="section">
        <form id="taskForm" action="/tasks" method="post" class="task-form">
            <input type="text" id="taskInput" name="text" placeholder="What needs to be done?" autofocus>
            <input type="datetime-local" id="deadlineInput" name="deadline">
            <button type="submit" class="btn">Add</button>
        </form>
    </div>

    <div class="section">
        <div class="toolbar">
            {% for name, title in [('all', 'All'), ('pending', 'Pending'), ('completed', 'Completed')] %}
            <a href="/filter/{{ name }}" class="btn filter-btn{% if current_filter == name %} active{% endif %}" data-filter="{{ name }}">{{ title }}</a>
            {% endfor %}
            <span id="taskCount" class="stats">{{ count_label }}</span>
        </div>
        <p class="stats">
            Storage: {{ mode }} &middot; {{ stats.total }} total, {{ stats.pending }} pending,
            {{ stats.completed }} completed, {{ stats.overdue }} overdue
        </p>
        {{ task_list }}
    </div>

    <div class="section">
        <div class="toolbar">
            <a href="/export" class="btn">Export</a>
            <form action="/import" method="post" enctype="multipart/form-data" class="inline">
                <input type="file" name="file" accept=".json" required>
                <button type="submit" class="btn">Import</button>
            </form>
            <form id="clearForm" action="/clear" method="post" class="inline">
                <input type="hidden" name="confirmed" value="0">
                <button type="submit" class="btn btn-danger">Clear all</button>
            </form>
        </div>
    </div>

    <script>
        const REMOVAL_DELAY_MS = {{ removal_delay_ms }};
        const messages = {{ messages|tojson }};
        messages.forEach(message => alert(message));

        // Deadline cannot be set in the past
        document.getElementById('deadlineInput').min = new Date().toISOString().slice(0, 16);

        document.querySelectorAll('.delete-form').forEach(form => {
            form.addEventListener('submit', e => {
                e.preventDefault();
                if (!confirm('Are you sure you want to delete this task?')) return;
                form.querySelector('[name=confirmed]').value = '1';
                form.closest('.task-item').classList.add('removing');
                setTimeout(() => form.submit(), REMOVAL_DELAY_MS);
            });
        });

        document.getElementById('clearForm').addEventListener('submit', e => {
            if (!confirm('Are you sure you want to delete all tasks? This action cannot be undone.')) {
                e.preventDefault();
                return;
            }
            e.target.querySelector('[name=confirmed]').value = '1';
        });

        const editInput = document.querySelector('.edit-input');
        if (editInput) {
            const editForm = editInput.form;
            let done = false;
            const cancel = () => {
                done = true;
                const taskId = editForm.closest('.task-item').dataset.taskId;
                fetch('/tasks/' + taskId + '/cancel', {method: 'POST'})
                    .then(() => location.replace('/'));
            };
            editInput.focus();
            editInput.select();
            editInput.addEventListener('blur', () => { if (!done) { done = true; editForm.submit(); } });
            editInput.addEventListener('keydown', e => {
                if (e.key === 'Escape') cancel();
            });
            editForm.addEventListener('submit', () => { done = true; });
        }

        document.addEventListener('keydown', e => {
            // Ctrl/Cmd + Enter to add task
            if ((e.ctrlKey || e.metaKey) && e.key === 'Enter') {
                document.getElementById('taskForm').submit();
            }
        });
    </script>
</body>
</html>
'''
