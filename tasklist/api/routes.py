"""
Task REST API Routes

Flask Blueprint for the task backend endpoints.
"""

import logging
from flask import Blueprint, jsonify, request

from tasklist.core.errors import InvalidInputError
from tasklist.core.models import parse_timestamp, validate_changes
from tasklist.core.store import FILTERS

# Create Blueprint
api_bp = Blueprint('api', __name__)
logger = logging.getLogger(__name__)

# TaskDatabase instance will be set by the API server
database = None


def init_routes(task_database):
    """
    Initialize routes with TaskDatabase instance

    Args:
        task_database: TaskDatabase instance
    """
    global database
    database = task_database
    logger.info("Initialized task API routes")


def _parse_deadline(value):
    """Decode the deadline field of a request body"""
    if value is None or value == '':
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        raise InvalidInputError(f"Invalid deadline: {value}")


@api_bp.errorhandler(InvalidInputError)
def invalid_input(e):
    return jsonify({'error': str(e)}), 400


@api_bp.route('/api/tasks', methods=['GET'])
def list_tasks():
    """Get all tasks, optionally filtered"""
    task_filter = request.args.get('filter', 'all')
    if task_filter not in FILTERS:
        task_filter = 'all'
    try:
        tasks = database.list_tasks(task_filter)
    except Exception as e:
        logger.error(f"Failed to list tasks: {e}")
        return jsonify({'error': str(e)}), 500
    return jsonify([task.to_dict() for task in tasks])


@api_bp.route('/api/tasks/<task_id>', methods=['GET'])
def get_task(task_id):
    """Get a single task"""
    try:
        task = database.get_task(task_id)
    except Exception as e:
        logger.error(f"Failed to get task {task_id}: {e}")
        return jsonify({'error': str(e)}), 500

    if task is None:
        return jsonify({'error': 'Task not found'}), 404
    return jsonify(task.to_dict())


@api_bp.route('/api/tasks', methods=['POST'])
def create_task():
    """Create a new task"""
    data = request.get_json(silent=True)
    text = data.get('text') if isinstance(data, dict) else None

    if not isinstance(text, str) or not text.strip():
        return jsonify({'error': 'Task text is required'}), 400

    deadline = _parse_deadline(data.get('deadline'))

    try:
        task = database.create_task(text.strip(), deadline)
    except Exception as e:
        logger.error(f"Failed to create task: {e}")
        return jsonify({'error': str(e)}), 500

    return jsonify(task.to_dict()), 201


@api_bp.route('/api/tasks/<task_id>', methods=['PUT'])
def update_task(task_id):
    """Update any subset of text, completed, deadline"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'No valid fields to update'}), 400

    if 'deadline' in data:
        data = dict(data, deadline=_parse_deadline(data['deadline']))
    changes = validate_changes(data)

    try:
        task = database.update_task(task_id, changes)
    except Exception as e:
        logger.error(f"Failed to update task {task_id}: {e}")
        return jsonify({'error': str(e)}), 500

    if task is None:
        return jsonify({'error': 'Task not found'}), 404
    return jsonify(task.to_dict())


@api_bp.route('/api/tasks/<task_id>', methods=['DELETE'])
def delete_task(task_id):
    """Delete a task"""
    try:
        deleted = database.delete_task(task_id)
    except Exception as e:
        logger.error(f"Failed to delete task {task_id}: {e}")
        return jsonify({'error': str(e)}), 500

    if not deleted:
        return jsonify({'error': 'Task not found'}), 404
    return '', 204


@api_bp.route('/api/stats', methods=['GET'])
def get_stats():
    """Get task statistics"""
    try:
        return jsonify(database.stats())
    except Exception as e:
        logger.error(f"Failed to compute stats: {e}")
        return jsonify({'error': str(e)}), 500
