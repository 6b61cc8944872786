"""
User-facing logic: render engine and controller state machine.
"""
