"""Single-user to-do list with local or REST-backed persistence."""
