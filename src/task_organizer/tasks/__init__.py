"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, TaskStatus, Priority, Urgency)
- task_store.py: in-memory task hierarchy (top-level tasks + per-parent subtasks)
- task_api.py: small high-level helpers used by the rest of the app
"""
