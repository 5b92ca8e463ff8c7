"""
Task organizer: turn pasted messages into tasks, then break tasks down
through a follow-up dialogue with a remote reasoning service.
"""

__version__ = "0.1.0"
