# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Leave TASKORG_API_URL empty to run against the built-in offline demo gateway.
"""

ENV_VARS = {
    # App / logging
    "TASKORG_APP_NAME": "App display name (default: task-organizer).",
    "TASKORG_LOG_LEVEL": "Console logging level (default: INFO).",
    # Task service
    "TASKORG_API_URL": "Task service root, e.g. http://localhost:3000 (requests go to <url>/api).",
    "TASKORG_CONNECT_TIMEOUT_SECONDS": "Connect timeout in seconds (default: 5).",
    "TASKORG_READ_TIMEOUT_SECONDS": "Read timeout in seconds, never below the connect timeout (default: 60).",
    # Behaviour
    "TASKORG_PERSIST_SUBTASKS": "Save generated subtasks back to the service (true/false, default: true).",
    "TASKORG_TASK_LIST_LIMIT": "Max rows printed by /tasks (default: 50).",
    # Paths (gitignored)
    "TASKORG_DATA_DIR": "Local data directory for logs (default: .local/task_organizer).",
}
