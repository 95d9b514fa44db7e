# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "FOCUS_DESK_APP_NAME": "App display name (default: focus-desk).",
    "FOCUS_DESK_LOG_LEVEL": "Console logging level (default: INFO).",
    "FOCUS_DESK_LOG_TO_FILE": "Also write full DEBUG logs to <data_dir>/focus_desk.log (true/false).",
    # Paths (gitignored)
    "FOCUS_DESK_DATA_DIR": "Local data directory (default: .local/focus_desk).",
    "FOCUS_DESK_DB_PATH": "SQLite database path (default: <data_dir>/todos.sqlite3).",
    # Groups
    "FOCUS_DESK_DEFAULT_GROUP_COLOR": "Color for new groups when none is given (default: #42b983).",
}
