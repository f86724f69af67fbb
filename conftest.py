import os

# Default environment for test runs: SQLite with migrations disabled.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "project.settings")
os.environ.setdefault("USE_POSTGRES", "false")
os.environ.setdefault("SQLITE_NAME", ":memory:")
