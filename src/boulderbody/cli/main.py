"""
CLI entry point using Typer.

Provides commands for session tracking:
- start: Start a volume or training session
- status: Show the active session
- log: Log a boulder result (volume)
- toggle / hang: Complete sets and run the hang/rest timer (training)
- finish / abandon: End the active session
- recommend: Next-session recommendations
- history / delete: Browse and prune stored sessions
- theme: Show or set the theme preference
"""

from .app import app
from .commands import history, sessions, training  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
