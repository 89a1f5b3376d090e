"""Entry point for running the orchestrator as a module.

Allows running the application with:
    python -m pr_orchestrator

This delegates to the Typer CLI app.
"""

from pr_orchestrator.cli import app

if __name__ == "__main__":
    app()
