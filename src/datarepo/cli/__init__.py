"""CLI for datarepo."""

# Import commands to register them with the app
# These imports have side effects (registering commands with @app.command())
from datarepo.cli.commands import list as _list_module  # noqa: F401
from datarepo.cli.commands import show as _show_module  # noqa: F401
from datarepo.cli.main import app, main


__all__ = ["app", "main"]
