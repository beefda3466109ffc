"""Command-line interface: the Typer app and its Rich output helpers."""
