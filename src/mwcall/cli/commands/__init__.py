"""CLI commands for mwcall."""
