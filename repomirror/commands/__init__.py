"""Click commands for the repomirror CLI."""
