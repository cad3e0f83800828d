"""GitHub-facing pieces: diff extraction, report rendering, notification."""
