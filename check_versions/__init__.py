"""Command-line interface for the remote-hg version matrix."""
