"""Command-line entry points for aware-bundler."""
