"""Command-line tools for the incentives module (`python -m incentives.cli.inspect`)."""
