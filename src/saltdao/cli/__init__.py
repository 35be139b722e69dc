"""Command-line tools for SaltDao."""
