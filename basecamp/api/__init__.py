"""HTTP API for the basecamp backend."""
