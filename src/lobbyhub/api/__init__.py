"""HTTP API for lobbyhub."""
