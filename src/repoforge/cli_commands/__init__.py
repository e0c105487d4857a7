"""Command modules; each exposes register(cli)."""
