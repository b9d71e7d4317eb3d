"""Multiplayer drawing and guessing game server."""

__version__ = "0.1.0"
