"""MoviePilot subscribe board: one Telegram dashboard message for today's TV updates."""

__version__ = "1.0.0"
