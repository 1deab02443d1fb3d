"""Settlement-and-trade board game engine for the game hub."""

__version__ = "0.1.0"
