"""Read, write, replay and capture terminal session recordings in the asciicast format."""

__version__ = "0.1.0"