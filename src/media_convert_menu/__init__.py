"""Interactive ffmpeg conversion menu for media files in a directory."""

__all__ = ["__version__"]

__version__ = "0.1.0"
