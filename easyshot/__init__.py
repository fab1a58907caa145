"""Screenshot, screen-recording and OBS control daemon for Sway."""

__version__ = "0.1.0"
