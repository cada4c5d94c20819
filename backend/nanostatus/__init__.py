"""NanoStatus - lightweight uptime monitoring with live updates."""
__version__ = "1.0.0"
