"""xrfocus: restores controller and pointer input after immersive session interruptions."""

__version__ = "0.1.0"
