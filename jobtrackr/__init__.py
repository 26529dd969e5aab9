"""JobTrackr: job application tracking with Gmail import."""

__version__ = "0.1.0"
