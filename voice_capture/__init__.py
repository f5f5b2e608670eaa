"""Voice capture gateway: audio upload, transcription and email delivery."""

__version__ = "1.0.0"
