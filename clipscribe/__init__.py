"""clipscribe - transcribe the audio track of a media URL in the background."""

__version__ = "1.0.0"
