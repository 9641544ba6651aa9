from .callback_notifier import CallbackNotifier
from .file_handler import FileHandler
from .job_registry import JobRegistry
from .pipeline import JobPipeline
from .scheduler import EvictionScheduler
from .speech_client import SpeechClient
from .url_downloader import URLDownloader

__all__ = [
    "CallbackNotifier",
    "FileHandler",
    "JobRegistry",
    "JobPipeline",
    "EvictionScheduler",
    "SpeechClient",
    "URLDownloader"
]
