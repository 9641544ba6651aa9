import asyncio
from pathlib import Path

import pytest

from clipscribe.errors import DownloadFailedError, TranscriptionFailedError
from clipscribe.models.job import Job
from clipscribe.services import EvictionScheduler, FileHandler, JobPipeline, JobRegistry
from clipscribe.utils.helpers import generate_job_id, utc_now_iso


class FakeDownloader:
    """Simula o yt-dlp gravando um arquivo de áudio no diretório do job"""

    def __init__(self, registry=None, error=None, filename="audio.mp3"):
        self.registry = registry
        self.error = error
        self.filename = filename
        self.calls = []
        self.seen_status = []

    async def download(self, url, workspace):
        self.calls.append((url, Path(workspace)))
        if self.registry is not None:
            job_id = Path(workspace).name.replace("transcribe_", "", 1)
            self.seen_status.append(self.registry.get(job_id).status.value)
        if self.error is not None:
            raise self.error
        audio = Path(workspace) / self.filename
        audio.write_bytes(b"ID3fake")
        return audio


class FakeSpeechClient:
    def __init__(self, text="hello world", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def transcribe(self, audio_path):
        self.calls.append(Path(audio_path))
        assert Path(audio_path).exists()
        if self.error is not None:
            raise self.error
        return self.text

    async def close(self):
        pass


class FakeNotifier:
    def __init__(self, result=True):
        self.result = result
        self.calls = []

    async def notify(self, callback_url, job):
        self.calls.append((callback_url, job))
        return self.result

    async def close(self):
        pass


async def sleep_forever(delay):
    await asyncio.Event().wait()


def make_job(registry, url="https://example.com/video", callback_url=None):
    job = Job(job_id=generate_job_id(), url=url, callback_url=callback_url, created_at=utc_now_iso())
    return registry.create(job)


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
def file_handler(tmp_path):
    return FileHandler(tmp_path / "scratch")


@pytest.fixture
def build_pipeline(registry, file_handler):
    """Monta um JobPipeline com fakes; eviction nunca dispara sozinha"""

    def _build(downloader=None, speech_client=None, notifier=None, sleep=sleep_forever):
        scheduler = EvictionScheduler(registry, retention_seconds=3600, sleep=sleep)
        return JobPipeline(
            registry,
            file_handler,
            downloader or FakeDownloader(registry),
            speech_client or FakeSpeechClient(),
            notifier or FakeNotifier(),
            scheduler
        )

    return _build


@pytest.fixture
def download_error():
    return DownloadFailedError("Download failed: yt-dlp exited with code 1: ERROR: Private video")


@pytest.fixture
def transcription_error():
    return TranscriptionFailedError("AssemblyAI error: audio too short")
