import asyncio

import pytest

from clipscribe.errors import CleanupFailedError, DownloadFailedError
from clipscribe.models.job import JobStatus
from clipscribe.services.url_downloader import NO_AUDIO_MESSAGE

from conftest import FakeDownloader, FakeNotifier, FakeSpeechClient, make_job


@pytest.fixture
def status_log(registry, monkeypatch):
    """Registra cada status escrito no registro, por job"""
    log = {}
    original_update = registry.update

    def update(job_id, **patch):
        job = original_update(job_id, **patch)
        history = log.setdefault(job_id, [])
        if not history or history[-1] != job.status.value:
            history.append(job.status.value)
        return job

    monkeypatch.setattr(registry, "update", update)
    return log


def run_pipeline(pipeline, job_id):
    async def _run():
        try:
            return await pipeline.run(job_id)
        finally:
            await pipeline.scheduler.shutdown()

    return asyncio.run(_run())


def test_successful_pipeline(registry, build_pipeline, status_log):
    job = make_job(registry, callback_url="https://hooks.example.com/done")
    downloader = FakeDownloader(registry)
    speech = FakeSpeechClient(text="hello world")
    notifier = FakeNotifier()
    pipeline = build_pipeline(downloader=downloader, speech_client=speech, notifier=notifier)

    final = run_pipeline(pipeline, job.job_id)

    assert final.status == JobStatus.COMPLETED
    assert final.transcript == "hello world"
    assert final.error is None
    assert final.started_at and final.completed_at
    assert final.failed_at is None
    assert status_log[job.job_id] == ["processing", "downloading", "transcribing", "completed"]
    assert downloader.seen_status == ["downloading"]
    assert downloader.calls[0][0] == "https://example.com/video"
    assert notifier.calls == [("https://hooks.example.com/done", final)]
    assert registry.get(job.job_id) == final


def test_workspace_removed_after_success(registry, build_pipeline, file_handler):
    job = make_job(registry)
    downloader = FakeDownloader(registry)

    run_pipeline(build_pipeline(downloader=downloader), job.job_id)

    workspace = downloader.calls[0][1]
    assert workspace == file_handler.workspace_path(job.job_id)
    assert not workspace.exists()


def test_download_failure(registry, build_pipeline, status_log, download_error, file_handler):
    job = make_job(registry, callback_url="https://hooks.example.com/done")
    speech = FakeSpeechClient()
    notifier = FakeNotifier()
    pipeline = build_pipeline(downloader=FakeDownloader(registry, error=download_error), speech_client=speech, notifier=notifier)

    final = run_pipeline(pipeline, job.job_id)

    assert final.status == JobStatus.FAILED
    assert final.error == str(download_error)
    assert final.transcript is None
    assert final.failed_at and final.completed_at is None
    assert status_log[job.job_id] == ["processing", "downloading", "failed"]
    assert speech.calls == []
    assert notifier.calls[0][1].status == JobStatus.FAILED
    assert not file_handler.workspace_path(job.job_id).exists()


def test_missing_audio_message_reaches_job(registry, build_pipeline):
    job = make_job(registry)
    pipeline = build_pipeline(downloader=FakeDownloader(registry, error=DownloadFailedError(NO_AUDIO_MESSAGE)))

    final = run_pipeline(pipeline, job.job_id)

    assert final.status == JobStatus.FAILED
    assert "Audio file was not created" in final.error


def test_transcription_failure(registry, build_pipeline, status_log, transcription_error, file_handler):
    job = make_job(registry)
    pipeline = build_pipeline(speech_client=FakeSpeechClient(error=transcription_error))

    final = run_pipeline(pipeline, job.job_id)

    assert final.status == JobStatus.FAILED
    assert final.error == "AssemblyAI error: audio too short"
    assert status_log[job.job_id] == ["processing", "downloading", "transcribing", "failed"]
    assert not file_handler.workspace_path(job.job_id).exists()


def test_unexpected_error_is_captured(registry, build_pipeline):
    job = make_job(registry)
    pipeline = build_pipeline(downloader=FakeDownloader(registry, error=RuntimeError("disk on fire")))

    final = run_pipeline(pipeline, job.job_id)

    assert final.status == JobStatus.FAILED
    assert final.error == "disk on fire"


def test_callback_failure_does_not_change_status(registry, build_pipeline):
    job = make_job(registry, callback_url="https://unreachable.invalid/hook")
    notifier = FakeNotifier(result=False)

    final = run_pipeline(build_pipeline(notifier=notifier), job.job_id)

    assert len(notifier.calls) == 1
    assert final.status == JobStatus.COMPLETED
    assert registry.get(job.job_id).status == JobStatus.COMPLETED


def test_no_callback_without_url(registry, build_pipeline):
    job = make_job(registry)
    notifier = FakeNotifier()

    run_pipeline(build_pipeline(notifier=notifier), job.job_id)

    assert notifier.calls == []


def test_cleanup_failure_is_swallowed(registry, build_pipeline, file_handler, monkeypatch):
    job = make_job(registry)

    def broken_remove(workspace):
        raise CleanupFailedError(f"Falha ao remover {workspace}: permission denied")

    monkeypatch.setattr(file_handler, "remove_workspace", broken_remove)

    final = run_pipeline(build_pipeline(), job.job_id)

    assert final.status == JobStatus.COMPLETED


def test_eviction_scheduled_for_terminal_job(registry, build_pipeline):
    job = make_job(registry)
    pipeline = build_pipeline()

    async def _run():
        await pipeline.run(job.job_id)
        pending = pipeline.scheduler.pending()
        await pipeline.scheduler.shutdown()
        return pending

    assert asyncio.run(_run()) == [job.job_id]


def test_eviction_removes_job_after_pipeline(registry, build_pipeline):
    job = make_job(registry)

    async def instant(delay):
        return None

    pipeline = build_pipeline(sleep=instant)

    async def _run():
        await pipeline.run(job.job_id)
        for _ in range(5):
            await asyncio.sleep(0)

    asyncio.run(_run())

    assert registry.get(job.job_id) is None


def test_submit_returns_before_first_transition(registry, build_pipeline):
    job = make_job(registry)
    pipeline = build_pipeline()

    async def _run():
        task = pipeline.submit(job.job_id)
        status_at_submit = registry.get(job.job_id).status
        in_flight = pipeline.in_flight
        final = await task
        await pipeline.scheduler.shutdown()
        return status_at_submit, in_flight, final

    status_at_submit, in_flight, final = asyncio.run(_run())

    assert status_at_submit == JobStatus.QUEUED
    assert in_flight == 1
    assert final.status == JobStatus.COMPLETED
    assert pipeline.in_flight == 0


def test_concurrent_jobs_are_independent(registry, build_pipeline):
    ok = make_job(registry)
    bad = make_job(registry, url="https://example.com/private")

    class SelectiveDownloader(FakeDownloader):
        async def download(self, url, workspace):
            await asyncio.sleep(0)
            if url.endswith("private"):
                raise DownloadFailedError(NO_AUDIO_MESSAGE)
            return await super().download(url, workspace)

    pipeline = build_pipeline(downloader=SelectiveDownloader())

    async def _run():
        results = await asyncio.gather(pipeline.submit(ok.job_id), pipeline.submit(bad.job_id))
        await pipeline.scheduler.shutdown()
        return results

    ok_final, bad_final = asyncio.run(_run())

    assert ok_final.status == JobStatus.COMPLETED
    assert bad_final.status == JobStatus.FAILED


def test_run_unknown_job_is_ignored(build_pipeline):
    assert run_pipeline(build_pipeline(), "job_0_missing") is None
