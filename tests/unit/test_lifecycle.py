"""Unit tests for draining and worker tracking."""

import logging
import threading

from pathguard.lifecycle.state import ServerLifecycle


def test_begin_draining_is_sticky_and_logged_once(caplog):
    caplog.set_level(logging.INFO, logger="pathguard")
    lifecycle = ServerLifecycle()
    assert not lifecycle.should_stop()
    lifecycle.begin_draining()
    lifecycle.begin_draining()
    assert lifecycle.should_stop()
    assert lifecycle.is_draining()
    events = [r for r in caplog.records if getattr(r, "event", None) == "draining"]
    assert len(events) == 1


def test_wait_for_workers_returns_when_idle():
    lifecycle = ServerLifecycle()
    assert lifecycle.wait_for_workers(timeout=0.1)


def test_wait_for_workers_blocks_until_cleanup():
    lifecycle = ServerLifecycle()
    release = threading.Event()

    def worker():
        lifecycle.register_worker(threading.current_thread())
        release.wait(timeout=5)
        lifecycle.cleanup_worker(threading.current_thread())

    thread = threading.Thread(target=worker)
    thread.start()
    while lifecycle.active_worker_count() == 0:
        release.wait(timeout=0.01)
    release.set()
    assert lifecycle.wait_for_workers(timeout=5)
    thread.join()
    assert lifecycle.active_worker_count() == 0


def test_wait_for_workers_times_out(caplog):
    lifecycle = ServerLifecycle()
    release = threading.Event()
    thread = threading.Thread(target=release.wait, kwargs={"timeout": 5})
    thread.start()
    lifecycle.register_worker(thread)
    try:
        assert not lifecycle.wait_for_workers(timeout=0.2)
        timeouts = [
            r for r in caplog.records if getattr(r, "event", None) == "shutdown_timeout"
        ]
        assert timeouts and timeouts[-1].remaining_workers == 1
    finally:
        release.set()
        thread.join()
