"""Unit tests for ReadWriteLock."""

import threading
import time

import pytest

from voter_api.rwlock import ReadWriteLock


def wait_until(predicate, timeout: float = 2.0) -> bool:
    """Poll predicate until it holds or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.mark.concurrency
class TestReadWriteLock:
    """Shared/exclusive semantics."""

    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        readers = 3
        # Every reader must be inside the lock at the same time to pass the barrier
        barrier = threading.Barrier(readers, timeout=2.0)
        errors = []

        def reader():
            try:
                with lock.read_locked():
                    barrier.wait()
            except threading.BrokenBarrierError as e:
                errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(readers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)

        assert errors == []

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        reader_entered = threading.Event()

        def reader():
            with lock.read_locked():
                reader_entered.set()

        lock.acquire_write()
        thread = threading.Thread(target=reader)
        thread.start()

        assert not reader_entered.wait(0.1)

        lock.release_write()
        assert reader_entered.wait(2.0)
        thread.join(timeout=2.0)

    def test_writer_excludes_writers(self):
        lock = ReadWriteLock()
        second_entered = threading.Event()

        def writer():
            with lock.write_locked():
                second_entered.set()

        lock.acquire_write()
        thread = threading.Thread(target=writer)
        thread.start()

        assert not second_entered.wait(0.1)

        lock.release_write()
        assert second_entered.wait(2.0)
        thread.join(timeout=2.0)

    def test_waiting_writer_goes_before_new_readers(self):
        lock = ReadWriteLock()
        order = []

        def writer():
            with lock.write_locked():
                order.append("writer")

        def late_reader():
            with lock.read_locked():
                order.append("reader")

        lock.acquire_read()

        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        assert wait_until(lambda: lock._writers_waiting == 1)

        reader_thread = threading.Thread(target=late_reader)
        reader_thread.start()
        time.sleep(0.1)
        assert order == []

        lock.release_read()
        writer_thread.join(timeout=2.0)
        reader_thread.join(timeout=2.0)

        assert order == ["writer", "reader"]

    def test_lock_released_when_block_raises(self):
        lock = ReadWriteLock()

        with pytest.raises(ValueError):
            with lock.write_locked():
                raise ValueError("boom")

        # Would block forever if the write lock were still held
        acquired = threading.Event()

        def reader():
            with lock.read_locked():
                acquired.set()

        thread = threading.Thread(target=reader)
        thread.start()
        assert acquired.wait(2.0)
        thread.join(timeout=2.0)

    def test_release_without_acquire_raises(self):
        lock = ReadWriteLock()

        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()
