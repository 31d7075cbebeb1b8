"""Tests for the writer-preferring ReadWriteLock."""

from __future__ import annotations

import threading
import time

from reach.utils.locks import ReadWriteLock


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(3, timeout=5)

    def reader() -> None:
        with lock.read():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)
    assert not any(t.is_alive() for t in threads)


def test_writer_excludes_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []
    lock.acquire_write()

    def reader() -> None:
        with lock.read():
            events.append("read")

    t = threading.Thread(target=reader)
    t.start()
    time.sleep(0.05)
    events.append("write-done")
    lock.release_write()
    t.join(timeout=5)
    assert events == ["write-done", "read"]


def test_waiting_writer_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []
    lock.acquire_read()

    def writer() -> None:
        with lock.write():
            events.append("write")

    def late_reader() -> None:
        with lock.read():
            events.append("late-read")

    w = threading.Thread(target=writer)
    w.start()
    time.sleep(0.05)
    r = threading.Thread(target=late_reader)
    r.start()
    time.sleep(0.05)
    assert events == []
    lock.release_read()
    w.join(timeout=5)
    r.join(timeout=5)
    assert events == ["write", "late-read"]


def test_counter_consistency_under_contention() -> None:
    lock = ReadWriteLock()
    counter = {"n": 0}

    def bump() -> None:
        for _ in range(200):
            with lock.write():
                value = counter["n"]
                counter["n"] = value + 1

    threads = [threading.Thread(target=bump) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert counter["n"] == 1600
