"""Shared fixtures"""
import errno
import os
import time

import pytest


@pytest.fixture
def fifo(tmp_path):
    """A named pipe in the workspace: a scan reading it blocks until we write"""
    if not hasattr(os, "mkfifo"):
        pytest.skip("named pipes are not available")
    path = tmp_path / "pipe.txt"
    os.mkfifo(path)
    return path


def open_fifo_writer(path, timeout=5.0):
    """Open the write end once a reader has opened the pipe"""
    deadline = time.monotonic() + timeout
    while True:
        try:
            return os.open(path, os.O_WRONLY | os.O_NONBLOCK)
        except OSError as e:
            if e.errno != errno.ENXIO or time.monotonic() > deadline:
                raise
            time.sleep(0.01)


@pytest.fixture
def fifo_writer():
    return open_fifo_writer
