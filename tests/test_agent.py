"""Tests for ScanAgent"""
import os
import threading

import pytest

from open_tasks.agent import ScanAgent
from open_tasks.errors import ConfigurationError, ScanCancelled
from open_tasks.models import FileSetSpec, PriorityTier, Report, ScanRequest, TagConfig


def scan_request(**file_set):
    return ScanRequest(
        tags=TagConfig(high="FIXME", normal="TODO", low="NOTE"),
        file_set=FileSetSpec(**file_set))


def test_report_order_is_stable(tmp_path):
    """Tasks come back ordered by file then line whatever the pool does"""
    (tmp_path / "z.txt").write_text("TODO last file\n")
    (tmp_path / "a.txt").write_text("x\nNOTE second\nFIXME first? no, third line\n")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "m.txt").write_text("TODO nested\n")

    for _ in range(5):
        report = ScanAgent(max_workers=4).run(scan_request(), tmp_path)
        assert [(t.file, t.line) for t in report.tasks] == [
            ("a.txt", 2), ("a.txt", 3), ("sub/m.txt", 1), ("z.txt", 1)]

    assert report.count(PriorityTier.HIGH) == 1
    assert report.count(PriorityTier.NORMAL) == 2
    assert report.files() == ["a.txt", "sub/m.txt", "z.txt"]


def test_unreadable_file_does_not_abort_scan(tmp_path):
    """A file that cannot be decoded is reported apart from the tasks"""
    (tmp_path / "bad.txt").write_bytes(b"\xff\xfe TODO broken\n")
    (tmp_path / "good.txt").write_text("TODO fine\n")

    report = ScanAgent().run(scan_request(), tmp_path)

    assert [t.file for t in report.tasks] == ["good.txt"]
    assert [e.file for e in report.errors] == ["bad.txt"]
    assert any("could not be read" in line for line in report.info)


def test_requested_encoding_is_used(tmp_path):
    (tmp_path / "latin.txt").write_bytes("TODO caf\xe9\n".encode("latin-1"))
    request = ScanRequest(tags=TagConfig(normal="TODO"), encoding="latin-1")

    report = ScanAgent().run(request, tmp_path)

    assert report.tasks[0].message == "caf\xe9"
    assert not report.errors


def test_file_set_is_applied(tmp_path):
    (tmp_path / "A.java").write_text("// TODO a\n")
    (tmp_path / "TestA.java").write_text("// TODO test\n")
    (tmp_path / "B.txt").write_text("TODO text\n")

    report = ScanAgent().run(
        scan_request(include_pattern="**/*.java", exclude_pattern="**/Test*.java"), tmp_path)

    assert [t.file for t in report.tasks] == ["A.java"]
    assert "-> found 1 files that will be scanned" in report.info


def test_configuration_errors_come_before_file_access(tmp_path):
    """No file is touched when the tags cannot be compiled"""

    class UntouchableResolver:
        def resolve(self, root, file_set):
            raise AssertionError("files must not be resolved")

    agent = ScanAgent(resolver=UntouchableResolver())

    with pytest.raises(ConfigurationError) as exc_info:
        agent.run(ScanRequest(tags=TagConfig()), tmp_path)
    assert exc_info.value.errors == ["No task identifiers configured"]


def test_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        ScanAgent().run(scan_request(), tmp_path / "missing")


def test_cancelled_scan_returns_no_report(tmp_path):
    """A cancelled scan raises instead of handing back a partial report"""
    for i in range(20):
        (tmp_path / f"f{i}.txt").write_text("TODO x\n" * 50)
    cancel_event = threading.Event()
    cancel_event.set()

    result = None
    with pytest.raises(ScanCancelled):
        result = ScanAgent(max_workers=2).run(scan_request(), tmp_path, cancel_event)
    assert result is None


def test_empty_tree(tmp_path):
    report = ScanAgent().run(scan_request(), tmp_path)

    assert isinstance(report, Report)
    assert report.is_empty()
    assert report.size == 0
    assert report.info[-1] == "Found 0 open tasks in 0 files"


def test_cancel_while_files_are_being_read(tmp_path, fifo, fifo_writer):
    """Cancelling during the scan raises and hands back no report"""
    for i in range(10):
        (tmp_path / f"f{i}.txt").write_text("TODO x\n" * 100)
    cancel_event = threading.Event()
    outcome = {}

    def run_scan():
        try:
            outcome["report"] = ScanAgent(max_workers=2).run(scan_request(), tmp_path, cancel_event)
        except ScanCancelled as e:
            outcome["error"] = e

    runner = threading.Thread(target=run_scan)
    runner.start()

    # The reader is blocked inside the scan until the pipe gets data
    fd = fifo_writer(fifo)
    cancel_event.set()
    os.write(fd, b"TODO one\nTODO two\n")
    os.close(fd)
    runner.join(timeout=10)

    assert not runner.is_alive()
    assert "report" not in outcome
    assert isinstance(outcome["error"], ScanCancelled)
