import pytest

from binlog_timeline.core.errors import DispatchError, GtidParseError, ProbeError, ReplicationConnectionError, StreamReadError
from binlog_timeline.core.mysql_utils import BinlogFile
from binlog_timeline.tasks.binlog.dispatcher import ProbeResult, dispatch

from .conftest import FakeServer, standard_events


def make_files(count):
    files = [BinlogFile(f"mysql-bin.{i + 1:06d}", 1000 * (i + 1)) for i in range(count)]
    events = {
        f.name: standard_events(1000 * (i + 1), f"s1:1-{10 * i}" if i else "")
        for i, f in enumerate(files)
    }
    return files, events


def test_results_are_placed_by_index(settings, logger):
    files, events = make_files(10)
    server = FakeServer(events, delay=0.001)
    results = dispatch(files, settings, concurrency=4, session_factory=server.session, logger=logger)
    assert len(results) == 10
    for i, result in enumerate(results):
        assert isinstance(result, ProbeResult)
        assert result.index == i
        assert result.start_time == 1000 * (i + 1)
        assert result.error is None
    assert results[3].previous_gtids == "s1:1-30"
    assert sorted(server.closed) == [f.name for f in files]


def test_concurrency_cap(settings, logger):
    files, events = make_files(10)
    server = FakeServer(events, delay=0.01)
    dispatch(files, settings, concurrency=2, session_factory=server.session, logger=logger)
    assert 1 <= server.max_open <= 2
    assert server.open_count == 0


def test_server_ids_are_unique_and_derived_from_index(settings, logger):
    files, events = make_files(6)
    server = FakeServer(events)
    dispatch(files, settings, concurrency=3, server_id_base=100, session_factory=server.session, logger=logger)
    assert server.server_ids == {f.name: 100 + i for i, f in enumerate(files)}


def test_failure_waits_for_all_then_raises(settings, logger):
    files, events = make_files(5)
    server = FakeServer(events)
    server.connect_errors.add(files[1].name)
    server.read_errors.add(files[3].name)
    with pytest.raises(DispatchError) as excinfo:
        dispatch(files, settings, concurrency=2, session_factory=server.session, logger=logger)
    failures = excinfo.value.failures
    assert len(failures) == 2
    assert {type(f) for f in failures} == {ReplicationConnectionError, StreamReadError}
    assert {f.log_name for f in failures} == {files[1].name, files[3].name}
    assert excinfo.value.first is failures[0]
    # 其余文件仍然完成探测
    assert {files[0].name, files[2].name, files[4].name} <= set(server.closed)
    assert logger.error_count == 2


def test_unexpected_exception_is_collected(settings, logger):
    files, events = make_files(3)
    server = FakeServer(events)

    def session_factory(connection_settings, log_name, server_id, logger=None):
        session = server.session(connection_settings, log_name, server_id, logger=logger)
        if log_name == files[1].name:
            def bad_event():
                raise GtidParseError("无效的 GTID 区间: 'x'")
            session.next_event = bad_event
        return session

    with pytest.raises(DispatchError) as excinfo:
        dispatch(files, settings, concurrency=2, session_factory=session_factory, logger=logger)
    failure = excinfo.value.first
    assert type(failure) is ProbeError
    assert failure.log_name == files[1].name
    assert isinstance(failure.__cause__, GtidParseError)
    assert len(excinfo.value.failures) == 1
    assert logger.error_count == 1
    assert sorted(server.closed) == [f.name for f in files]


def test_empty_file_list(settings, logger):
    assert dispatch([], settings, session_factory=FakeServer({}).session, logger=logger) == []


def test_invalid_concurrency(settings, logger):
    with pytest.raises(ValueError):
        dispatch([], settings, concurrency=0, logger=logger)
