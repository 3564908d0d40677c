"""Test the protocol independent RemoteExecutor."""
# std imports
import io

# 3rd party
import pytest

# local imports
from telnetexec import errors
from telnetexec.errors import RemoteExecutorError
from telnetexec.executor import RemoteExecutor


class FakeConnection:
    closed = False

    def close(self):
        self.closed = True


class EchoExecutor(RemoteExecutor):
    """Executor answering each command by its upper case, 'fail' fails."""

    def __init__(self, config=None, **kwargs):
        self.executed = []
        self.connections = []
        super().__init__(config, **kwargs)

    def connect(self):
        connection = FakeConnection()
        self.connections.append(connection)
        return connection

    def execute_command(self, command, timeout=None):
        self.executed.append(command)
        if command == 'fail':
            self.fail(errors.TIMEOUT_DURING_EXEC, 'execute_command')
            return None
        return command.upper()


def test_options_from_mapping_and_keywords():
    executor = EchoExecutor({'host': 'router1', 'timeout': 3}, user='admin')
    assert (executor.host, executor.timeout, executor.user) == ('router1', 3, 'admin')
    assert EchoExecutor('router2').host == 'router2'


def test_unknown_option():
    with pytest.raises(TypeError):
        EchoExecutor(host='router1', colour='blue')


def test_prepare_command():
    executor = EchoExecutor()
    assert executor.prepare_command('a\nb') == ['a', 'b']
    assert executor.prepare_command('a') == ['a']
    assert executor.prepare_command(('a', 'b')) == ['a', 'b']


def test_exec_string_returns_string():
    executor = EchoExecutor(host='router1')
    assert executor.exec('show clock') == 'SHOW CLOCK'
    assert executor.state == 'authenticated'


def test_exec_list_returns_list():
    executor = EchoExecutor(host='router1')
    assert executor.exec(['a']) == ['A']
    assert executor.exec('a\nb') == ['A', 'B']
    # one connection for all commands,
    assert len(executor.connections) == 1


def test_exec_batch_stops_at_first_failure():
    """Commands after a failure are not executed, partial results discarded."""
    executor = EchoExecutor(host='router1')
    assert executor.exec(['a', 'fail', 'b']) is None
    assert executor.executed == ['a', 'fail']
    assert [record.code for record in executor.get_errors()] == [
        errors.TIMEOUT_DURING_EXEC]


def test_open_empty_host():
    executor = EchoExecutor()
    assert executor.open() is None
    assert executor.exec('a') is None
    last_error = executor.get_last_error()
    assert last_error.code == errors.HOST_EMPTY
    assert last_error.source == 'open'
    assert last_error.message == 'Host is empty'
    assert executor.connections == []


def test_open_connect_refused():
    class NoConnection(EchoExecutor):
        def connect(self):
            return None

    executor = NoConnection(host='router1')
    assert executor.open() is None
    assert executor.get_last_error().code == errors.CANNOT_CONNECT
    assert executor.get_last_error().message == 'Unable to connect to [router1]'


def test_open_is_idempotent():
    executor = EchoExecutor(host='router1')
    connection = executor.open()
    assert executor.open() is connection
    assert len(executor.connections) == 1


def test_open_new_config_reconnects():
    executor = EchoExecutor(host='router1')
    first = executor.open()
    second = executor.open({'host': 'router2'})
    assert first.closed
    assert second is not first
    assert executor.host == 'router2'


def test_raise_mode_carries_the_recorded_error():
    executor = EchoExecutor(error_silent=False)
    with pytest.raises(RemoteExecutorError) as exc_info:
        executor.open()
    assert exc_info.value.code == errors.HOST_EMPTY
    assert exc_info.value.record == executor.get_last_error()
    assert len(executor.get_errors()) == 1


def test_debug_trace_records_errors():
    executor = EchoExecutor()
    executor.open()
    assert executor.get_debug()[-1] == 'open : ERROR: Host is empty'


def test_debug_disabled():
    executor = EchoExecutor(host='router1', debug=None)
    executor.exec('a')
    assert executor.get_debug() == []


def test_clear_buffers():
    executor = EchoExecutor()
    executor.open()
    executor.clear_buffers('debug')
    assert executor.get_debug() == []
    assert len(executor.get_errors()) == 1
    executor.clear_buffers('error')
    assert executor.get_errors() == []
    assert executor.get_last_error() is None
    with pytest.raises(ValueError):
        executor.clear_buffers('everything')


def test_error_stream_destination():
    stream = io.StringIO()
    executor = EchoExecutor(error=stream)
    executor.open()
    assert stream.getvalue() == 'open : Host is empty : 1\n'
    assert executor.get_errors() == []


def test_context_manager_closes():
    with EchoExecutor(host='router1') as executor:
        executor.exec('a')
        connection = executor.connection
        assert executor.state == 'authenticated'
    assert connection.closed
    assert executor.state == 'disconnected'
    executor.close()


def test_base_class_requires_backend():
    executor = RemoteExecutor(host='router1')
    with pytest.raises(NotImplementedError):
        executor.open()
    with pytest.raises(NotImplementedError):
        executor.execute_command('a')
