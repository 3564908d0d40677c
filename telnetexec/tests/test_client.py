"""Test the 'telnetexec' command-line client."""
# std imports
import sys

# 3rd party
import pexpect
import pytest

# local
from telnetexec.accessories import get_version
from telnetexec.client import run_client
from telnetexec.tests.accessories import bind_host, server_factory  # pytest fixtures


def test_client_executes_commands(server_factory, bind_host, unused_tcp_port):
    """Run the client as a program using a tty (pexpect)."""
    # given,
    server_factory(banner=b'router# ', responses={
        'show clock': b'show clock\r\n12:00:00 UTC\r\nrouter# ',
    })
    args = ['-m', 'telnetexec.client', bind_host, str(unused_tcp_port),
            '--no-alive-check', '--timeout', '2', '-c', 'show clock']

    # exercise,
    proc = pexpect.spawn(sys.executable, args)
    proc.expect('12:00:00 UTC', timeout=10)
    proc.expect(pexpect.EOF, timeout=10)
    proc.close()

    # verify,
    assert proc.exitstatus == 0


def test_client_connection_error(bind_host, unused_tcp_port, capsys):
    exit_code = run_client([bind_host, str(unused_tcp_port),
                            '--no-alive-check', '--timeout', '1',
                            '-c', 'show clock'])
    assert exit_code == 1
    assert capsys.readouterr().err.startswith('Error: open : socket error: ')


def test_client_alive_probe(bind_host, unused_tcp_port, capsys):
    exit_code = run_client([bind_host, str(unused_tcp_port), '--alive'])
    assert exit_code == 1
    assert capsys.readouterr().out == '{}:{} is unreachable\n'.format(
        bind_host, unused_tcp_port)


def test_client_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        run_client(['--version'])
    assert exc_info.value.code == 0
    assert get_version() in capsys.readouterr().out
