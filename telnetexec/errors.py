"""Error codes, records and the exception raised by :mod:`telnetexec`."""
# std imports
import collections

__all__ = ('HOST_EMPTY', 'CANNOT_CONNECT', 'AUTH_FAIL', 'HOST_UNREACHABLE',
           'SOCKET_ERROR', 'CLOSED_BY_REMOTE', 'TIMEOUT', 'TIMEOUT_DURING_EXEC',
           'ErrorRecord', 'Failure', 'RemoteExecutorError', 'name_error',
           'default_message')

HOST_EMPTY = 1
CANNOT_CONNECT = 2
AUTH_FAIL = 3
HOST_UNREACHABLE = 4
SOCKET_ERROR = 5
CLOSED_BY_REMOTE = 6
#: A protocol wait (banner, login prompts) expired.
TIMEOUT = 7
#: Waiting for the response of a command expired; the command may have
#: partially executed on the remote end.
TIMEOUT_DURING_EXEC = 8

_ERROR_NAMES = dict(
    [
        (value, key)
        for key, value in globals().items()
        if key in __all__ and isinstance(value, int)
    ]
)


def name_error(code):
    """Return the name of error ``code``, ``'TIMEOUT'`` for ``7``."""
    return _ERROR_NAMES.get(code, repr(code))


def default_message(code, detail=None):
    """Return the human message for error ``code``."""
    if code == HOST_EMPTY:
        return 'Host is empty'
    if code == CANNOT_CONNECT:
        return 'Unable to connect to [{}]'.format(detail)
    if code == AUTH_FAIL:
        return 'Authentication failed'
    if code == HOST_UNREACHABLE:
        return 'Host [{}] is unreachable'.format(detail)
    if code == SOCKET_ERROR:
        return 'socket error: {}'.format(detail)
    if code == CLOSED_BY_REMOTE:
        return 'connection is closed by the remote side'
    if code == TIMEOUT:
        return 'timeout'
    if code == TIMEOUT_DURING_EXEC:
        return 'the command execution timeout'
    return 'unknown'


class ErrorRecord(collections.namedtuple(
        'ErrorRecord', ['source', 'message', 'code', 'detail'])):
    """A failure, as stored by the error sink of a session."""

    __slots__ = ()

    @property
    def name(self):
        return name_error(self.code)

    def __str__(self):
        return ' : '.join(str(value) for value in self if value is not None)


class Failure(collections.namedtuple('Failure', ['code', 'detail'])):
    """Outcome of a read or wait that did not produce data."""

    __slots__ = ()

    def __new__(cls, code, detail=None):
        return super().__new__(cls, code, detail)

    def __str__(self):
        return '{}({!r})'.format(name_error(self.code), self.detail)


class RemoteExecutorError(Exception):
    """
    Raised for a failure when ``error_silent`` is ``False``.

    The instance carries the same :class:`ErrorRecord` stored in the
    error sink as attribute ``record``.
    """

    def __init__(self, record):
        super().__init__(record.message)
        self.record = record

    @property
    def code(self):
        return self.record.code

    @property
    def source(self):
        return self.record.source

    @property
    def message(self):
        return self.record.message

    @property
    def detail(self):
        return self.record.detail
