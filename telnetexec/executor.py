r"""
Remote command execution over an interactive protocol.

:class:`RemoteExecutor` holds everything a protocol backend shares: the
configuration, opening and closing the connection, running batches of
commands, and recording failures.  A backend such as
:class:`~telnetexec.telnet.Telnet` supplies :meth:`~.RemoteExecutor.connect`,
:meth:`~.RemoteExecutor.authenticate` and
:meth:`~.RemoteExecutor.execute_command`.

Example usage::

    from telnetexec import Telnet

    with Telnet(host='router1', user='admin', password='secret') as session:
        result = session.exec(['terminal length 0', 'show clock'])
        if result is None:
            print(session.get_last_error())
"""

from __future__ import annotations

# std imports
import time
import socket
import logging
from typing import Any, List, Union, Mapping, Optional

# local
from . import errors
from .errors import ErrorRecord, RemoteExecutorError
from .diagnostics import DebugSink, ErrorSink

__all__ = ("RemoteExecutor",)


class RemoteExecutor:
    """
    Base class of remote command executors.

    Options are given as a mapping, as keyword arguments, or both, to the
    class initializer or to :meth:`open`.  A string in place of the mapping
    is the host.  Options not named by :attr:`options` raise
    :exc:`TypeError`.

    :param config: Mapping of options, or host name.
    :param kwargs: Options.
    """

    #: Target host name or address.
    host: Optional[str] = None
    #: Target TCP port.
    port: Optional[int] = None
    #: User name for authentication.
    user: str = ""
    #: Password for authentication.
    password: str = ""
    #: Default seconds to wait for the remote end.
    timeout: float = 10
    #: When ``True`` failures are only recorded; when ``False`` they are also
    #: raised as :exc:`~.RemoteExecutorError`.
    error_silent: bool = True
    #: Destination of the debug trace, see :mod:`telnetexec.diagnostics`.
    debug: Any = True
    #: Destination of error records, see :mod:`telnetexec.diagnostics`.
    error: Any = True
    #: Probe the host with :meth:`is_alive` before connecting.
    enable_is_alive_check: bool = False

    #: Names of the recognized options.
    options = (
        "host",
        "port",
        "user",
        "password",
        "timeout",
        "error_silent",
        "debug",
        "error",
        "enable_is_alive_check",
    )

    _logger_name = "telnetexec.executor"

    def __init__(self, config: Union[Mapping[str, Any], str, None] = None, **kwargs: Any):
        """Apply the options without connecting."""
        self.log = logging.getLogger(self._logger_name)
        self._connection: Any = None
        self._authenticated = False
        self._debug_sink: Optional[DebugSink] = None
        self._error_sink: Optional[ErrorSink] = None
        self.configure(config, **kwargs)

    def __repr__(self) -> str:
        return "<{} {}:{} {}>".format(type(self).__name__, self.host, self.port, self.state)

    def __enter__(self) -> "RemoteExecutor":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def configure(self, config: Union[Mapping[str, Any], str, None] = None, **kwargs: Any) -> None:
        """
        Apply options onto this instance.

        The debug and error sinks are created on first use, and created anew
        whenever option ``debug`` or ``error`` is given.

        :raises TypeError: For an unknown option name.
        """
        if isinstance(config, str):
            config = {"host": config}
        options = dict(config or {}, **kwargs)
        unknown = sorted(set(options) - set(self.options))
        if unknown:
            raise TypeError(
                "{} got unknown option(s): {}".format(type(self).__name__, ", ".join(unknown))
            )
        for key, value in options.items():
            setattr(self, key, value)
        if self._debug_sink is None or "debug" in options:
            self._debug_sink = DebugSink(self.debug)
        if self._error_sink is None or "error" in options:
            self._error_sink = ErrorSink(self.error)

    # state

    @property
    def connection(self) -> Any:
        """The open connection handle, or ``None``."""
        return self._connection

    @property
    def address(self) -> tuple:
        """The ``(host, port)`` connected to."""
        return (self.host, self.port)

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    @property
    def state(self) -> str:
        """One of ``'disconnected'``, ``'connected'`` or ``'authenticated'``."""
        if self._connection is None:
            return "disconnected"
        return "authenticated" if self._authenticated else "connected"

    # lifecycle

    def open(self, config: Union[Mapping[str, Any], str, None] = None) -> Any:
        """
        Open the connection to the remote host and authenticate.

        When ``config`` is given, any open connection is closed and the
        options are applied first.  Otherwise an already open connection is
        returned as-is.

        :param config: Mapping of options, or host name.
        :returns: The connection handle, or ``None`` on failure.
        """
        if config:
            if self._connection is not None:
                self.close()
            self.configure(config)

        if self._connection is not None:
            return self._connection

        if not self.host:
            self.fail(errors.HOST_EMPTY, "open")
            return None

        self.trace(time.strftime("%Y.%m.%d %H:%M:%S"), "open")

        if self.enable_is_alive_check:
            if not self.is_alive():
                self.fail(errors.HOST_UNREACHABLE, "open", detail=self.host)
                return None
            self.trace("Host [{}] is alive".format(self.host), "open")

        try:
            connection = self.connect()
        except OSError as exc:
            self.fail(errors.SOCKET_ERROR, "open", detail=str(exc) or type(exc).__name__)
            return None
        if connection is None:
            self.fail(errors.CANNOT_CONNECT, "open", detail=self.host)
            return None

        self._connection = connection
        self.log.info("Connected to %s:%s", self.host, self.port)
        self.trace("Connected to [{}:{}]".format(self.host, self.port), "open")

        try:
            self.handshake()
            if self._connection is not None:
                self.authenticate()
        except BaseException:
            self.close()
            raise

        return self._connection

    def close(self) -> None:
        """Close the connection; does nothing when already closed."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        self._authenticated = False
        close = getattr(connection, "close", None)
        if close is not None:
            close()
        self.log.info("Connection closed to %s:%s", self.host, self.port)
        self.trace("OK", "close")

    def exec(
        self, command: Union[str, List[str]], timeout: Optional[float] = None
    ) -> Union[str, List[str], None]:
        """
        Execute a command, or a list of commands, on the remote host.

        The connection is opened and authenticated when necessary.  A string
        containing newlines is executed as several commands.  Commands run
        in order; the first failure stops the batch and the responses
        already collected are discarded.

        :param command: Command string or list of command strings.
        :param timeout: Seconds to wait for each response, the default
            :attr:`timeout` when ``None``.
        :returns: The response string when ``command`` is a string holding a
            single command, otherwise the list of responses in order.
            ``None`` on failure, see :meth:`get_last_error`.
        """
        if self.open() is None or not self.authenticate():
            return None

        results = []
        for single_command in self.prepare_command(command):
            response = self.execute_command(single_command, timeout)
            if response is None:
                return None
            results.append(response)

        if len(results) == 1 and isinstance(command, str):
            return results[0]
        return results

    def is_alive(self, timeout: Optional[float] = None) -> bool:
        """
        Check whether the host accepts TCP connections on :attr:`port`.

        A separate connection is opened and closed at once, the session is
        not changed.

        :param timeout: Seconds to wait, :attr:`timeout` or 5 when ``None``.
        """
        if not self.host:
            return False
        timeout = timeout or self.timeout or 5
        try:
            with socket.create_connection(self.address, timeout=timeout):
                return True
        except OSError as exc:
            self.log.debug("%s:%s is not alive: %s", self.host, self.port, exc)
            return False

    # diagnostics

    def get_last_error(self) -> Optional[ErrorRecord]:
        """Return the last :class:`~.ErrorRecord`, or ``None``."""
        return self._error_sink.get_last_message()

    def get_errors(self) -> List[ErrorRecord]:
        return self._error_sink.get_messages()

    def get_debug(self) -> List[str]:
        return self._debug_sink.get_messages()

    def clear_buffers(self, kind: str = "all") -> None:
        """
        Clear the error buffer, the debug buffer, or both.

        :param kind: ``'all'``, ``'error'`` or ``'debug'``.
        """
        if kind not in ("all", "error", "debug"):
            raise ValueError("kind must be 'all', 'error' or 'debug', not {!r}".format(kind))
        if kind in ("all", "error"):
            self._error_sink.init(self.error)
        if kind in ("all", "debug"):
            self._debug_sink.init(self.debug)

    def fail(
        self,
        code: int,
        source: str = "",
        message: Optional[str] = None,
        detail: Any = None,
    ) -> ErrorRecord:
        """
        Record a failure in the error and debug sinks.

        :raises RemoteExecutorError: When :attr:`error_silent` is ``False``.
        :returns: The stored :class:`~.ErrorRecord`.
        """
        record = ErrorRecord(source, message or self.error_message(code, detail), code, detail)
        self._error_sink.save(record, source)
        self._debug_sink.save("ERROR: " + record.message, source)
        self.log.warning("%s: %s (%s)", source, record.message, errors.name_error(code))
        if not self.error_silent:
            raise RemoteExecutorError(record)
        return record

    def error_message(self, code: int, detail: Any = None) -> str:
        """Return the message of a failure without an explicit message."""
        return errors.default_message(code, detail)

    def trace(self, message: Any, source: str = "") -> None:
        """Add ``message`` to the debug trace."""
        if not self.debug:
            return
        self._debug_sink.save(message, source)
        self.log.debug("%s : %s", source, message)

    # protocol backends derive these

    def connect(self) -> Any:
        """
        Connect to :attr:`host` and return the connection handle.

        :raises OSError: When the connection cannot be made.
        :returns: The handle, or ``None`` when the connection cannot be made.
        """
        raise NotImplementedError

    def handshake(self) -> None:
        """Exchange the first data after connecting."""

    def authenticate(self) -> bool:
        """
        Authenticate the session, once per connection.

        The default implementation requires no authentication.
        """
        if self._connection is None:
            return False
        self._authenticated = True
        return True

    def prepare_command(self, command: Union[str, List[str]]) -> List[str]:
        """Return the list of single commands held by ``command``."""
        if isinstance(command, str):
            return command.split("\n")
        return list(command)

    def execute_command(self, command: str, timeout: Optional[float] = None) -> Optional[str]:
        """Execute one command, return its response or ``None`` on failure."""
        raise NotImplementedError
