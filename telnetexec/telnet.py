r"""
Execute commands on a remote host through the TELNET protocol.

Telnet protocol specification, :rfc:`854`.  Options negotiated: ECHO
:rfc:`857`, SUPPRESS-GO-AHEAD :rfc:`858`, TERMINAL-TYPE :rfc:`1091` and
WINDOW-SIZE :rfc:`1073`, all others are refused.

Example usage::

    from telnetexec import Telnet

    session = Telnet(host='router1', user='admin', password='secret',
                     timeout=30)
    print(session.exec(['terminal length 0', 'show clock']))
    session.close()

Responses are synchronized on the input prompt of the remote end, found by
the regular expression :attr:`Telnet.input_prompt_template`.
"""

from __future__ import annotations

# std imports
import re
import time
import codecs
import socket
import collections
from typing import Any, List, Union, Callable, Optional, Sequence

# local
from . import errors
from .errors import Failure
from .executor import RemoteExecutor
from .negotiation import IacParser, Negotiator, escape_iac

__all__ = ("Telnet", "ReadResult", "Answer", "FAST", "TOTAL")

#: :meth:`Telnet.get_answer` matches the whole buffer.
TOTAL = 0
#: :meth:`Telnet.get_answer` matches only the last line of the buffer.
FAST = 1

#: Prompts of the remote end asking for credentials.
_AUTH_TYPE = re.compile(r"(login|user|password)", re.IGNORECASE)
_PASSWORD_PROMPT = re.compile(r"password", re.IGNORECASE)
_AUTH_FAILED = re.compile(r"(fail|invalid|error)", re.IGNORECASE | re.MULTILINE | re.DOTALL)

_WHITESPACE = re.compile(r"\s+")


class ReadResult(collections.namedtuple("ReadResult", ["text", "failure"])):
    """Text of one :meth:`Telnet.read`, or the :class:`~.Failure` that ended it."""

    __slots__ = ()


class Answer(collections.namedtuple("Answer", ["text", "match", "index", "failure"])):
    """
    Outcome of :meth:`Telnet.get_answer`.

    ``text`` is the accumulated buffer, ``match`` the match object of the
    pattern numbered ``index``.  When the wait failed, ``match`` and
    ``index`` are ``None`` and ``failure`` holds the :class:`~.Failure`.
    """

    __slots__ = ()


class Telnet(RemoteExecutor):
    """
    Telnet client executing commands on the remote end.

    Accepts all options of :class:`~.RemoteExecutor` and those below.
    """

    port = 23
    timeout = 10
    enable_is_alive_check = True

    #: Remove the echo of the command from the beginning, and the input
    #: prompt from the end, of each response.
    trim_response = True
    #: Answer ECHO in the affirmative.
    terminal_echo_on = False
    #: Answer SUPPRESS-GO-AHEAD in the affirmative.
    terminal_go_ahead = True
    #: Terminal type name, sent by TERMINAL-TYPE.
    terminal_type = "vt100"
    #: Columns sent by WINDOW-SIZE.
    width = 0
    #: Rows sent by WINDOW-SIZE.
    height = 0
    #: Other option bytes answered in the affirmative.
    accept_options: Sequence[bytes] = ()
    #: Appended to each line sent.
    enter_key = "\r"
    #: Regular expression finding the 'ready for input' marker of the remote
    #: end.  This is a heuristic: a line of characters other than ``#>$%``,
    #: ending with one of ``#>$%?``.
    input_prompt_template = r"^[^#>\$\%]+[#>\$\%\?]\s*$"
    #: Codec of the text exchanged.
    encoding = "utf8"
    encoding_errors = "replace"

    #: Maximum bytes received by one :meth:`read`.
    recv_size = 8192

    options = RemoteExecutor.options + (
        "trim_response",
        "terminal_echo_on",
        "terminal_go_ahead",
        "terminal_type",
        "width",
        "height",
        "accept_options",
        "enter_key",
        "input_prompt_template",
        "encoding",
        "encoding_errors",
    )

    _logger_name = "telnetexec.telnet"

    def __init__(self, config: Any = None, **kwargs: Any):
        """Apply the options without connecting."""
        self._parser: Optional[IacParser] = None
        self._decoder: Any = None
        self._negotiator: Optional[Negotiator] = None
        self._banner = ""
        self._input_buffer = ""
        self._input_prompt = ""
        self._last_request = ""
        self._last_timeout: Optional[float] = None
        super().__init__(config, **kwargs)

    # accessors

    def get_input_prompt(self) -> str:
        """Return the input prompt matched by the last command."""
        return self._input_prompt

    def get_input_buffer(self, trimmed: Optional[bool] = None) -> str:
        """
        Return the data last received from the remote end.

        :param trimmed: Apply :meth:`trim`, :attr:`trim_response` when ``None``.
        """
        trimmed = self.trim_response if trimmed is None else trimmed
        if trimmed:
            return self.trim(self._input_buffer)
        return self._input_buffer

    def get_last_timeout(self) -> Optional[float]:
        """Return the seconds waited by the last wait that timed out."""
        return self._last_timeout

    def get_banner(self) -> str:
        """Return the text received before the credentials were asked."""
        return self._banner

    @property
    def last_request(self) -> str:
        return self._last_request

    # connection

    def connect(self) -> socket.socket:
        """Open the TCP connection, resetting the protocol state."""
        sock = socket.create_connection(self.address, timeout=self.timeout)
        self.reset_protocol()
        return sock

    def reset_protocol(self) -> None:
        """Start a new connection's parser, decoder and negotiation state."""
        self._parser = IacParser(log=self.log)
        self._decoder = codecs.getincrementaldecoder(self.encoding)(errors=self.encoding_errors)
        self._negotiator = Negotiator(
            echo_on=self.terminal_echo_on,
            go_ahead=self.terminal_go_ahead,
            terminal_type=self.terminal_type,
            width=self.width,
            height=self.height,
            accept_options=self.accept_options,
            log=self.log,
        )
        self._banner = ""
        self._input_buffer = ""
        self._input_prompt = ""
        self._last_request = ""

    def handshake(self) -> None:
        """
        Receive the first data sent by the remote end, usually a banner.

        Reads carrying only Telnet commands are answered and reading goes
        on, many remote ends send their banner only once negotiation is
        answered.  Remote ends that send nothing until a line is entered
        are usual, so a timeout is not a failure here.
        """
        self.trace("start", "handshake")
        deadline = time.monotonic() + self.timeout
        text = ""
        while not text:
            result = self.read(deadline - time.monotonic())
            if result.failure is not None:
                break
            text += result.text
        if text:
            self._input_buffer = text
        elif result.failure.code == errors.TIMEOUT:
            self._input_buffer = ""
            self.trace("nothing received in {}s".format(self.timeout), "handshake")
        else:
            self.close()
            self.fail(result.failure.code, "handshake", detail=result.failure.detail)

    def authenticate(self) -> bool:
        """
        Log in to the remote end, once per connection.

        When both :attr:`user` and :attr:`password` are empty, authentication
        is skipped.  On failure the connection is closed and one error is
        recorded: :data:`~.AUTH_FAIL` when the remote end reports a failure,
        otherwise the failure that ended the dialogue.
        """
        if self._authenticated:
            return True
        if self._connection is None:
            return False
        if not self.user and not self.password:
            self.trace("User & Password is empty - authentication is disabled", "authenticate")
            self._authenticated = True
            return True

        self.trace("start", "authenticate")
        failure = None
        try:
            failure = self._login()
        finally:
            if not self._authenticated:
                self.close()
        if failure is not None:
            self.fail(failure.code, "authenticate", detail=failure.detail)
            return False
        self.trace("Success", "authenticate")
        return True

    def _login(self) -> Optional[Failure]:
        deadline = time.monotonic() + self.timeout
        match = _AUTH_TYPE.search(self._last_line())
        while match is None:
            result = self.read(deadline - time.monotonic())
            if result.failure is not None:
                if result.failure.code == errors.TIMEOUT:
                    self._last_timeout = self.timeout
                    return Failure(errors.TIMEOUT, self.timeout)
                return result.failure
            self._input_buffer += result.text
            match = _AUTH_TYPE.search(self._last_line())

        auth_type = match.group(1).lower()
        self.trace("method: " + auth_type, "authenticate")
        self._banner = self._input_buffer

        if auth_type in ("user", "login"):
            failure = self._send(self.user + self.enter_key)
            if failure is not None:
                return failure
            answer = self.get_answer(_PASSWORD_PROMPT)
            if answer.failure is not None:
                return answer.failure

        failure = self._send(self.password + self.enter_key)
        if failure is not None:
            return failure

        answer = self.get_answer(
            [self.input_prompt_template, _AUTH_FAILED],
            TOTAL,
            self.timeout,
            [self._on_authenticated, None],
        )
        if answer.failure is not None:
            return answer.failure
        if not self._authenticated:
            return Failure(errors.AUTH_FAIL, _WHITESPACE.sub(" ", answer.text))
        return None

    def _on_authenticated(self, text: str, match: Any) -> None:
        self._authenticated = True

    # commands

    def execute_command(self, command: str, timeout: Optional[float] = None) -> Optional[str]:
        """
        Send ``command`` and wait for the input prompt.

        A timeout is recorded as :data:`~.TIMEOUT_DURING_EXEC`, the command
        may have been partially executed.

        :returns: The response, trimmed when :attr:`trim_response`, or
            ``None`` on failure.
        """
        command = str(command)
        self._last_request = command

        failure = self._send(command + self.enter_key)
        if failure is None:
            answer = self.get_answer(
                self.input_prompt_template, FAST, timeout, [self._on_input_prompt]
            )
            failure = answer.failure
        if failure is not None:
            code = errors.TIMEOUT_DURING_EXEC if failure.code == errors.TIMEOUT else failure.code
            self.fail(code, "execute_command", detail=failure.detail)
            return None

        response = answer.text
        if self.trim_response:
            response = self.trim(response)
        return response

    def _on_input_prompt(self, text: str, match: Any) -> None:
        self._input_prompt = match.group(0)

    def trim(self, response: str) -> str:
        """Remove the echo of the last command and the input prompt."""
        return self.trim_prompt(self.trim_echo(response))

    def trim_echo(self, response: str) -> str:
        """Remove the echo of the last command, then one CR and one LF."""
        for prefix in (self._last_request, "\r", "\n"):
            if prefix and response.startswith(prefix):
                response = response[len(prefix):]
        return response

    def trim_prompt(self, response: str) -> str:
        """Remove the text from the last occurrence of the input prompt."""
        if self._input_prompt:
            pos = response.rfind(self._input_prompt)
            if pos != -1:
                response = response[:pos]
        return response

    # read & write

    def send(self, data: Union[str, bytes]) -> Optional[bool]:
        """
        Send ``data`` to the remote end.

        Strings are encoded and their IAC bytes escaped, bytes are sent
        as-is.

        :returns: ``True``, or ``None`` on failure.
        """
        failure = self._send(data)
        if failure is not None:
            self.fail(failure.code, "send", detail=failure.detail)
            return None
        return True

    def _send(self, data: Union[str, bytes]) -> Optional[Failure]:
        if self._connection is None:
            return Failure(errors.SOCKET_ERROR, "not connected")
        if isinstance(data, str):
            payload = escape_iac(data.encode(self.encoding, self.encoding_errors))
        else:
            payload = data
        try:
            self._connection.settimeout(self.timeout)
            self._connection.sendall(payload)
        except OSError as exc:
            self.close()
            return Failure(errors.SOCKET_ERROR, str(exc) or type(exc).__name__)
        if self.password and isinstance(data, str) and data.rstrip(self.enter_key) == self.password:
            data = "*" * len(data)
        self.trace("bytes [{}], data [{!r}]".format(len(payload), data), "send")
        return None

    def read(self, timeout: Optional[float] = None) -> ReadResult:
        """
        Receive data from the remote end, waiting at most ``timeout`` seconds.

        Telnet commands are separated from the text and answered at once.

        :returns: A :class:`ReadResult`.  Its failure is
            :data:`~.TIMEOUT` when nothing arrived in time,
            :data:`~.CLOSED_BY_REMOTE` when the remote end closed the
            connection (the session is closed), or :data:`~.SOCKET_ERROR`.
        """
        timeout = self.timeout if timeout is None else timeout
        if self._connection is None:
            return ReadResult("", Failure(errors.SOCKET_ERROR, "not connected"))
        if timeout <= 0:
            self._last_timeout = 0
            return ReadResult("", Failure(errors.TIMEOUT, 0))

        try:
            self._connection.settimeout(timeout)
            data = self._connection.recv(self.recv_size)
        except socket.timeout:
            self._last_timeout = timeout
            return ReadResult("", Failure(errors.TIMEOUT, timeout))
        except OSError as exc:
            self.close()
            return ReadResult("", Failure(errors.SOCKET_ERROR, str(exc) or type(exc).__name__))

        if not data:
            self.close()
            return ReadResult("", Failure(errors.CLOSED_BY_REMOTE))

        commands, text = self._parser.feed(data)
        text = self._decoder.decode(text)
        self.trace(
            "bytes [{}],\n\tdata comm [{}],\n\tdata text [{}]".format(
                len(data), ", ".join(str(command) for command in commands), text
            ),
            "read",
        )

        reply = self._negotiator.reply(commands)
        if reply:
            failure = self._send(reply)
            if failure is not None:
                return ReadResult("", failure)
        return ReadResult(text, None)

    def get_answer(
        self,
        patterns: Union[str, "re.Pattern[str]", List[Union[str, "re.Pattern[str]"]]],
        analyze_mode: int = TOTAL,
        timeout: Optional[float] = None,
        callbacks: Union[Callable[[str, Any], Any], List[Optional[Callable[[str, Any], Any]]], None] = None,
    ) -> Answer:
        """
        Read until one of ``patterns`` matches the received data.

        The input buffer is cleared first and accumulates each
        :meth:`read`.  In :data:`FAST` mode the patterns are searched in the
        last line of the buffer, in :data:`TOTAL` mode in the whole buffer.
        The callback of the first matching pattern is called with the buffer
        and the match object.

        :param patterns: Regular expression, or list of them.
        :param analyze_mode: :data:`FAST` or :data:`TOTAL`.
        :param timeout: Seconds to wait for a match, :attr:`timeout` when
            ``None``.
        :param callbacks: Callable, or list of them by pattern index.
        :returns: An :class:`Answer`.  Failures are returned, not recorded.
        """
        if isinstance(patterns, (str, re.Pattern)):
            patterns = [patterns]
        patterns = [re.compile(pattern) if isinstance(pattern, str) else pattern
                    for pattern in patterns]
        if callbacks is None or callable(callbacks):
            callbacks = [callbacks]
        callbacks = list(callbacks) + [None] * (len(patterns) - len(callbacks))
        timeout = timeout or self.timeout

        self._input_buffer = ""
        deadline = time.monotonic() + timeout
        while True:
            result = self.read(deadline - time.monotonic())
            if result.failure is not None:
                if result.failure.code == errors.TIMEOUT:
                    self._last_timeout = timeout
                    result = ReadResult("", Failure(errors.TIMEOUT, timeout))
                return Answer(self._input_buffer, None, None, result.failure)

            self._input_buffer += result.text
            if analyze_mode == FAST:
                subject = self._last_line()
            else:
                subject = self._input_buffer
            for index, pattern in enumerate(patterns):
                match = pattern.search(subject)
                if match is not None:
                    if callbacks[index] is not None:
                        callbacks[index](self._input_buffer, match)
                    return Answer(self._input_buffer, match, index, None)

    def _last_line(self) -> str:
        return self._input_buffer.rpartition("\n")[2]
