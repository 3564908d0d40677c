"""Telnet IAC parsing and option negotiation replies."""
# std imports
import collections
import logging
import struct

# local imports
from .telopt import (DO, DONT, ECHO, IAC, IS, NAWS, NEGOTIATION_VERBS, SB, SE,
                     SEND, SGA, TTYPE, WILL, WONT, name_command)

__all__ = ('ProtocolCommand', 'IacParser', 'Negotiator', 'parse_input')

# bytes value of each byte
_ONE_BYTE = [bytes([i]) for i in range(256)]


class ProtocolCommand(collections.namedtuple(
        'ProtocolCommand', ['cmd', 'opt', 'params'])):
    """
    A single Telnet command parsed from the input stream.

    ``cmd`` is the command byte following IAC.  For WILL, WONT, DO and DONT,
    ``opt`` is the option byte and ``params`` is ``None``.  For a
    sub-negotiation (``cmd`` is SB), ``opt`` is the option byte and
    ``params`` holds the parameter bytes between the option and IAC SE.
    Any other command is bare: both ``opt`` and ``params`` are ``None``.
    """

    __slots__ = ()

    def __new__(cls, cmd, opt=None, params=None):
        return super().__new__(cls, cmd, opt, params)

    @property
    def is_subnegotiation(self):
        """Whether this is an IAC SB ... IAC SE block."""
        return self.cmd == SB

    def to_bytes(self):
        """Return the wire encoding of this command."""
        if self.cmd == SB:
            return b''.join((IAC, SB, self.opt,
                             escape_iac(self.params or b''), IAC, SE))
        return IAC + self.cmd + (self.opt or b'')

    def __str__(self):
        if self.cmd == SB:
            return '{}:{} {!r}'.format(name_command(self.cmd),
                                       name_command(self.opt), self.params)
        if self.opt is not None:
            return '{}:{}'.format(name_command(self.cmd),
                                  name_command(self.opt))
        return name_command(self.cmd)


def escape_iac(buf):
    """Return ``buf`` with each IAC byte doubled for transmission."""
    return buf.replace(IAC, IAC + IAC)


class IacParser:
    """
    Separate Telnet commands from in-band text.

    The parser keeps its state between calls to :meth:`feed`, a command
    interrupted by the end of one socket read is completed by the next.
    """

    def __init__(self, log=None):
        self.log = log or logging.getLogger('telnetexec.negotiation')
        self.reset()

    def reset(self):
        """Discard any partially received command."""
        #: Whether the last byte was an IAC awaiting its command byte.
        self.iac_received = False
        #: WILL, WONT, DO, DONT or SB while awaiting its option byte,
        #: or SB while buffering sub-negotiation parameters.
        self.cmd_received = None
        self._sb_opt = None
        self._sb_buffer = bytearray()

    def feed(self, data):
        """
        Parse bytes received from the remote end.

        :param bytes data: raw bytes from the socket.
        :rtype: tuple
        :returns: ``(commands, text)``: the list of :class:`ProtocolCommand`
            completed by ``data``, in order, and the in-band ``bytes``.
        """
        commands = []
        text = bytearray()
        for value in data:
            byte = _ONE_BYTE[value]
            if self.cmd_received == SB and self._sb_opt is not None:
                self._feed_sb(byte, commands)
            elif self.iac_received:
                self.iac_received = False
                if byte == IAC:
                    # escaped 0xff data byte
                    text.append(value)
                elif byte in NEGOTIATION_VERBS or byte == SB:
                    self.cmd_received = byte
                else:
                    commands.append(ProtocolCommand(byte))
            elif self.cmd_received is not None:
                # option byte of WILL, WONT, DO, DONT or SB
                cmd, self.cmd_received = self.cmd_received, None
                if cmd == SB:
                    self.cmd_received = SB
                    self._sb_opt = byte
                else:
                    commands.append(ProtocolCommand(cmd, byte))
            elif byte == IAC:
                self.iac_received = True
            else:
                text.append(value)
        return commands, bytes(text)

    def _feed_sb(self, byte, commands):
        if not self.iac_received:
            if byte == IAC:
                self.iac_received = True
            else:
                self._sb_buffer.extend(byte)
            return

        self.iac_received = False
        if byte == IAC:
            # sub-negotiation buffer receives escaped IAC values
            self._sb_buffer.extend(IAC)
        elif byte == SE:
            commands.append(ProtocolCommand(SB, self._sb_opt,
                                            bytes(self._sb_buffer)))
            self._end_sb()
        else:
            self.log.warning('sub-negotiation {} interrupted by IAC {}'.format(
                name_command(self._sb_opt), name_command(byte)))
            self._end_sb()
            if byte in NEGOTIATION_VERBS or byte == SB:
                self.cmd_received = byte
            else:
                commands.append(ProtocolCommand(byte))

    def _end_sb(self):
        self.cmd_received = None
        self._sb_opt = None
        self._sb_buffer = bytearray()


def parse_input(data):
    """
    Parse a complete buffer into ``(commands, text)``.

    Example::

        >>> parse_input(b'\\xff\\xfd\\x18login: ')
        ([ProtocolCommand(cmd=b'\\xfd', opt=b'\\x18', params=None)], b'login: ')
    """
    return IacParser().feed(data)


class Negotiator:
    """
    Build the replies of a Telnet client to commands of the remote end.

    :param bool echo_on: answer ECHO in the affirmative.
    :param bool go_ahead: answer SUPPRESS-GO-AHEAD in the affirmative.
    :param str terminal_type: value sent by TERMINAL-TYPE, :rfc:`1091`.
    :param int width: columns sent by WINDOW-SIZE, :rfc:`1073`.
    :param int height: rows sent by WINDOW-SIZE.
    :param accept_options: other option bytes answered in the affirmative.
    :param str encoding: codec of ``terminal_type`` on the wire.
    """

    def __init__(self, echo_on=False, go_ahead=True, terminal_type='vt100',
                 width=0, height=0, accept_options=(), encoding='ascii',
                 log=None):
        self.echo_on = echo_on
        self.go_ahead = go_ahead
        self.terminal_type = terminal_type
        self.width = width
        self.height = height
        self.accept_options = tuple(accept_options)
        self.encoding = encoding
        self.log = log or logging.getLogger('telnetexec.negotiation')

    def reply(self, commands):
        """Return bytes answering ``commands``, empty when none is due."""
        out = []
        for command in commands:
            if command.cmd in (WILL, DO):
                out.append(self.reply_option(command.cmd, command.opt))
            elif command.cmd == SB:
                out.append(self.reply_subnegotiation(command.opt,
                                                     command.params))
        return b''.join(out)

    def reply_option(self, cmd, opt):
        """
        Answer (IAC, WILL, opt) or (IAC, DO, opt).

        Derive this method to change or extend the accepted options.
        """
        positive, negative = (DO, DONT) if cmd == WILL else (WILL, WONT)
        if opt == ECHO:
            answer = positive if self.echo_on else negative
        elif opt == SGA:
            answer = positive if self.go_ahead else negative
        elif opt == TTYPE:
            self.log.debug('send IAC WILL TTYPE, IAC SB TTYPE IS {!r} IAC SE'
                           .format(self.terminal_type))
            return IAC + WILL + TTYPE + self.ttype_is()
        elif opt == NAWS:
            self.log.debug('send IAC WILL NAWS, IAC SB NAWS (cols={}, rows={}) '
                           'IAC SE'.format(self.width, self.height))
            return IAC + WILL + NAWS + self.naws()
        elif opt in self.accept_options:
            answer = positive
        else:
            answer = negative
        self.log.debug('recv IAC {} {}: send IAC {} {}'.format(
            name_command(cmd), name_command(opt),
            name_command(answer), name_command(opt)))
        return IAC + answer + opt

    def reply_subnegotiation(self, opt, params):
        """Answer (IAC, SB, opt, params, IAC, SE), only TTYPE SEND is."""
        if opt == TTYPE and params[:1] == SEND:
            self.log.debug('recv IAC SB TTYPE SEND: send IAC SB TTYPE IS {!r}'
                           .format(self.terminal_type))
            return self.ttype_is()
        self.log.debug('recv IAC SB {} {!r} ignored'.format(
            name_command(opt), params))
        return b''

    def ttype_is(self):
        """Return IAC SB TTYPE IS <terminal_type> IAC SE."""
        value = self.terminal_type.encode(self.encoding, 'replace')
        return ProtocolCommand(SB, TTYPE, IS + value).to_bytes()

    def naws(self):
        """Return IAC SB NAWS <width> <height> IAC SE."""
        # NAWS limits columns and rows to a size of 0-65535 (unsigned short).
        cols = max(min(65535, self.width), 0)
        rows = max(min(65535, self.height), 0)
        return ProtocolCommand(SB, NAWS, struct.pack('!HH', cols, rows)).to_bytes()
