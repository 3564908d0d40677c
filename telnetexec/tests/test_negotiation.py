"""Test IAC parsing and negotiation replies, :rfc:`854`."""
# std imports
import struct

# 3rd party
import pytest

# local imports
from telnetexec.negotiation import (IacParser, Negotiator, ProtocolCommand,
                                    parse_input)
from telnetexec.telopt import (DO, DONT, ECHO, GA, IAC, IS, NAWS, NOP, SB, SE,
                               SEND, SGA, STATUS, TTYPE, WILL, WONT,
                               name_command, name_commands)


def test_parse_plain_text():
    """Bytes without IAC are all text."""
    assert parse_input(b'Username: ') == ([], b'Username: ')


def test_parse_interleaved_commands_and_text():
    """Commands and text are recovered in order, without loss."""
    # given,
    segments = [
        (None, b'\r\nUser Access Verification\r\n'),
        (ProtocolCommand(DO, TTYPE), None),
        (ProtocolCommand(WILL, ECHO), b'\r\n'),
        (ProtocolCommand(SB, TTYPE, SEND), None),
        (ProtocolCommand(NOP), b'Username'),
        (ProtocolCommand(DONT, NAWS), b': '),
        (ProtocolCommand(GA), None),
    ]
    buf = b''
    given_commands, given_text = [], b''
    for command, text in segments:
        if command is not None:
            buf += command.to_bytes()
            given_commands.append(command)
        if text is not None:
            buf += text
            given_text += text

    # exercise,
    commands, text = parse_input(buf)

    # verify,
    assert commands == given_commands
    assert text == given_text


def test_parse_split_between_feeds():
    """A command interrupted by the end of a read completes on the next."""
    # given,
    buf = (b'login' + IAC + DO + ECHO + b': ' +
           IAC + SB + TTYPE + SEND + IAC + SE + b'!')
    parser = IacParser()

    # exercise, one byte at a time,
    commands, text = [], b''
    for value in buf:
        _commands, _text = parser.feed(bytes([value]))
        commands.extend(_commands)
        text += _text

    # verify,
    assert commands == [ProtocolCommand(DO, ECHO),
                        ProtocolCommand(SB, TTYPE, SEND)]
    assert text == b'login: !'


def test_parse_escaped_iac():
    """IAC IAC is the data byte 255, in text and in sub-negotiation."""
    commands, text = parse_input(
        b'a' + IAC + IAC + b'b' + IAC + SB + NAWS + b'\x00' + IAC + IAC +
        b'\x00\x10' + IAC + SE)
    assert text == b'a\xffb'
    assert commands == [ProtocolCommand(SB, NAWS, b'\x00\xff\x00\x10')]


def test_parse_interrupted_subnegotiation():
    """An IAC other than SE inside SB abandons the sub-negotiation."""
    commands, text = parse_input(
        IAC + SB + TTYPE + b'xy' + IAC + WILL + ECHO + b'ok')
    assert commands == [ProtocolCommand(WILL, ECHO)]
    assert text == b'ok'


def test_protocol_command_str():
    assert str(ProtocolCommand(DO, TTYPE)) == 'DO:TTYPE'
    assert str(ProtocolCommand(NOP)) == 'NOP'
    assert str(ProtocolCommand(SB, TTYPE, SEND)) == "SB:TTYPE b'\\x01'"
    assert ProtocolCommand(SB, TTYPE, SEND).is_subnegotiation
    assert not ProtocolCommand(WILL, ECHO).is_subnegotiation


def test_name_commands():
    assert name_command(IAC) == 'IAC'
    assert name_commands(IAC + DO + SGA) == 'IAC DO SGA'
    assert name_command(b'\x99') == repr(b'\x99')


def test_reply_do_ttype():
    """DO TTYPE is accepted and the terminal type sent at once."""
    negotiator = Negotiator(terminal_type='vt100')
    assert negotiator.reply([ProtocolCommand(DO, TTYPE)]) == (
        IAC + WILL + TTYPE + IAC + SB + TTYPE + IS + b'vt100' + IAC + SE)


def test_reply_do_naws():
    """DO NAWS is accepted and the window size sent, big-endian 16 bits."""
    negotiator = Negotiator(width=132, height=300)
    assert negotiator.reply([ProtocolCommand(DO, NAWS)]) == (
        IAC + WILL + NAWS + IAC + SB + NAWS + struct.pack('!HH', 132, 300) +
        IAC + SE)


def test_reply_naws_escapes_iac():
    negotiator = Negotiator(width=255, height=24)
    assert negotiator.naws() == (
        IAC + SB + NAWS + b'\x00' + IAC + IAC + b'\x00\x18' + IAC + SE)


@pytest.mark.parametrize('echo_on, cmd, expected', [
    (False, DO, WONT),
    (True, DO, WILL),
    (False, WILL, DONT),
    (True, WILL, DO),
])
def test_reply_echo(echo_on, cmd, expected):
    negotiator = Negotiator(echo_on=echo_on)
    assert negotiator.reply([ProtocolCommand(cmd, ECHO)]) == IAC + expected + ECHO


@pytest.mark.parametrize('go_ahead, cmd, expected', [
    (True, WILL, DO),
    (True, DO, WILL),
    (False, WILL, DONT),
    (False, DO, WONT),
])
def test_reply_sga(go_ahead, cmd, expected):
    negotiator = Negotiator(go_ahead=go_ahead)
    assert negotiator.reply([ProtocolCommand(cmd, SGA)]) == IAC + expected + SGA


def test_reply_unsupported_option_refused():
    negotiator = Negotiator()
    assert negotiator.reply([ProtocolCommand(DO, STATUS),
                             ProtocolCommand(WILL, STATUS)]) == (
        IAC + WONT + STATUS + IAC + DONT + STATUS)


def test_reply_accept_options():
    negotiator = Negotiator(accept_options=(STATUS,))
    assert negotiator.reply([ProtocolCommand(DO, STATUS)]) == IAC + WILL + STATUS


def test_reply_wont_dont_and_bare_commands_unanswered():
    negotiator = Negotiator()
    assert negotiator.reply([ProtocolCommand(WONT, ECHO),
                             ProtocolCommand(DONT, SGA),
                             ProtocolCommand(NOP),
                             ProtocolCommand(GA)]) == b''


def test_reply_ttype_send():
    """IAC SB TTYPE SEND IAC SE is answered with TTYPE IS."""
    negotiator = Negotiator(terminal_type='xterm')
    assert negotiator.reply([ProtocolCommand(SB, TTYPE, SEND)]) == (
        IAC + SB + TTYPE + IS + b'xterm' + IAC + SE)
    assert negotiator.reply([ProtocolCommand(SB, NAWS, b'\x00' * 4)]) == b''
