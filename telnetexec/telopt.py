"""Telnet command and option byte values used by :mod:`telnetexec`."""
# commands, rfc-854
IAC = b"\xff"
DONT = b"\xfe"
DO = b"\xfd"
WONT = b"\xfc"
WILL = b"\xfb"
SB = b"\xfa"
GA = b"\xf9"
EL = b"\xf8"
EC = b"\xf7"
AYT = b"\xf6"
AO = b"\xf5"
IP = b"\xf4"
BRK = b"\xf3"
DM = b"\xf2"
NOP = b"\xf1"
SE = b"\xf0"

# options
BINARY = b"\x00"
ECHO = b"\x01"
SGA = b"\x03"
STATUS = b"\x05"
TM = b"\x06"
TTYPE = b"\x18"
NAWS = b"\x1f"
TSPEED = b" "
LFLOW = b"!"
LINEMODE = b'"'
XDISPLOC = b"#"
NEW_ENVIRON = b"'"
CHARSET = b"*"

# sub-negotiation verbs
(IS, SEND) = (bytes([const]) for const in range(2))

__all__ = (
    "AO",
    "AYT",
    "BINARY",
    "BRK",
    "CHARSET",
    "DM",
    "DO",
    "DONT",
    "EC",
    "ECHO",
    "EL",
    "GA",
    "IAC",
    "IP",
    "IS",
    "LFLOW",
    "LINEMODE",
    "NAWS",
    "NEW_ENVIRON",
    "NOP",
    "SB",
    "SE",
    "SEND",
    "SGA",
    "STATUS",
    "TM",
    "TSPEED",
    "TTYPE",
    "WILL",
    "WONT",
    "XDISPLOC",
    "name_command",
    "name_commands",
)

#: Commands that take a third (option) byte.
NEGOTIATION_VERBS = (WILL, WONT, DO, DONT)

#: List of globals that may match an iac command option bytes
_DEBUG_OPTS = dict(
    [
        (value, key)
        for key, value in globals().items()
        if key
        in (
            "IAC",
            "DONT",
            "DO",
            "WONT",
            "WILL",
            "SB",
            "GA",
            "EL",
            "EC",
            "AYT",
            "AO",
            "IP",
            "BRK",
            "DM",
            "NOP",
            "SE",
            "BINARY",
            "ECHO",
            "SGA",
            "STATUS",
            "TM",
            "TTYPE",
            "NAWS",
            "TSPEED",
            "LFLOW",
            "LINEMODE",
            "XDISPLOC",
            "NEW_ENVIRON",
            "CHARSET",
        )
    ]
)


def name_command(byte):
    """Return string description for (maybe) telnet command byte."""
    return _DEBUG_OPTS.get(byte, repr(byte))


def name_commands(cmds, sep=" "):
    """Return string description for array of (maybe) telnet command bytes."""
    return sep.join([name_command(bytes([byte])) for byte in cmds])
