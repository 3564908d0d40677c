#!/usr/bin/env python
"""
Blocking Telnet server imitating a router login and command prompt.

Each client connection is handled in a separate thread.  The server asks
for the terminal type, then a user name and password, and echoes each
command before the prompt, as network devices do.

Example session::

    $ python fake_router.py
    $ python exec_commands.py localhost 6023 admin secret
    >>> show clock
    12:00:00 UTC
"""

# std imports
import socketserver

# local
from telnetexec.negotiation import IacParser
from telnetexec.telopt import DO, IAC, TTYPE

USER, PASSWORD = "admin", "secret"
PROMPT = b"router# "
RESPONSES = {
    "show clock": "12:00:00 UTC\r\n",
    "show version": "Fake OS, Version 1.0\r\n",
    "terminal length 0": "",
}


class RouterHandler(socketserver.BaseRequestHandler):
    """Handle a single client connection (runs in its own thread)."""

    def setup(self):
        self.parser = IacParser()
        self.buffer = b""

    def readline(self):
        while b"\r" not in self.buffer:
            data = self.request.recv(4096)
            if not data:
                return None
            _, text = self.parser.feed(data)
            self.buffer += text
        line, _, self.buffer = self.buffer.partition(b"\r")
        return line.lstrip(b"\n\x00").decode("utf8", "replace")

    def handle(self):
        self.request.settimeout(300)
        self.request.sendall(IAC + DO + TTYPE +
                             b"\r\nUser Access Verification\r\n\r\nUsername: ")
        user = self.readline()
        if user is None:
            return
        self.request.sendall(user.encode() + b"\r\nPassword: ")
        if (user, self.readline()) != (USER, PASSWORD):
            self.request.sendall(b"\r\n% Authentication failed\r\n")
            return
        self.request.sendall(b"\r\n" + PROMPT)

        while True:
            command = self.readline()
            if command is None or command == "exit":
                return
            response = RESPONSES.get(command, "% Invalid input detected\r\n")
            self.request.sendall(command.encode() + b"\r\n" +
                                 response.encode() + PROMPT)


def main():
    """Start the fake router."""
    socketserver.ThreadingTCPServer.allow_reuse_address = True
    with socketserver.ThreadingTCPServer(("127.0.0.1", 6023), RouterHandler) as server:
        print("Fake router running on localhost:6023")
        print(f"Login with: {USER} / {PASSWORD}")
        print("Press Ctrl+C to stop")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("\nShutting down...")


if __name__ == "__main__":
    main()
