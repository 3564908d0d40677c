#!/usr/bin/env python
"""
Execute commands on a Telnet host, printing each response.

This example demonstrates using Telnet as a context manager, and reading
the error records of a failed batch.

Example usage::

    $ python exec_commands.py localhost 6023 admin secret
    Connected to localhost:6023
    >>> show clock
    12:00:00 UTC
    >>> quit
    Connection closed.
"""

# std imports
import sys

# local
from telnetexec import Telnet


def main():
    """Connect to a telnet host and execute commands read from stdin."""
    host = sys.argv[1] if len(sys.argv) > 1 else "localhost"
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 6023
    user = sys.argv[3] if len(sys.argv) > 3 else ""
    password = sys.argv[4] if len(sys.argv) > 4 else ""

    print(f"Connecting to {host}:{port}...")

    with Telnet(host=host, port=port, user=user, password=password,
                enable_is_alive_check=False) as session:
        if session.open() is None:
            for record in session.get_errors():
                print(f"Error: {record}")
            return 1
        print(f"Connected to {host}:{port}")

        while True:
            try:
                command = input(">>> ")
            except (EOFError, KeyboardInterrupt):
                print("\nDisconnecting...")
                break
            if command == "quit":
                break

            response = session.exec(command)
            if response is None:
                print(f"Error: {session.get_last_error()}")
                if session.connection is None:
                    break
            else:
                print(response, end="")

    print("Connection closed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
