#!/usr/bin/env python3
"""
Command-line 'telnetexec' entry point: run commands on a Telnet host.

Example::

    $ telnetexec router1 --user admin --password secret \\
        -c 'terminal length 0' -c 'show clock'
"""
# std imports
import argparse
import os
import sys

# local imports
from telnetexec import accessories
from telnetexec.telnet import Telnet

__all__ = ('main', 'run_client')


def run_client(argv=None):
    """Run the client for command-line arguments ``argv``, return exit code."""
    args = _get_argument_parser().parse_args(argv)
    kwargs = _transform_args(args)
    log = accessories.make_logger(
        name=__name__,
        loglevel=args.loglevel,
        logfile=args.logfile,
        logfmt=args.logfmt,
    )
    log.debug("Client configuration: {key_values}".format(
        key_values=accessories.repr_mapping(
            dict(kwargs, password='*' * len(kwargs['password'])))))

    with Telnet(kwargs) as session:
        if args.alive:
            alive = session.is_alive()
            print('{}:{} is {}'.format(session.host, session.port,
                                       'alive' if alive else 'unreachable'))
            return 0 if alive else 1

        if not args.command:
            session.open()
            result = [] if session.connection is not None else None
        else:
            result = session.exec(args.command, timeout=args.exec_timeout)

        if args.show_debug:
            for message in session.get_debug():
                print(message, file=sys.stderr)

        if result is None:
            print('Error: {}'.format(session.get_last_error()), file=sys.stderr)
            return 1

    for response in result:
        sys.stdout.write(response)
        if not response.endswith('\n'):
            sys.stdout.write('\n')
    return 0


def _get_argument_parser():
    parser = argparse.ArgumentParser(
        description="Execute commands on a Telnet host",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("host", action="store", help="hostname")
    parser.add_argument("port", nargs="?", default=23, type=int, help="port number")
    parser.add_argument(
        "-c", "--command", action="append", default=[],
        help="command to execute, may be given several times")
    parser.add_argument("--user", default="", help="login user name")
    parser.add_argument(
        "--password", default=os.environ.get("TELNETEXEC_PASSWORD", ""),
        help="login password (default: $TELNETEXEC_PASSWORD)")
    parser.add_argument(
        "--timeout", default=10.0, type=float, help="seconds to wait for the remote end")
    parser.add_argument(
        "--exec-timeout", default=None, type=float,
        help="seconds to wait for each command response")
    parser.add_argument(
        "--term", default="vt100", help="terminal type")
    parser.add_argument("--cols", default=0, type=int, help="terminal width")
    parser.add_argument("--rows", default=0, type=int, help="terminal height")
    parser.add_argument(
        "--no-trim", action="store_true",
        help="keep the command echo and prompt in responses")
    parser.add_argument(
        "--no-alive-check", action="store_true",
        help="connect without probing the host first")
    parser.add_argument(
        "--alive", action="store_true", help="only check the host accepts connections")
    parser.add_argument(
        "--show-debug", action="store_true", help="print the debug trace to stderr")
    parser.add_argument("--loglevel", default="warn", help="log level")
    parser.add_argument(
        "--logfmt", default=accessories._DEFAULT_LOGFMT, help="log format"
    )
    parser.add_argument("--logfile", help="filepath")
    parser.add_argument(
        "--version", action="version",
        version="%(prog)s {}".format(accessories.get_version()))
    return parser


def _transform_args(args):
    return {
        "host": args.host,
        "port": args.port,
        "user": args.user,
        "password": args.password,
        "timeout": args.timeout,
        "terminal_type": args.term,
        "width": args.cols,
        "height": args.rows,
        "trim_response": not args.no_trim,
        "enable_is_alive_check": not args.no_alive_check,
    }


def main():
    sys.exit(run_client())


if __name__ == "__main__":
    main()
