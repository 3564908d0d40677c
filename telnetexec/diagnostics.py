"""
Append-only message stores for debug trace and error records.

A sink is created with a *destination*:

- ``None`` or ``False``: messages are discarded.
- ``True``: messages are kept in memory, :meth:`~.DiagnosticsSink.get_messages`
  returns them.
- ``'console'``: messages are written to standard output.
- any other string: path of a file, truncated when the sink is initialized.
  Messages are stored one JSON document per line and read back by
  :meth:`~.DiagnosticsSink.get_messages`.
- an object with a ``write()`` method: messages are written to it.
"""
# std imports
import json
import sys

# local imports
from .errors import ErrorRecord

__all__ = ('DiagnosticsSink', 'DebugSink', 'ErrorSink', 'CONSOLE')

#: Destination value writing messages to standard output.
CONSOLE = 'console'


class DiagnosticsSink:
    """Store messages in the configured destination."""

    def __init__(self, destination=True):
        self.destination = None
        self._buffer = []
        self.init(destination)

    def init(self, destination=True):
        """Set the destination, clearing the buffer or truncating the file."""
        if isinstance(destination, int) and not isinstance(destination, bool):
            raise TypeError('destination must be bool, str, None or a stream, '
                            'not {!r}'.format(destination))
        self.destination = destination
        self._buffer = []
        if self.is_file:
            with open(self.destination, 'w', encoding='utf8'):
                pass

    @property
    def is_buffer(self):
        return self.destination is True

    @property
    def is_file(self):
        return (isinstance(self.destination, str)
                and self.destination != CONSOLE)

    @property
    def is_stream(self):
        return self.destination == CONSOLE or hasattr(self.destination, 'write')

    def __bool__(self):
        return bool(self.destination)

    def save(self, message, source=''):
        """Append ``message`` to the destination."""
        if not self.destination:
            return
        message = self.format(message, source)
        if self.is_buffer:
            self._buffer.append(message)
        elif self.is_file:
            with open(self.destination, 'a', encoding='utf8') as fout:
                fout.write(json.dumps(self.encode(message)) + '\n')
        elif self.is_stream:
            stream = sys.stdout if self.destination == CONSOLE else self.destination
            stream.write('{}\n'.format(message))

    def get_messages(self):
        """Return the list of stored messages (empty for streams)."""
        if self.is_buffer:
            return list(self._buffer)
        if self.is_file:
            with open(self.destination, 'r', encoding='utf8') as fin:
                return [self.decode(json.loads(line))
                        for line in fin if line.strip()]
        return []

    def get_last_message(self):
        """Return the last stored message, or ``None``."""
        messages = self.get_messages()
        return messages[-1] if messages else None

    # derivable hooks

    def format(self, message, source):
        return message

    def encode(self, message):
        return message

    def decode(self, value):
        return value


class DebugSink(DiagnosticsSink):
    """Debug trace: messages are prefixed by the name of their source."""

    def format(self, message, source):
        if not isinstance(message, str):
            message = repr(message)
        return '{} : {}'.format(source, message)


class ErrorSink(DiagnosticsSink):
    """Error channel: stores :class:`~.ErrorRecord` instances."""

    def encode(self, message):
        if isinstance(message, ErrorRecord):
            return message._asdict()
        return message

    def decode(self, value):
        if isinstance(value, dict) and set(value) == set(ErrorRecord._fields):
            return ErrorRecord(**value)
        return value
