# -*- coding: utf-8
"""A generic Stream template"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

__revision__ = "$Id$"

from .common import CRLF, LF, recv_size
from .exceptions import (NotConnectedError, AlreadyConnectedError,
                         NothingToReadError)

class Stream:
    """Stream object.

Stream is a special object with connect() and disconnect() and several
file-object-like methods: read(), read_line(), read_bytes(), write() and
write_line(). As a bonus :), there is a has_data() function that checks if you
can read from the stream without blocking.

This class is just a template for other classes. They should override
_connect(), _connected(), _close(), _has_data(), _recv() and _send() with their
own implementation. These names start with underscore to prevent the need to
redefine docstrings.

_recv(size) returns the bytes it got, b"" at the end of the stream and None
when there is nothing to read right now (timeout or a non-blocking stream with
no data yet).
"""
    # used for str arguments of write() and write_line()
    encoding = "utf-8"

    def __todo(self, *args):
        """Default handler for methods that aren't implemented"""
        raise NotImplementedError("Stream doesn't support this method")

    _buffer = b""

    def connect(self):
        """Open the stream"""
        if self.connected():
            raise AlreadyConnectedError("Already connected")
        self._buffer = b""
        self._connect()

    def disconnect(self):
        """Close the stream; does nothing if it isn't open"""
        if self.connected():
            self._buffer = b""
            self._close()

    close = disconnect

    def connected(self):
        """Check if the stream is open"""
        return self._connected()

    def has_data(self, timeout=0):
        """Check if we can read from the stream without blocking

Timeout is an optional parameter specifying the maximum time to wait for the
result. If None, there's no timeout - the function will block until there is
something to read. If timeout is zero, the function will return immediately.
Positive floating point value is number of seconds to wait.
"""
        self._check_connected()
        if self._buffer:
            return True
        return self._has_data(timeout)

    def read(self):
        """Read everything the stream has to offer.

Lines are collected until the stream reports end of data, be it the peer
closing the connection, the stream timeout or, in non-blocking mode, no more
data waiting. Bytes following the last line terminator are included.
"""
        self._check_connected()
        chunks = []
        line = self._next_line()
        while line is not None:
            chunks.append(line)
            line = self._next_line()
        chunks.append(self._buffer)
        self._buffer = b""
        return b"".join(chunks)

    def read_line(self):
        """Read one line including its terminator.

At the end of the stream the unterminated remainder is returned as the last
line. Raises NothingToReadError if no line could be read.
"""
        self._check_connected()
        line = self._next_line()
        if line is None:
            raise NothingToReadError("Nothing to read")
        return line

    def read_bytes(self, size):
        """Read at most size bytes; fewer might be returned"""
        self._check_connected()
        if size < 0:
            raise ValueError("Can't read %d bytes" % size)
        if size == 0:
            return b""
        if self._buffer:
            data = self._buffer[:size]
            self._buffer = self._buffer[size:]
            return data
        data = self._recv(size)
        if not data:
            raise NothingToReadError("Nothing to read")
        return data

    def write(self, data):
        """Write data to the stream, return how many bytes were written.

In non-blocking mode the result might be shorter than data.
"""
        self._check_connected()
        return self._send(self._to_bytes(data))

    def write_line(self, data, eol=CRLF):
        """Write data followed by the line terminator"""
        return self.write(self._to_bytes(data) + self._to_bytes(eol))

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()

    def _check_connected(self):
        if not self.connected():
            raise NotConnectedError("Not connected")

    def _to_bytes(self, data):
        if isinstance(data, str):
            return data.encode(self.encoding)
        return bytes(data)

    def _next_line(self):
        """Return the next line or None if there's none available"""
        while True:
            pos = self._buffer.find(LF)
            if pos >= 0:
                line = self._buffer[:pos + 1]
                self._buffer = self._buffer[pos + 1:]
                return line
            chunk = self._recv(recv_size)
            if chunk is None:
                # partial line stays in the buffer for the next call
                return None
            if not chunk:
                line = self._buffer
                self._buffer = b""
                return line or None
            self._buffer += chunk

    _connect = __todo
    _connected = __todo
    _close = __todo
    _has_data = __todo
    _recv = __todo
    _send = __todo
