# -*- coding: utf-8
"""Streamed TCP/IP connection"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

import errno
import logging
import socket
from .PollableStream import PollableStream
from .common import default_connection_timeout, default_stream_timeout
from .exceptions import (ConnectError, ConfigurationError, DisconnectError,
                         WriteError)

__revision__ = "$Id$"

logger = logging.getLogger(__name__)

def _check_timeout(seconds):
    if seconds is not None and seconds < 0:
        raise ValueError("Timeout can't be negative")
    return None if seconds is None else float(seconds)

class TCPStream(PollableStream):
    """Streamed TCP/IP connection

The connection is opened by connect(). Until then (and after disconnect())
the timeout and blocking settings are only remembered and get applied to the
next socket.
"""

    def __init__(self, host, port):
        self._host = host
        self._port = port
        self._sock = None
        self.connection_timeout = float(default_connection_timeout)
        self.stream_timeout = float(default_stream_timeout)
        self.stream_blocking = True

    def __del__(self):
        if getattr(self, "_sock", None) is not None:
            self._release()

    def set_connection_timeout(self, seconds):
        """Set how long connect() waits for the connection to be established"""
        self.connection_timeout = _check_timeout(seconds)

    def set_stream_timeout(self, seconds):
        """Set how long a single read or write waits for the peer"""
        self.stream_timeout = _check_timeout(seconds)
        if self.connected():
            self._apply_stream_timeout()

    def set_stream_blocking(self, enabled):
        """Choose whether reads wait for data or return right away"""
        self.stream_blocking = bool(enabled)
        if self.connected():
            self._apply_stream_blocking()

    def _connect(self):
        self._open()
        self._configure()

    def _connected(self):
        return self._sock is not None

    def _open(self):
        """Establish the TCP connection, bounded by connection_timeout"""
        logger.debug("connecting to %s:%s", self._host, self._port)
        try:
            self._sock = socket.create_connection((self._host, self._port),
                                                  self.connection_timeout)
        except OSError as err:
            raise ConnectError("Cannot establish connection. Error: %s (%s)"
                               % (err.strerror or err, err.errno),
                               err.errno, err.strerror or str(err)) from err

    def _configure(self):
        """Apply stream timeout and blocking mode to a freshly opened socket

A socket which refuses them is closed again, so a failed connect() never
leaves a half-configured stream behind.
"""
        try:
            self._apply_stream_timeout()
            self._apply_stream_blocking()
        except ConfigurationError:
            self._release()
            raise
        logger.debug("connected to %s:%s (timeout %s, blocking %s)",
                     self._host, self._port, self.stream_timeout,
                     self.stream_blocking)

    def _apply_stream_timeout(self):
        if not self.stream_blocking:
            # non-blocking sockets have no use for a timeout
            return
        try:
            self._sock.settimeout(self.stream_timeout)
        except OSError as err:
            raise ConfigurationError("Failed to set stream timeout: %s"
                                     % err) from err

    def _apply_stream_blocking(self):
        try:
            if self.stream_blocking:
                self._sock.settimeout(self.stream_timeout)
            else:
                self._sock.setblocking(False)
        except OSError as err:
            raise ConfigurationError("Failed to set stream blocking mode: %s"
                                     % err) from err

    def _io_timeout(self):
        """How long a single read or write may wait"""
        if self.stream_blocking:
            return self.stream_timeout
        return 0

    def _close(self):
        logger.debug("disconnecting from %s:%s", self._host, self._port)
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as err:
            # the peer is gone already, nothing left to shut down
            if err.errno != errno.ENOTCONN:
                raise DisconnectError("Cannot close connection: %s"
                                      % err) from err
        finally:
            self._release()

    def _release(self):
        """Drop the socket without any shutdown handshake"""
        sock = self._sock
        self._sock = None
        sock.close()

    def _recv(self, size):
        try:
            return self._sock.recv(size)
        except (TimeoutError, BlockingIOError):
            return None
        except (ConnectionResetError, ConnectionAbortedError) as err:
            logger.debug("%s:%s dropped the connection: %s",
                         self._host, self._port, err)
            return b""

    def _send(self, data):
        try:
            if self.stream_blocking:
                self._sock.sendall(data)
                return len(data)
            return self._sock.send(data)
        except BlockingIOError:
            return 0
        except OSError as err:
            raise WriteError("Cannot write to %s:%s: %s"
                             % (self._host, self._port, err)) from err
