# -*- coding: utf-8
"""Client connection to a TCP server, optionally over TLS"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

__revision__ = "$Id$"

from .OpenSSLStream import OpenSSLStream
from .exceptions import ConnectError, EncryptionError, AttrReadOnlyError

class Connection(OpenSSLStream):
    """Client connection to a TCP server, optionally over TLS

    host, port -- the server to talk to
    use_tls -- negotiate TLS right after the TCP connection is up
    encoding -- used for str arguments of write() and write_line()

    host, port and use_tls can't be changed later, create a new Connection
    instead. Everything else (peer verification, self-signed certificates,
    timeouts, blocking mode) can be set before or after connect().

    Typical use:

        with Connection("127.0.0.1", 9000) as conn:
            conn.write_line("PING")
            reply = conn.read_line()
    """

    def __init__(self, host, port, use_tls=False, encoding="utf-8"):
        if not 0 <= port <= 65535:
            raise ValueError("Port %d out of range" % port)
        OpenSSLStream.__init__(self, host, port)
        self._use_tls = bool(use_tls)
        self.encoding = encoding

    def _read_only(self, value):
        """Transport identity is fixed at construction"""
        raise AttrReadOnlyError("Create a new Connection instead")

    host = property(lambda self: self._host, _read_only)
    port = property(lambda self: self._port, _read_only)
    use_tls = property(lambda self: self._use_tls, _read_only)

    def _connect(self):
        self._open()
        if self._use_tls:
            try:
                self.ssl = self._handshake(None, self.connection_timeout)
            except EncryptionError as err:
                self._release()
                raise ConnectError("Cannot establish connection. Error: %s"
                                   % err, None, str(err)) from err
        self._configure()

    def __repr__(self):
        return "<%s %s:%s%s, %s>" % (
            self.__class__.__name__, self._host, self._port,
            " (TLS)" if self._use_tls else "",
            "connected" if self.connected() else "disconnected")
