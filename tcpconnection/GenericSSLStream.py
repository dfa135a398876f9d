# -*- coding: utf-8
"""A generic SSL stream template"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

__revision__ = "$Id$"

from .TCPStream import TCPStream

class GenericSSLStream(TCPStream):
    """Generic SSL Stream template

Subclasses should override _ssl_close(), _ssl_has_data(), _ssl_recv(),
_ssl_send(), _ssl_starttls() and _ssl_stoptls().

_ssl_starttls() and _ssl_stoptls() return True once the switch is complete and
False if a non-blocking stream has to wait for the peer; calling them again
continues where the previous call stopped.
"""

    def __todo(self, *args):
        """Dummy _ssl_*() function"""
        raise NotImplementedError()

    _ssl_close = __todo
    _ssl_has_data = __todo
    _ssl_recv = __todo
    _ssl_send = __todo
    _ssl_starttls = __todo
    _ssl_stoptls = __todo

    def __init__(self, host, port):
        TCPStream.__init__(self, host, port)
        self.ssl = False

    def enable_encryption(self, enabled, method=None):
        """Switch TLS on or off on the open stream.

The handshake (or the TLS shutdown when disabling) runs over the already
connected socket, which is what STARTTLS-like protocols need. Returns True
when the stream is in the requested state, False when a non-blocking stream is
still waiting for the peer; call again to continue.
"""
        self._check_connected()
        if enabled:
            if not self.ssl:
                self.ssl = self._ssl_starttls(method)
            return self.ssl
        if self.ssl:
            self.ssl = not self._ssl_stoptls()
        return not self.ssl

    def _close(self):
        if self.ssl:
            self._ssl_close()
        return TCPStream._close(self)

    def _release(self):
        self.ssl = False
        TCPStream._release(self)

    def _has_data(self, timeout):
        if self.ssl:
            return self._ssl_has_data(timeout)
        else:
            return TCPStream._has_data(self, timeout)

    def _recv(self, size):
        if self.ssl:
            return self._ssl_recv(size)
        else:
            return TCPStream._recv(self, size)

    def _send(self, data):
        if self.ssl:
            return self._ssl_send(data)
        else:
            return TCPStream._send(self, data)
