# -*- coding: utf-8
"""OpenSSL-based stream"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

import ipaddress
import logging
import select
import time
from OpenSSL import SSL
from cryptography import x509
from .PollableStream import PollableStream
from .GenericSSLStream import GenericSSLStream
from .exceptions import (ConfigurationError, EncryptionError,
                         NothingToReadError, WriteError)

__revision__ = "$Id$"

logger = logging.getLogger(__name__)

# X509_V_ERR_DEPTH_ZERO_SELF_SIGNED_CERT, X509_V_ERR_SELF_SIGNED_CERT_IN_CHAIN
_self_signed_errors = (18, 19)

def _is_ip_address(host):
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True

def _dns_name_matches(pattern, hostname):
    pattern = pattern.rstrip(".").lower()
    hostname = hostname.rstrip(".").lower()
    if pattern.startswith("*."):
        # a wildcard stands for exactly one leftmost label
        label, dot, rest = hostname.partition(".")
        return bool(label and dot) and rest == pattern[2:]
    return pattern == hostname

def match_hostname(cert, hostname):
    """Check if a certificate (cryptography's x509.Certificate) is valid for hostname

Only the subjectAltName extension is consulted: IP addresses have to be listed
as iPAddress entries, host names as dNSName entries (wildcards allowed in the
leftmost label).
"""
    try:
        names = cert.extensions.get_extension_for_class(
            x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return False
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        try:
            # dNSName entries hold A-labels
            hostname = hostname.encode("idna").decode("ascii")
        except UnicodeError:
            # names the idna codec refuses are compared as given
            pass
        return any(_dns_name_matches(name, hostname)
                   for name in names.get_values_for_type(x509.DNSName))
    return address in names.get_values_for_type(x509.IPAddress)

class OpenSSLStream(GenericSSLStream):
    """OpenSSL-based stream

pyOpenSSL ignores socket timeouts, it raises WantReadError/WantWriteError
instead of waiting. _ssl_call() turns those into poll() waits bounded by the
stream (or connection) timeout.
"""

    def __init__(self, host, port):
        GenericSSLStream.__init__(self, host, port)
        self.peer_verification = True
        self.allow_self_signed = False
        self._ssl_context = None
        self._ssl_connection = None

    def set_peer_verification(self, enabled):
        """Choose whether the peer's certificate chain and host name are checked

On a connected stream this updates the live TLS context. OpenSSL consults it
during a handshake only, so the current session is not affected.
"""
        self.peer_verification = bool(enabled)
        self._reapply_verification("peer verification")

    def set_allow_self_signed(self, enabled):
        """Choose whether a self-signed peer certificate is acceptable

The host name still has to match when peer verification is on. The same
limitation as for set_peer_verification() applies to connected streams.
"""
        self.allow_self_signed = bool(enabled)
        self._reapply_verification("certificate signature check")

    def _reapply_verification(self, what):
        if not self.connected() or self._ssl_context is None:
            return
        try:
            self._set_verify(self._ssl_context)
        except SSL.Error as err:
            raise ConfigurationError("Failed to set %s: %s"
                                     % (what, err)) from err

    def _set_verify(self, context):
        if self.peer_verification:
            context.set_verify(SSL.VERIFY_PEER, self._verify_callback)
        else:
            context.set_verify(SSL.VERIFY_NONE, self._verify_callback)

    def _verify_callback(self, connection, cert, errnum, depth, ok):
        if ok:
            return True
        if self.allow_self_signed and errnum in _self_signed_errors:
            logger.debug("accepting self-signed certificate %s",
                         cert.to_cryptography().subject)
            return True
        logger.debug("certificate verification failed at depth %d: "
                     "error %d", depth, errnum)
        return False

    def _ssl_call(self, timeout, func, *args):
        """Call func until OpenSSL doesn't want any more socket I/O

Raises TimeoutError if the socket doesn't become ready within timeout seconds.
"""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                return func(*args)
            except SSL.WantReadError:
                events = select.POLLIN
            except SSL.WantWriteError:
                events = select.POLLOUT
            if deadline is None:
                remaining = None
            else:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("TLS operation timed out")
            if not self._poll(events, remaining):
                raise TimeoutError("TLS operation timed out")

    def _handshake(self, method, timeout):
        """Run (or continue) a client handshake over the connected socket

A timeout of zero means "don't wait": False is returned if the peer hasn't
answered yet and the next call picks the handshake up again.
"""
        try:
            if self._ssl_connection is None:
                if method is None:
                    method = SSL.TLS_CLIENT_METHOD
                self._ssl_context = SSL.Context(method)
                self._ssl_context.set_default_verify_paths()
                self._set_verify(self._ssl_context)
                conn = SSL.Connection(self._ssl_context, self._sock)
                if not _is_ip_address(self._host):
                    conn.set_tlsext_host_name(self._host.encode("idna"))
                conn.set_connect_state()
                self._ssl_connection = conn
                logger.debug("starting TLS with %s:%s", self._host, self._port)
            self._ssl_call(timeout, self._ssl_connection.do_handshake)
        except TimeoutError:
            if timeout == 0:
                return False
            self._ssl_abort()
            raise EncryptionError("TLS handshake with %s:%s timed out"
                                  % (self._host, self._port))
        except SSL.Error as err:
            self._ssl_abort()
            raise EncryptionError("TLS handshake with %s:%s failed: %s"
                                  % (self._host, self._port, err)) from err
        if self.peer_verification:
            self._check_peer_name()
        # whatever was buffered so far arrived in plaintext
        self._buffer = b""
        logger.debug("TLS established with %s:%s using %s", self._host,
                     self._port, self._ssl_connection.get_protocol_version_name())
        return True

    def _check_peer_name(self):
        cert = self._ssl_connection.get_peer_certificate(as_cryptography=True)
        if cert is None or not match_hostname(cert, self._host):
            self._ssl_abort()
            raise EncryptionError("Certificate of %s:%s doesn't match the "
                                  "host name" % (self._host, self._port))

    def _ssl_abort(self):
        self._ssl_connection = None
        self._ssl_context = None

    def _release(self):
        self._ssl_abort()
        GenericSSLStream._release(self)

    def _ssl_starttls(self, method):
        if not self.stream_blocking:
            return self._handshake(method, 0)
        # the handshake is bounded by the connection timeout, not the
        # stream one
        self._sock.settimeout(self.connection_timeout)
        try:
            return self._handshake(method, self.connection_timeout)
        finally:
            self._apply_stream_blocking()

    def _ssl_stoptls(self):
        try:
            done = self._ssl_call(self._io_timeout(),
                                  self._ssl_connection.shutdown)
            while not done:
                # our close_notify is out, wait for the peer's one
                done = self._ssl_call(self._io_timeout(),
                                      self._ssl_connection.shutdown)
        except TimeoutError:
            if not self.stream_blocking:
                return False
            raise EncryptionError("TLS shutdown with %s:%s timed out"
                                  % (self._host, self._port))
        except SSL.Error as err:
            raise EncryptionError("TLS shutdown with %s:%s failed: %s"
                                  % (self._host, self._port, err)) from err
        logger.debug("TLS with %s:%s closed, back to plaintext",
                     self._host, self._port)
        self._ssl_abort()
        return True

    def _ssl_close(self):
        try:
            self._ssl_connection.shutdown()
        except SSL.Error as err:
            # the socket gets shut down right afterwards anyway
            logger.debug("TLS shutdown with %s:%s incomplete: %s",
                         self._host, self._port, err)

    def _ssl_has_data(self, timeout):
        if self._ssl_connection.pending() > 0:
            return True
        return PollableStream._has_data(self, timeout)

    def _ssl_recv(self, size):
        try:
            return self._ssl_call(self._io_timeout(),
                                  self._ssl_connection.recv, size)
        except TimeoutError:
            return None
        except SSL.ZeroReturnError:
            return b""
        except SSL.SysCallError as err:
            logger.debug("%s:%s dropped the connection: %s",
                         self._host, self._port, err)
            return b""
        except SSL.Error as err:
            raise NothingToReadError("Cannot read from %s:%s: %s"
                                     % (self._host, self._port, err)) from err

    def _ssl_send(self, data):
        view = memoryview(data)
        sent = 0
        try:
            while sent < len(view):
                sent += self._ssl_call(self._io_timeout(),
                                       self._ssl_connection.send, view[sent:])
                if not self.stream_blocking:
                    break
        except TimeoutError:
            if not self.stream_blocking:
                return sent
            raise WriteError("Writing to %s:%s timed out"
                             % (self._host, self._port))
        except SSL.Error as err:
            raise WriteError("Cannot write to %s:%s: %s"
                             % (self._host, self._port, err)) from err
        return sent
