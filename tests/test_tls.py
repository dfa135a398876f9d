# -*- coding: utf-8
"""Unit tests for TLS in tcpconnection"""

import time
import unittest
from unittest import mock

from OpenSSL import SSL

import tcpconnection
from .servers import (LoopbackServer, echo, make_certificate, server_context,
                      tls_echo)

__revision__ = '$Id$'

class TLSConnectTest(unittest.TestCase):
    """Connections with use_tls=True against a self-signed server"""

    def _connect(self, conn):
        """Connect, return whatever connect() raised"""
        try:
            conn.connect()
        except tcpconnection.StreamError as err:
            return err
        return None

    def _server(self, dns_names=("localhost",), ip_addresses=("127.0.0.1",)):
        cert, key = make_certificate(dns_names, ip_addresses)
        server = LoopbackServer(tls_echo(server_context(cert, key)))
        server.start()
        self.addCleanup(server.join, 5)
        return server

    def test_self_signed_rejected(self):
        """Verification refuses a self-signed certificate by default"""
        server = self._server()
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        err = self._connect(conn)
        self.assertTrue(isinstance(err, tcpconnection.ConnectError), err)
        self.assertFalse(conn.connected())

    def test_self_signed_allowed(self):
        """allow_self_signed lets the handshake through"""
        server = self._server()
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        conn.set_allow_self_signed(True)
        conn.connect()
        try:
            self.assertTrue(conn.ssl)
            conn.write_line(b"PING")
            self.assertEqual(conn.read_line(), b"PING\r\n")
            conn.write(b"more")
            self.assertTrue(conn.has_data(2))
            self.assertEqual(conn.read_bytes(4), b"more")
        finally:
            conn.disconnect()
        self.assertFalse(conn.connected())
        self.assertFalse(conn.ssl)

    def test_no_verification(self):
        """Without peer verification anything goes"""
        server = self._server(dns_names=("example.org",), ip_addresses=())
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        conn.set_peer_verification(False)
        with conn:
            conn.write_line(b"hello")
            self.assertEqual(conn.read_line(), b"hello\r\n")

    def test_host_name_mismatch(self):
        """A self-signed certificate for another host is still refused"""
        server = self._server(dns_names=("example.org",), ip_addresses=())
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        conn.set_allow_self_signed(True)
        err = self._connect(conn)
        self.assertTrue(isinstance(err, tcpconnection.ConnectError), err)
        self.assertFalse(conn.connected())

    def test_host_name(self):
        """Connecting by name checks the dNSName entries"""
        server = self._server(dns_names=("localhost",), ip_addresses=())
        conn = tcpconnection.Connection("localhost", server.port, True)
        conn.set_allow_self_signed(True)
        with conn:
            conn.write_line(b"by name")
            self.assertEqual(conn.read_line(), b"by name\r\n")

    def test_live_policy_change(self):
        """Verification policy can be changed on an encrypted stream"""
        server = self._server()
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        conn.set_allow_self_signed(True)
        with conn:
            conn.set_peer_verification(False)
            conn.set_allow_self_signed(False)
            self.assertFalse(conn.peer_verification)
            self.assertFalse(conn.allow_self_signed)
            conn.write_line(b"still here")
            self.assertEqual(conn.read_line(), b"still here\r\n")

    def test_live_policy_failure(self):
        """A context refusing the new policy raises ConfigurationError"""
        server = self._server()
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        conn.set_allow_self_signed(True)
        with conn:
            with mock.patch.object(conn, "_set_verify",
                                   side_effect=SSL.Error("set_verify failed")):
                self.assertRaises(tcpconnection.ConfigurationError,
                                  conn.set_peer_verification, False)
                self.assertTrue(conn.connected())
                self.assertRaises(tcpconnection.ConfigurationError,
                                  conn.set_allow_self_signed, False)
                self.assertTrue(conn.connected())
            conn.write_line(b"still here")
            self.assertEqual(conn.read_line(), b"still here\r\n")

    def test_already_encrypted(self):
        """enable_encryption(True) on a TLS stream reports success"""
        server = self._server()
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        conn.set_allow_self_signed(True)
        with conn:
            self.assertTrue(conn.enable_encryption(True))


class StartTLSTest(unittest.TestCase):
    """Switching TLS on and off over an open plaintext stream"""

    def setUp(self):
        cert, key = make_certificate()
        self.server = LoopbackServer(tls_echo(server_context(cert, key),
                                              starttls=True))
        self.server.start()
        self.conn = tcpconnection.Connection("127.0.0.1", self.server.port)
        self.conn.set_allow_self_signed(True)
        self.conn.connect()

    def tearDown(self):
        self.conn.disconnect()
        self.server.join(5)

    def _starttls(self):
        self.conn.write_line(b"STARTTLS")
        self.assertEqual(self.conn.read_line(), b"OK\r\n")
        self.assertTrue(self.conn.enable_encryption(True))

    def test_upgrade(self):
        """STARTTLS-like upgrade of a plaintext connection"""
        self.assertFalse(self.conn.ssl)
        self._starttls()
        self.assertTrue(self.conn.ssl)
        self.conn.write_line(b"secret")
        self.assertEqual(self.conn.read_line(), b"secret\r\n")

    def test_downgrade(self):
        """TLS can be switched off again, the socket stays open"""
        self._starttls()
        self.conn.write_line(b"secret")
        self.assertEqual(self.conn.read_line(), b"secret\r\n")
        self.assertTrue(self.conn.enable_encryption(False))
        self.assertFalse(self.conn.ssl)
        self.assertTrue(self.conn.connected())
        self.conn.write_line(b"public")
        self.assertEqual(self.conn.read_line(), b"public\r\n")

    def test_disable_plaintext(self):
        """enable_encryption(False) on a plaintext stream is a no-op"""
        self.assertTrue(self.conn.enable_encryption(False))
        self.assertFalse(self.conn.ssl)

    def test_handshake_failure(self):
        """A failed upgrade raises EncryptionError and stays plaintext"""
        self.conn.set_allow_self_signed(False)
        self.conn.write_line(b"STARTTLS")
        self.assertEqual(self.conn.read_line(), b"OK\r\n")
        self.assertRaises(tcpconnection.EncryptionError,
                          self.conn.enable_encryption, True)
        self.assertFalse(self.conn.ssl)
        self.assertTrue(self.conn.connected())


class NonBlockingStartTLSTest(unittest.TestCase):
    """STARTTLS on a non-blocking stream against a slow server"""

    def setUp(self):
        cert, key = make_certificate()
        self.server = LoopbackServer(tls_echo(server_context(cert, key),
                                              starttls=True, delay=0.3))
        self.server.start()
        self.conn = tcpconnection.Connection("127.0.0.1", self.server.port)
        self.conn.set_allow_self_signed(True)
        self.conn.connect()

    def tearDown(self):
        self.conn.disconnect()
        self.server.join(5)

    def _until_done(self, enabled):
        """Call enable_encryption() until it succeeds, return all results"""
        results = []
        deadline = time.monotonic() + 5
        while not results or not results[-1]:
            self.assertTrue(time.monotonic() < deadline, results)
            results.append(self.conn.enable_encryption(enabled))
            time.sleep(0.01)
        return results

    def _echo(self, line):
        self.conn.write_line(line)
        self.assertEqual(self.conn.read_line(), line + b"\r\n")

    def test_upgrade_and_downgrade(self):
        """enable_encryption() returns False until the peer catches up"""
        self.conn.write_line(b"STARTTLS")
        self.assertEqual(self.conn.read_line(), b"OK\r\n")

        self.conn.set_stream_blocking(False)
        results = self._until_done(True)
        self.assertTrue(False in results, results)
        self.assertTrue(self.conn.ssl)
        self.conn.set_stream_blocking(True)
        self._echo(b"secret")

        self.conn.set_stream_blocking(False)
        results = self._until_done(False)
        self.assertTrue(False in results, results)
        self.assertFalse(self.conn.ssl)
        self.assertTrue(self.conn.connected())
        self.conn.set_stream_blocking(True)
        self._echo(b"public")


class PlainServerTest(unittest.TestCase):
    """TLS against a server which doesn't speak it"""

    def test_not_tls(self):
        """connect() fails when the peer doesn't speak TLS"""
        server = LoopbackServer(echo)
        server.start()
        self.addCleanup(server.join, 5)
        conn = tcpconnection.Connection("127.0.0.1", server.port, True)
        conn.set_connection_timeout(1)
        self.assertRaises(tcpconnection.ConnectError, conn.connect)
        self.assertFalse(conn.connected())


if __name__ == '__main__':
    unittest.main()
