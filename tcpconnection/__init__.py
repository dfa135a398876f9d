# -*- coding: utf-8
"""Client-side TCP connections, optionally encrypted with TLS.

For details about what a "stream" is please see the Stream class; the class
you most likely want is Connection."""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

__version__ = "0.1"
__revision__ = "$Id$"
__all__ = ["Connection", "Stream", "PollableStream", "TCPStream",
    "GenericSSLStream", "OpenSSLStream", "match_hostname", "CRLF",
    "StreamError", "NotConnectedError", "AlreadyConnectedError",
    "ConnectError", "ConfigurationError", "EncryptionError",
    "NothingToReadError", "WriteError", "DisconnectError",
    "AttrReadOnlyError"]

from .common import CRLF
from .Stream import Stream
from .PollableStream import PollableStream
from .TCPStream import TCPStream
from .GenericSSLStream import GenericSSLStream
from .OpenSSLStream import OpenSSLStream, match_hostname
from .Connection import Connection
from .exceptions import (StreamError, NotConnectedError, AlreadyConnectedError,
                         ConnectError, ConfigurationError, EncryptionError,
                         NothingToReadError, WriteError, DisconnectError,
                         AttrReadOnlyError)
