# -*- coding: utf-8
"""Common exceptions for tcpconnection"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

__revision__ = '$Id$'


class StreamError(Exception):
    """Base class for everything a stream raises"""
    pass

class NotConnectedError(StreamError):
    """The operation needs a live stream but there is none"""
    pass

class AlreadyConnectedError(StreamError):
    """connect() called on a stream which is already connected"""
    pass

class ConnectError(StreamError):
    """Unable to establish the transport or the TLS session.

    The errno and strerror attributes carry whatever the OS or the TLS
    library reported; errno is None when there was no numeric code.
    """

    def __init__(self, message, errno=None, strerror=None):
        StreamError.__init__(self, message)
        self.errno = errno
        self.strerror = strerror

class ConfigurationError(StreamError):
    """Applying an option to the live stream failed"""
    pass

class EncryptionError(StreamError):
    """Switching TLS on or off on an open stream failed"""
    pass

class NothingToReadError(StreamError):
    """The stream produced no data.

    In blocking mode this means end of stream or an expired stream timeout,
    in non-blocking mode it may simply mean that nothing has arrived yet.
    """
    pass

class WriteError(StreamError):
    """Writing to the stream failed"""
    pass

class DisconnectError(StreamError):
    """Orderly shutdown of the stream failed"""
    pass

class AttrReadOnlyError(TypeError):
    """Object doesn't support assignment of this property"""
    pass
