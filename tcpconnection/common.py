# -*- coding: utf-8
"""Defaults shared by all streams"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

__revision__ = "$Id$"

# default timeouts in seconds
default_connection_timeout = 10
default_stream_timeout = 5

# how many bytes to ask the socket for at once
recv_size = 4096

CRLF = b"\r\n"
LF = b"\n"
