# -*- coding: utf-8
"""A template for streams that support the poll() syscall"""

# Copyright (c) Jan Kundrát <jkt@flaska.net>, 2006 - 2007

import select
from .Stream import Stream

__revision__ = "$Id$"

class PollableStream(Stream):
    """_has_data() helper for those streams that can use poll() for _has_data()

Subclasses have to keep the underlying socket in self._sock.
"""
    def _poll(self, events, timeout):
        """Wait for events on the socket, return the signalled event mask

Returns 0 if nothing happened before timeout expired. None or a negative
timeout waits forever.
"""
        if timeout is None or timeout < -0.000001:
            poll_timeout = None
        else:
            poll_timeout = timeout * 1000
        poller = select.poll()
        poller.register(self._sock.fileno(), events)
        polled = poller.poll(poll_timeout)
        if len(polled):
            return polled[0][1]
        return 0

    def _has_data(self, timeout):
        # a hung up or failed socket won't block either, reading from it
        # reports the end of the stream right away
        return bool(self._poll(select.POLLIN | select.POLLHUP, timeout))
