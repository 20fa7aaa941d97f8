"""
Optimistic commands.

A command changes local state first (``apply``), then sends the
request; when the request fails the change is undone (``compensate``)
and the error is passed back to the caller.
"""

import logging

from .transport import ApiError

logger = logging.getLogger(__name__)


class OptimisticCommand:
    """
    apply/compensate pair run around a request.

    ``run()`` returns ``(True, result)`` on success and
    ``(False, error)`` after compensating a failed request.
    """

    def __init__(self, apply, compensate, request, label=''):
        self.apply = apply
        self.compensate = compensate
        self.request = request
        self.label = label

    def run(self):
        self.apply()
        try:
            result = self.request()
        except ApiError as e:
            logger.info(f"{self.label or 'Command'} failed, reverting: {e.message}")
            self.compensate()
            return False, e
        return True, result
