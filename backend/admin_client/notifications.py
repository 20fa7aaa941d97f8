"""User-facing notifications raised by list screens."""

import logging

logger = logging.getLogger(__name__)


class Notifier:
    """
    Collects toast-style messages. UIs subclass it or read ``messages``;
    everything is logged as well.
    """

    def __init__(self):
        self.messages = []

    def _push(self, level, message, details=None):
        self.messages.append({'level': level, 'message': message, 'details': details or {}})
        logger.log(logging.ERROR if level == 'error' else logging.INFO, message)

    def success(self, message):
        self._push('success', message)

    def error(self, message, details=None):
        self._push('error', message, details)

    @property
    def last(self):
        return self.messages[-1] if self.messages else None

    def clear(self):
        self.messages = []
