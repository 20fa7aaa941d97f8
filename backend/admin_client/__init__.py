"""
Python client for the admin API and the list controller that drives
admin list screens (fetching, selection, optimistic mutations).
"""

from .controller import ListController, ListState
from .notifications import Notifier
from .transport import AdminApiClient, ApiError, RequestFailed, ValidationFailed

__all__ = [
    'AdminApiClient',
    'ApiError',
    'ListController',
    'ListState',
    'Notifier',
    'RequestFailed',
    'ValidationFailed',
]
