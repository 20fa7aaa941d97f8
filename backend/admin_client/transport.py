"""
HTTP transport for the admin API.

Every call goes through ``AdminApiClient._request`` which maps
responses onto three error kinds:
- RequestFailed: the request never got a usable answer (network, 5xx)
- ValidationFailed: 400 with per-field details
- ApiError: any other non-2xx answer (404, 409...)

Pass a custom ``session`` in tests to intercept HTTP calls.
"""

import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """Non-2xx answer from the API."""

    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or []


class RequestFailed(ApiError):
    """Network failure or server error."""


class ValidationFailed(ApiError):
    """400 response; ``details`` holds ``{field, message}`` entries."""

    @property
    def field_errors(self):
        errors = {}
        for detail in self.details:
            if isinstance(detail, dict) and 'field' in detail:
                errors.setdefault(detail['field'], []).append(detail.get('message', ''))
        return errors


class AdminApiClient:
    """
    Thin wrapper around ``/api/v1/<entity>/`` endpoints.

    Usage:
        client = AdminApiClient('https://shop.example.com', token='...')
        page = client.list('orders', page=2, limit=20, status='pending')
    """

    def __init__(self, base_url, token=None, timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self._session = session

    @property
    def session(self):
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def url(self, *parts):
        path = '/'.join(str(part).strip('/') for part in parts)
        return f"{self.base_url}/api/v1/{path}/"

    def _headers(self):
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def _request(self, method, *parts, params=None, json=None):
        url = self.url(*parts)
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise RequestFailed(f'Request failed: {e}') from e

        if response.status_code == 204:
            return None
        body = self._decode(response)

        if response.ok:
            return body

        message = body.get('error') if isinstance(body, dict) else None
        details = body.get('details') if isinstance(body, dict) else None
        message = message or f'HTTP {response.status_code}'

        if response.status_code >= 500:
            raise RequestFailed(message, response.status_code)
        if response.status_code == 400 and details:
            raise ValidationFailed(message, response.status_code, details)
        raise ApiError(message, response.status_code, details)

    @staticmethod
    def _decode(response):
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    # Resource operations

    def list(self, entity, **params):
        """``{<entity>: [...], pagination: {...}}``; ``None`` params are dropped."""
        params = {key: value for key, value in params.items() if value not in (None, '')}
        return self._request('GET', entity, params=params)

    def retrieve(self, entity, pk):
        return self._request('GET', entity, pk)

    def create(self, entity, payload):
        return self._request('POST', entity, json=payload)['id']

    def update(self, entity, pk, payload):
        return self._request('PUT', entity, pk, json=payload)

    def delete(self, entity, pk):
        self._request('DELETE', entity, pk)

    def restore(self, entity, pk):
        self._request('POST', entity, pk, 'restore')

    def delete_permanently(self, entity, pk):
        self._request('DELETE', entity, pk, 'permanent')

    def bulk_delete(self, entity, ids, permanent=False):
        self._request('POST', entity, 'bulk-delete', json={'ids': list(ids), 'permanent': permanent})

    def bulk_restore(self, entity, ids):
        self._request('POST', entity, 'bulk-restore', json={'ids': list(ids)})

    # Order actions

    def set_order_status(self, pk, status):
        return self._request('PUT', 'orders', pk, 'status', json={'status': status})

    def ship_order(self, pk, carrier, tracking_number):
        return self._request(
            'POST', 'orders', pk, 'ship',
            json={'carrier': carrier, 'tracking_number': tracking_number}
        )
