"""
Tests for the admin API client and list controller.

Best practices demonstrated:
- HTTP intercepted with a mocked requests session
- Debounce driven by a fake timer instead of sleeping
- Optimistic state checked both after success and after rollback
"""

from unittest import mock

import pytest
import requests

from .commands import OptimisticCommand
from .controller import ListController, ListState, remaining_pages
from .transport import AdminApiClient, ApiError, RequestFailed, ValidationFailed


def fake_response(status_code=200, body=None):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = b'{}' if body is not None else b''
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return AdminApiClient('https://shop.example.com/', token='secret', session=session)


class FakeTimer:
    """Records the callback instead of waiting."""
    created = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function()


def page_of(ids, total=None, page=1, limit=10):
    total = len(ids) if total is None else total
    return {
        'orders': [{'id': pk, 'status': 'pending', 'fulfillment_status': 'pending'} for pk in ids],
        'pagination': {'total': total, 'page': page, 'limit': limit, 'total_pages': remaining_pages(total, 0, limit)},
    }


class TestTransport:

    def test_list_drops_empty_params(self, client, session):
        session.request.return_value = fake_response(body=page_of(['ord_1']))

        result = client.list('orders', page=1, search=None, status='pending')

        assert result['orders'][0]['id'] == 'ord_1'
        method, url = session.request.call_args[0]
        kwargs = session.request.call_args[1]
        assert (method, url) == ('GET', 'https://shop.example.com/api/v1/orders/')
        assert kwargs['params'] == {'page': 1, 'status': 'pending'}
        assert kwargs['headers']['Authorization'] == 'Bearer secret'
        assert kwargs['timeout'] == 10

    def test_create_returns_id(self, client, session):
        session.request.return_value = fake_response(201, {'id': 'prod_1'})
        assert client.create('products', {'name': 'Mouse'}) == 'prod_1'

    def test_no_content(self, client, session):
        session.request.return_value = fake_response(204)

        assert client.restore('orders', 'ord_1') is None
        assert session.request.call_args[0][1] == 'https://shop.example.com/api/v1/orders/ord_1/restore/'

    def test_validation_error(self, client, session):
        session.request.return_value = fake_response(400, {
            'error': 'Validation failed',
            'details': [
                {'field': 'name', 'message': 'Too short'},
                {'field': 'name', 'message': 'Invalid'},
            ],
        })

        with pytest.raises(ValidationFailed) as excinfo:
            client.update('products', 'prod_1', {'name': 'x'})

        assert excinfo.value.field_errors == {'name': ['Too short', 'Invalid']}

    def test_conflict_is_api_error(self, client, session):
        session.request.return_value = fake_response(409, {'error': 'Slug already exists'})

        with pytest.raises(ApiError) as excinfo:
            client.create('products', {})

        assert not isinstance(excinfo.value, (RequestFailed, ValidationFailed))
        assert excinfo.value.status_code == 409
        assert excinfo.value.message == 'Slug already exists'

    def test_server_error_is_request_failure(self, client, session):
        session.request.return_value = fake_response(502)

        with pytest.raises(RequestFailed) as excinfo:
            client.retrieve('orders', 'ord_1')

        assert excinfo.value.message == 'HTTP 502'

    def test_network_error_is_request_failure(self, client, session):
        session.request.side_effect = requests.ConnectionError('refused')

        with pytest.raises(RequestFailed):
            client.list('orders')


class TestOptimisticCommand:

    def test_success_keeps_change(self):
        state = {'value': 1}
        command = OptimisticCommand(
            lambda: state.update(value=2), lambda: state.update(value=1), lambda: 'ok'
        )

        assert command.run() == (True, 'ok')
        assert state['value'] == 2

    def test_failure_compensates(self):
        state = {'value': 1}
        error = ApiError('Nope', 409)

        def request():
            raise error

        command = OptimisticCommand(lambda: state.update(value=2), lambda: state.update(value=1), request)

        assert command.run() == (False, error)
        assert state['value'] == 1


class TestListController:

    @pytest.fixture
    def api(self):
        return mock.Mock(spec=AdminApiClient)

    @pytest.fixture
    def controller(self, api):
        FakeTimer.created = []
        controller = ListController(api, 'orders', timer_factory=FakeTimer)
        api.list.return_value = page_of(['ord_1', 'ord_2', 'ord_3'], total=11)
        controller.refresh()
        return controller

    def test_refresh_loads_rows(self, controller):
        assert controller.row_ids == ['ord_1', 'ord_2', 'ord_3']
        assert controller.pagination['total_pages'] == 2
        assert controller.state == ListState.IDLE

    def test_failed_refresh_keeps_rows(self, controller, api):
        api.list.side_effect = RequestFailed('Request failed: timeout')

        assert controller.refresh() is False
        assert controller.row_ids == ['ord_1', 'ord_2', 'ord_3']
        assert 'Check your connection' in controller.notifier.last['message']

    def test_filter_resets_page(self, controller, api):
        controller.page = 2

        controller.set_filter('status', 'pending')

        params = api.list.call_args[1]
        assert params['status'] == 'pending'
        assert params['page'] == 1

    def test_search_is_debounced(self, controller, api):
        api.list.reset_mock()

        controller.set_search('ja')
        controller.set_search('jane')

        first, second = FakeTimer.created
        assert first.cancelled
        assert not api.list.called

        second.fire()
        assert api.list.call_args[1]['search'] == 'jane'

    def test_refresh_prunes_selection(self, controller, api):
        controller.select_all()
        api.list.return_value = page_of(['ord_2'], total=1)

        controller.refresh()

        assert controller.selected == {'ord_2'}

    def test_update_status_optimistic(self, controller, api):
        assert controller.update_status('ord_1', 'confirmed') is True
        assert controller.rows[0]['status'] == 'confirmed'
        api.set_order_status.assert_called_once_with('ord_1', 'confirmed')

    def test_update_status_rolls_back(self, controller, api):
        api.set_order_status.side_effect = ApiError('Order not found', 404)

        assert controller.update_status('ord_1', 'confirmed') is False
        assert controller.rows[0]['status'] == 'pending'
        assert controller.notifier.last['level'] == 'error'

    def test_delete_updates_pagination(self, controller):
        assert controller.delete('ord_1') is True

        assert controller.row_ids == ['ord_2', 'ord_3']
        assert controller.pagination['total'] == 10
        assert controller.pagination['total_pages'] == 1

    def test_bulk_delete_rolls_back_on_conflict(self, controller, api):
        controller.select_all()
        api.bulk_delete.side_effect = ApiError('1 of 3 orders cannot be deleted; nothing was changed', 409)

        assert controller.bulk_delete() is False

        assert controller.row_ids == ['ord_1', 'ord_2', 'ord_3']
        assert controller.pagination['total'] == 11
        assert controller.selected == {'ord_1', 'ord_2', 'ord_3'}

    def test_bulk_delete_needs_confirmation(self, api):
        controller = ListController(api, 'orders', confirm=lambda question: False)
        api.list.return_value = page_of(['ord_1'])
        controller.refresh()
        controller.select_all()

        assert controller.bulk_delete(permanent=True) is False
        assert not api.bulk_delete.called

    def test_bulk_restore(self, controller, api):
        controller.toggle('ord_2')

        assert controller.bulk_restore() is True

        api.bulk_restore.assert_called_once_with('orders', ['ord_2'])
        assert controller.selected == set()

    def test_bulk_ship_keeps_selection_on_partial_failure(self, controller, api):
        controller.select_all()

        def ship(pk, carrier, tracking_number):
            if pk == 'ord_2':
                raise ApiError('Order has already been fulfilled', 400)
            return {'success': True}

        api.ship_order.side_effect = ship

        assert controller.bulk_ship('Pathao', lambda pk: f'TRK-{pk}') is False

        assert api.ship_order.call_count == 3
        api.ship_order.assert_any_call('ord_3', 'Pathao', 'TRK-ord_3')
        assert controller.rows[0]['status'] == 'shipped'
        assert controller.rows[1]['status'] == 'pending'
        assert controller.selected == {'ord_1', 'ord_2', 'ord_3'}

    def test_bulk_ship_clears_selection(self, controller, api):
        controller.select_all()
        api.ship_order.return_value = {'success': True}

        assert controller.bulk_ship('Pathao', 'TRK-1') is True
        assert controller.selected == set()

    def test_remaining_pages_never_below_one(self):
        assert remaining_pages(1, 1, 10) == 1
        assert remaining_pages(21, 1, 10) == 2
