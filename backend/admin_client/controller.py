"""
List controller for admin screens.

Best practices demonstrated:
- Explicit idle/loading/mutating states
- Debounced search
- Optimistic mutations as commands with a compensating action
- Errors reported through the notifier, never raised past an action
"""

import enum
import logging
import math
import threading

from .commands import OptimisticCommand
from .notifications import Notifier
from .transport import ApiError, RequestFailed, ValidationFailed

logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE_SECONDS = 0.4


class ListState(enum.Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    MUTATING = 'mutating'


def remaining_pages(total, removed, limit):
    """Page count after ``removed`` rows disappear; never below one."""
    return max(1, math.ceil(max(total - removed, 0) / limit))


class ListController:
    """
    Drives one entity list (``orders``, ``products``...).

    ``confirm`` is called with a question before destructive bulk
    actions and must return True to proceed. ``timer_factory`` builds
    the debounce timer (``threading.Timer`` signature).
    """

    def __init__(self, client, entity, list_key=None, notifier=None, limit=10,
                 confirm=None, debounce=SEARCH_DEBOUNCE_SECONDS, timer_factory=threading.Timer):
        self.client = client
        self.entity = entity
        self.list_key = list_key or entity
        self.notifier = notifier or Notifier()
        self.confirm = confirm or (lambda question: True)
        self.debounce = debounce
        self.timer_factory = timer_factory

        self.state = ListState.IDLE
        self.rows = []
        self.pagination = {'total': 0, 'page': 1, 'limit': limit, 'total_pages': 1}
        self.selected = set()

        self.page = 1
        self.limit = limit
        self.search = ''
        self.sort = None
        self.order = 'desc'
        self.trashed = False
        self.filters = {}

        self._search_timer = None

    # Fetching

    def query_params(self):
        params = {
            'page': self.page,
            'limit': self.limit,
            'search': self.search or None,
            'sort': self.sort,
            'order': self.order if self.sort else None,
            'trashed': 'true' if self.trashed else None,
        }
        params.update(self.filters)
        return params

    def refresh(self):
        """Fetch the current page. Previous rows are kept when the request fails."""
        self.state = ListState.LOADING
        try:
            response = self.client.list(self.entity, **self.query_params())
        except ApiError as e:
            self._report(e, f'Failed to load {self.entity}')
            return False
        finally:
            self.state = ListState.IDLE

        self.rows = list(response.get(self.list_key, []))
        self.pagination = dict(response.get('pagination', self.pagination))
        self._prune_selection()
        return True

    def set_filter(self, name, value):
        if value in (None, ''):
            self.filters.pop(name, None)
        else:
            self.filters[name] = value
        self.page = 1
        return self.refresh()

    def set_sort(self, field, order='asc'):
        self.sort = field
        self.order = order
        return self.refresh()

    def set_page(self, page):
        self.page = max(1, int(page))
        return self.refresh()

    def set_trashed(self, trashed):
        self.trashed = bool(trashed)
        self.page = 1
        self.selected.clear()
        return self.refresh()

    def set_search(self, text):
        """Debounced: only the last call within the window triggers a fetch."""
        self.search = text
        if self._search_timer is not None:
            self._search_timer.cancel()
        self._search_timer = self.timer_factory(self.debounce, self._run_search)
        self._search_timer.start()

    def _run_search(self):
        self._search_timer = None
        self.page = 1
        self.refresh()

    # Selection

    @property
    def row_ids(self):
        return [row['id'] for row in self.rows]

    def toggle(self, pk):
        if pk in self.selected:
            self.selected.discard(pk)
        elif pk in self.row_ids:
            self.selected.add(pk)

    def select_all(self):
        self.selected = set(self.row_ids)

    def clear_selection(self):
        self.selected.clear()

    def _prune_selection(self):
        self.selected &= set(self.row_ids)

    # Mutations

    def update_status(self, pk, status):
        """Optimistically change one row's status."""
        row = self._find(pk)
        if row is None:
            return False
        previous = row.get('status')

        def apply():
            row['status'] = status

        def compensate():
            row['status'] = previous

        ok, result = self._run(OptimisticCommand(
            apply, compensate,
            lambda: self.client.set_order_status(pk, status),
            label=f'Status change of {pk}',
        ))
        if ok:
            self.notifier.success(f'Status updated to {status}')
        else:
            self._report(result, 'Failed to update status')
        return ok

    def delete(self, pk):
        return self._remove_rows([pk], lambda: self.client.delete(self.entity, pk), 'Moved to trash')

    def restore(self, pk):
        return self._remove_rows([pk], lambda: self.client.restore(self.entity, pk), 'Restored')

    def delete_permanently(self, pk):
        if not self.confirm('Permanently delete this item? This cannot be undone.'):
            return False
        return self._remove_rows(
            [pk], lambda: self.client.delete_permanently(self.entity, pk), 'Deleted permanently'
        )

    def bulk_delete(self, permanent=False):
        ids = self._selected_ids()
        if not ids:
            return False
        question = (
            f'Permanently delete {len(ids)} item(s)? This cannot be undone.'
            if permanent else f'Move {len(ids)} item(s) to trash?'
        )
        if not self.confirm(question):
            return False
        return self._remove_rows(
            ids,
            lambda: self.client.bulk_delete(self.entity, ids, permanent=permanent),
            'Deleted permanently' if permanent else 'Moved to trash',
            clear_selection=True,
        )

    def bulk_restore(self):
        ids = self._selected_ids()
        if not ids or not self.confirm(f'Restore {len(ids)} item(s)?'):
            return False
        return self._remove_rows(
            ids, lambda: self.client.bulk_restore(self.entity, ids), 'Restored', clear_selection=True
        )

    def bulk_ship(self, carrier, tracking_number):
        """
        Ship the selected orders one request at a time.

        ``tracking_number`` is a string or a callable taking the order id.
        The selection is cleared only when every order shipped.
        """
        ids = self._selected_ids()
        if not ids or not self.confirm(f'Ship {len(ids)} order(s) with {carrier}?'):
            return False

        failed = []
        self.state = ListState.MUTATING
        try:
            for pk in ids:
                tracking = tracking_number(pk) if callable(tracking_number) else tracking_number
                row = self._find(pk)
                previous = dict(row) if row is not None else None

                def apply(row=row):
                    if row is not None:
                        row['status'] = 'shipped'
                        row['fulfillment_status'] = 'complete'

                def compensate(row=row, previous=previous):
                    if row is not None:
                        row.clear()
                        row.update(previous)

                ok, result = OptimisticCommand(
                    apply, compensate,
                    lambda pk=pk, tracking=tracking: self.client.ship_order(pk, carrier, tracking),
                    label=f'Shipping {pk}',
                ).run()
                if not ok:
                    failed.append((pk, result))
        finally:
            self.state = ListState.IDLE

        if failed:
            for pk, error in failed:
                self._report(error, f'Failed to ship order {pk}')
            return False

        self.selected.clear()
        self.notifier.success(f'{len(ids)} order(s) shipped')
        return True

    # Internals

    def _selected_ids(self):
        return [pk for pk in self.row_ids if pk in self.selected]

    def _find(self, pk):
        for row in self.rows:
            if row['id'] == pk:
                return row
        return None

    def _run(self, command):
        self.state = ListState.MUTATING
        try:
            return command.run()
        finally:
            self.state = ListState.IDLE

    def _remove_rows(self, ids, request, success_message, clear_selection=False):
        """Drop ``ids`` from the visible rows and counts, then send ``request``."""
        snapshot_rows = list(self.rows)
        snapshot_pagination = dict(self.pagination)
        snapshot_selected = set(self.selected)
        removing = set(ids)

        def apply():
            self.rows = [row for row in self.rows if row['id'] not in removing]
            total = self.pagination.get('total', 0)
            self.pagination['total'] = max(total - len(ids), 0)
            self.pagination['total_pages'] = remaining_pages(total, len(ids), self.limit)
            self.selected -= removing

        def compensate():
            self.rows = snapshot_rows
            self.pagination = snapshot_pagination
            self.selected = snapshot_selected

        ok, result = self._run(OptimisticCommand(apply, compensate, request, label=success_message))
        if not ok:
            self._report(result, f'{success_message} failed')
            return False

        if clear_selection:
            self.selected.clear()
        self.notifier.success(f'{success_message}: {len(ids)} item(s)')
        return True

    def _report(self, error, prefix):
        """Network and validation failures read differently to the user."""
        if isinstance(error, ValidationFailed):
            self.notifier.error(f'{prefix}: {error.message}', details=error.field_errors)
        elif isinstance(error, RequestFailed):
            self.notifier.error(f'{prefix}. Check your connection and try again.')
        else:
            self.notifier.error(f'{prefix}: {error.message}')
