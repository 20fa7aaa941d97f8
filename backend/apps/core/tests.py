"""
Tests for the shared admin resource behaviour.

Best practices demonstrated:
- Use pytest fixtures
- Exercise the generic lifecycle through real endpoints
- Test edge cases (pages past the end, conflicting restores)
"""

import math
from datetime import datetime, timezone as dt_timezone
from unittest import mock

import pytest
from rest_framework.exceptions import ErrorDetail

from apps.pages.models import Page
from apps.products.models import Category, Product
from .exceptions import flatten_errors
from .models import SearchDocument, generate_id
from .tasks import rebuild_search_index, reindex_search, schedule_reindex


def make_pages(count):
    return [
        Page.objects.create(title=f'Page number {i}', slug=f'page-{i}', content='Body')
        for i in range(count)
    ]


class TestIdentifiers:

    def test_generate_id_uses_prefix(self):
        first = generate_id('prod')
        assert first.startswith('prod_')
        assert len(first) == len('prod_') + 20
        assert first != generate_id('prod')

    @pytest.mark.django_db
    def test_id_assigned_on_save(self, category):
        assert category.pk.startswith('cat_')


@pytest.mark.django_db
class TestPagination:
    """Offset pagination contract."""

    def test_pages_cover_every_row_once(self, staff_client):
        make_pages(23)

        seen = []
        response = staff_client.get('/api/v1/pages/?limit=10')
        pagination = response.data['pagination']
        assert pagination == {'total': 23, 'page': 1, 'limit': 10, 'total_pages': 3}

        for page in range(1, pagination['total_pages'] + 1):
            response = staff_client.get(f'/api/v1/pages/?limit=10&page={page}')
            seen.extend(row['id'] for row in response.data['pages'])

        assert len(seen) == 23
        assert len(set(seen)) == 23
        assert pagination['total_pages'] == math.ceil(23 / 10)

    def test_page_past_the_end_is_empty(self, staff_client):
        make_pages(3)

        response = staff_client.get('/api/v1/pages/?page=99')

        assert response.status_code == 200
        assert response.data['pages'] == []
        assert response.data['pagination']['total'] == 3

    def test_invalid_values_fall_back_to_defaults(self, staff_client):
        make_pages(2)

        response = staff_client.get('/api/v1/pages/?page=abc&limit=-4')

        assert response.data['pagination']['page'] == 1
        assert response.data['pagination']['limit'] == 10

    def test_limit_is_capped(self, staff_client):
        response = staff_client.get('/api/v1/pages/?limit=1000')
        assert response.data['pagination']['limit'] == 100


@pytest.mark.django_db
class TestSoftDeleteLifecycle:
    """Trash, restore and permanent delete through the category endpoints."""

    def test_requires_staff(self, api_client):
        response = api_client.get('/api/v1/categories/')
        assert response.status_code in (401, 403)

    def test_soft_deleted_row_only_in_trash(self, staff_client, category):
        response = staff_client.delete(f'/api/v1/categories/{category.pk}/')
        assert response.status_code == 204

        active = staff_client.get('/api/v1/categories/?search=Electronics')
        trashed = staff_client.get('/api/v1/categories/?search=Electronics&trashed=true')

        assert [row['id'] for row in active.data['categories']] == []
        assert [row['id'] for row in trashed.data['categories']] == [category.pk]

    def test_restore_leaves_other_fields_identical(self, staff_client, category):
        before = Category.objects.filter(pk=category.pk).values().get()

        staff_client.delete(f'/api/v1/categories/{category.pk}/')
        response = staff_client.post(f'/api/v1/categories/{category.pk}/restore/')

        assert response.status_code == 204
        assert Category.objects.filter(pk=category.pk).values().get() == before

    def test_restore_of_live_row_is_rejected(self, staff_client, category):
        response = staff_client.post(f'/api/v1/categories/{category.pk}/restore/')

        assert response.status_code == 400
        assert response.data == {'error': 'Category is not deleted'}

    def test_restore_conflicts_with_new_slug_owner(self, staff_client, category):
        category.delete()
        Category.objects.create(name='Other electronics', slug='electronics')

        response = staff_client.post(f'/api/v1/categories/{category.pk}/restore/')

        assert response.status_code == 409
        assert 'already in use' in response.data['error']
        assert Category.objects.get(pk=category.pk).is_deleted

    def test_permanent_delete_requires_trash(self, staff_client, category):
        response = staff_client.delete(f'/api/v1/categories/{category.pk}/permanent/')

        assert response.status_code == 400
        assert Category.objects.filter(pk=category.pk).exists()

    def test_permanent_delete_removes_row(self, staff_client, category):
        category.delete()

        response = staff_client.delete(f'/api/v1/categories/{category.pk}/permanent/')

        assert response.status_code == 204
        assert not Category.objects.filter(pk=category.pk).exists()

    def test_missing_row_is_404(self, staff_client):
        response = staff_client.post('/api/v1/categories/cat_missing/restore/')

        assert response.status_code == 404
        assert response.data == {'error': 'Category not found'}


@pytest.mark.django_db
class TestBulkOperations:

    def test_one_blocked_id_aborts_the_batch(self, staff_client, category, product):
        free = Category.objects.create(name='Books', slug='books')

        response = staff_client.post(
            '/api/v1/categories/bulk-delete/',
            {'ids': [free.pk, category.pk], 'permanent': False},
            format='json'
        )

        assert response.status_code == 409
        assert [item['id'] for item in response.data['details']] == [category.pk]
        assert Category.objects.active().count() == 2

    def test_bulk_delete_and_restore(self, staff_client):
        pages = make_pages(3)
        ids = [page.pk for page in pages]

        response = staff_client.post('/api/v1/pages/bulk-delete/', {'ids': ids}, format='json')
        assert response.status_code == 204
        assert Page.objects.trashed().count() == 3

        response = staff_client.post('/api/v1/pages/bulk-restore/', {'ids': ids}, format='json')
        assert response.status_code == 204
        assert Page.objects.active().count() == 3

    def test_bulk_restore_blocks_slug_repeated_in_batch(self, staff_client):
        first = Category.objects.create(name='Garden', slug='garden')
        first.delete()
        second = Category.objects.create(name='Garden tools', slug='garden')
        second.delete()

        response = staff_client.post(
            '/api/v1/categories/bulk-restore/', {'ids': [first.pk, second.pk]}, format='json'
        )

        assert response.status_code == 409
        assert response.data['details'] == [{
            'id': second.pk,
            'error': "Cannot restore category: slug 'garden' appears more than once in this batch",
        }]
        assert Category.objects.trashed().count() == 2

    def test_missing_id_is_404_and_nothing_changes(self, staff_client):
        page = make_pages(1)[0]

        response = staff_client.post(
            '/api/v1/pages/bulk-delete/', {'ids': [page.pk, 'page_missing']}, format='json'
        )

        assert response.status_code == 404
        assert 'page_missing' in response.data['error']
        assert not Page.objects.get(pk=page.pk).is_deleted

    def test_bulk_permanent_only_sees_trash(self, staff_client):
        page = make_pages(1)[0]

        response = staff_client.post(
            '/api/v1/pages/bulk-delete/', {'ids': [page.pk], 'permanent': True}, format='json'
        )

        assert response.status_code == 404
        assert Page.objects.filter(pk=page.pk).exists()

    def test_empty_id_list_is_rejected(self, staff_client):
        response = staff_client.post('/api/v1/pages/bulk-delete/', {'ids': []}, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'ids'


@pytest.mark.django_db
class TestListQueries:

    def test_sort_whitelist(self, staff_client):
        Page.objects.create(title='Bravo page', slug='bravo')
        Page.objects.create(title='Alpha page', slug='alpha')

        response = staff_client.get('/api/v1/pages/?sort=title&order=asc')
        assert [row['title'] for row in response.data['pages']] == ['Alpha page', 'Bravo page']

        response = staff_client.get('/api/v1/pages/?sort=content&order=asc')
        assert response.status_code == 200
        assert sorted(row['title'] for row in response.data['pages']) == ['Alpha page', 'Bravo page']

    def test_end_date_includes_the_whole_day(self, staff_client):
        inside, outside = make_pages(2)
        Page.objects.filter(pk=inside.pk).update(
            created_at=datetime(2024, 1, 10, 23, 59, 59, tzinfo=dt_timezone.utc)
        )
        Page.objects.filter(pk=outside.pk).update(
            created_at=datetime(2024, 1, 11, 0, 0, 1, tzinfo=dt_timezone.utc)
        )

        response = staff_client.get('/api/v1/pages/?start_date=2024-01-10&end_date=2024-01-10')

        assert [row['id'] for row in response.data['pages']] == [inside.pk]

    def test_invalid_filter_value_is_400(self, staff_client):
        response = staff_client.get('/api/v1/pages/?status=archived')
        assert response.status_code == 400


@pytest.mark.django_db
class TestErrorEnvelope:

    def test_validation_errors_are_flattened(self, staff_client):
        response = staff_client.post('/api/v1/categories/', {'name': 'TV', 'slug': 'Bad Slug'}, format='json')

        assert response.status_code == 400
        assert response.data['error'] == 'Validation failed'
        fields = {detail['field'] for detail in response.data['details']}
        assert fields == {'name', 'slug'}

    def test_duplicate_slug_is_conflict(self, staff_client, category):
        response = staff_client.post(
            '/api/v1/categories/', {'name': 'Electronics 2', 'slug': 'electronics'}, format='json'
        )

        assert response.status_code == 409
        assert response.data == {'error': 'Slug already exists'}

    def test_flatten_nested_errors(self):
        detail = {
            'items': [{}, {'quantity': [ErrorDetail('Must be at least 1.')]}],
            'non_field_errors': [ErrorDetail('Bad payload')],
        }

        assert flatten_errors(detail) == [
            {'field': 'items.1.quantity', 'message': 'Must be at least 1.'},
            {'field': 'non_field_errors', 'message': 'Bad payload'},
        ]


@pytest.mark.django_db
class TestSearchIndex:

    def test_reindex_upserts_and_removes(self, category):
        reindex_search('products.Category', [category.pk])
        document = SearchDocument.objects.get(model_label='products.Category', object_id=category.pk)
        assert document.title == 'Electronics'

        category.delete()
        reindex_search('products.Category', [category.pk])
        assert not SearchDocument.objects.filter(object_id=category.pk).exists()

    def test_inactive_product_is_not_indexed(self, product):
        product.is_active = False
        product.save()

        result = reindex_search('products.Product', [product.pk])

        assert result['indexed'] == 0

    def test_mutation_schedules_reindex_after_commit(self, staff_client, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            response = staff_client.post(
                '/api/v1/categories/', {'name': 'Garden', 'slug': 'garden'}, format='json'
            )

        assert response.status_code == 201
        assert callbacks
        assert SearchDocument.objects.filter(object_id=response.data['id']).exists()

    def test_dispatch_failure_is_logged_not_raised(self, django_capture_on_commit_callbacks):
        with mock.patch('apps.core.tasks.reindex_search.delay', side_effect=ConnectionError('broker down')), \
                mock.patch('apps.core.tasks.logger') as logger:
            with django_capture_on_commit_callbacks(execute=True):
                schedule_reindex('products.Category', ['cat_x'])

        assert logger.error.called
        assert 'Could not schedule reindex' in logger.error.call_args[0][0]

    def test_rebuild_drops_orphans(self, category, product):
        SearchDocument.objects.create(model_label='products.Category', object_id='cat_gone', title='Gone')
        Page.objects.create(title='About us', slug='about', is_published=True)

        totals = rebuild_search_index()

        assert totals == {'products.Category': 1, 'products.Product': 1, 'pages.Page': 1}
        assert not SearchDocument.objects.filter(object_id='cat_gone').exists()


@pytest.mark.django_db
class TestSearchAPI:

    @pytest.fixture
    def indexed(self, category, product):
        Page.objects.create(title='Mouse care guide', slug='mouse-care', content='Cleaning tips', is_published=True)
        rebuild_search_index()

    def test_results_are_grouped(self, api_client, indexed, product):
        response = api_client.get('/api/v1/search/?q=mouse')

        assert response.status_code == 200
        assert response.data['query'] == 'mouse'
        assert [row['id'] for row in response.data['products']] == [product.pk]
        assert [row['slug'] for row in response.data['pages']] == ['mouse-care']
        assert response.data['categories'] == []

    def test_every_term_must_match(self, api_client, indexed):
        response = api_client.get('/api/v1/search/?q=mouse+cleaning')

        assert response.data['products'] == []
        assert len(response.data['pages']) == 1

    def test_groups_can_be_skipped(self, api_client, indexed):
        response = api_client.get('/api/v1/search/?q=mouse&search_pages=false')

        assert response.data['pages'] == []
        assert len(response.data['products']) == 1

    def test_blank_query_returns_nothing(self, api_client, indexed):
        response = api_client.get('/api/v1/search/?q=++')

        assert response.data == {'products': [], 'pages': [], 'categories': [], 'query': ''}

    def test_limit_is_bounded(self, api_client):
        response = api_client.get('/api/v1/search/?q=mouse&limit=500')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'limit'

    def test_reindex_queues_rebuild(self, staff_client):
        with mock.patch('apps.core.views.rebuild_search_index.delay') as delay:
            delay.return_value.id = 'task-1'
            response = staff_client.post('/api/v1/search/reindex/')

        assert response.status_code == 202
        assert response.data['task_id'] == 'task-1'
        delay.assert_called_once_with()

    def test_reindex_requires_staff(self, api_client):
        assert api_client.post('/api/v1/search/reindex/').status_code in (401, 403)
