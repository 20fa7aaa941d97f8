"""
Tests for pages app.
"""

import pytest

from .models import Page


@pytest.mark.django_db
class TestPageModel:

    def test_first_publish_sets_timestamp(self):
        page = Page.objects.create(title='About us', slug='about')
        assert page.published_at is None

        page.is_published = True
        page.save()
        first_published = page.published_at
        assert first_published is not None

        page.title = 'About the shop'
        page.save()
        assert page.published_at == first_published

    def test_unpublish_clears_timestamp(self):
        page = Page.objects.create(title='About us', slug='about', is_published=True)

        page.is_published = False
        page.save()

        assert page.published_at is None

    def test_drafts_have_no_search_document(self):
        draft = Page(title='Draft', slug='draft', content='Hidden')
        published = Page(title='Terms', slug='terms', content='Terms of service', is_published=True)

        assert draft.search_document() is None
        assert published.search_document()['url'] == '/pages/terms'


@pytest.mark.django_db
class TestPageAPI:

    def test_create_and_retrieve(self, staff_client):
        response = staff_client.post('/api/v1/pages/', {
            'title': 'Shipping policy',
            'slug': 'shipping-policy',
            'content': 'We ship within three days.',
            'is_published': True,
        }, format='json')
        assert response.status_code == 201

        detail = staff_client.get(f"/api/v1/pages/{response.data['id']}/")

        assert detail.data['slug'] == 'shipping-policy'
        assert detail.data['published_at'] is not None

    def test_published_at_is_read_only(self, staff_client):
        response = staff_client.post('/api/v1/pages/', {
            'title': 'Draft page',
            'slug': 'draft-page',
            'published_at': '2020-01-01T00:00:00Z',
        }, format='json')

        assert Page.objects.get(pk=response.data['id']).published_at is None

    def test_duplicate_slug_is_conflict(self, staff_client):
        Page.objects.create(title='About us', slug='about')

        response = staff_client.post('/api/v1/pages/', {'title': 'About again', 'slug': 'about'}, format='json')

        assert response.status_code == 409

    def test_update_keeps_own_slug(self, staff_client):
        page = Page.objects.create(title='About us', slug='about')

        response = staff_client.put(f'/api/v1/pages/{page.pk}/', {'title': 'About the shop', 'slug': 'about'}, format='json')

        assert response.status_code == 200
        assert response.data == {'success': True}

    def test_filter_by_status(self, staff_client):
        Page.objects.create(title='Live page', slug='live', is_published=True)
        Page.objects.create(title='Draft page', slug='draft')

        published = staff_client.get('/api/v1/pages/?status=published')
        drafts = staff_client.get('/api/v1/pages/?status=draft')

        assert [row['slug'] for row in published.data['pages']] == ['live']
        assert [row['slug'] for row in drafts.data['pages']] == ['draft']
