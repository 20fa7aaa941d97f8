"""
Tests for analytics app.
"""

import pytest

from .models import AnalyticsScript


@pytest.fixture
def script(db):
    return AnalyticsScript.objects.create(
        name='Google Analytics',
        type=AnalyticsScript.Type.GOOGLE_ANALYTICS,
        config={'measurement_id': 'G-TEST123'},
    )


@pytest.mark.django_db
class TestAnalyticsScriptAPI:

    def test_list_is_not_paginated(self, staff_client, script):
        response = staff_client.get('/api/v1/analytics/')

        assert response.status_code == 200
        assert [row['id'] for row in response.data] == [script.pk]

    def test_create(self, staff_client):
        response = staff_client.post('/api/v1/analytics/', {
            'name': 'Meta Pixel',
            'type': 'facebook_pixel',
            'config': {'pixel_id': '1234567890'},
            'location': 'body_end',
        }, format='json')

        assert response.status_code == 201
        assert response.data['id'].startswith('analytics_')
        assert response.data['script']['use_partytown'] is True

    def test_empty_config_is_rejected(self, staff_client):
        response = staff_client.post('/api/v1/analytics/', {
            'name': 'Custom tag', 'type': 'custom', 'config': {},
        }, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'config'

    def test_update(self, staff_client, script):
        response = staff_client.put(f'/api/v1/analytics/{script.pk}/', {
            'name': 'Google Analytics 4',
            'type': 'google_analytics',
            'config': {'measurement_id': 'G-NEW'},
        }, format='json')

        assert response.status_code == 200
        assert response.data['success'] is True
        assert response.data['script']['config'] == {'measurement_id': 'G-NEW'}

    def test_toggle(self, staff_client, script):
        response = staff_client.post(f'/api/v1/analytics/{script.pk}/toggle/')

        assert response.data == {'success': True, 'is_active': False}
        script.refresh_from_db()
        assert script.is_active is False

    def test_delete_is_permanent(self, staff_client, script):
        response = staff_client.delete(f'/api/v1/analytics/{script.pk}/')

        assert response.status_code == 204
        assert not AnalyticsScript.objects.exists()

    def test_requires_staff(self, api_client):
        assert api_client.get('/api/v1/analytics/').status_code in (401, 403)
