"""
Tests for users app.
"""

import pytest
from django.contrib.auth import get_user_model

User = get_user_model()


@pytest.mark.django_db
class TestUserModel:

    def test_email_is_username_field(self, staff_user):
        assert User.USERNAME_FIELD == 'email'
        assert str(staff_user) == 'admin@example.com'

    def test_full_name(self):
        user = User(first_name='Jane', last_name='Doe')
        assert user.full_name == 'Jane Doe'


@pytest.mark.django_db
class TestAuthAPI:

    def test_me(self, staff_client):
        response = staff_client.get('/api/v1/users/me/')

        assert response.status_code == 200
        assert response.data['email'] == 'admin@example.com'
        assert response.data['is_staff'] is True

    def test_obtain_token_with_email(self, api_client, staff_user):
        response = api_client.post('/api/v1/auth/token/', {
            'email': 'admin@example.com',
            'password': 'testpass123',
        }, format='json')

        assert response.status_code == 200
        assert 'access' in response.data

    def test_non_staff_cannot_use_admin_api(self, api_client, db):
        user = User.objects.create_user(email='shopper@example.com', username='shopper', password='pw123456')
        api_client.force_authenticate(user=user)

        assert api_client.get('/api/v1/orders/').status_code == 403
        assert api_client.get('/api/v1/users/me/').status_code == 200
