"""
Tests for media app.

Best practices demonstrated:
- Use pytest fixtures
- Test folder tree rules and file lifecycle separately
"""

import pytest

from apps.products.models import ProductImage
from .models import MediaFile, MediaFolder


@pytest.fixture
def folder(db):
    return MediaFolder.objects.create(name='Banners')


@pytest.fixture
def media_file(db):
    return MediaFile.objects.create(
        filename='hero.jpg',
        url='https://cdn.example.com/hero.jpg',
        size=2048,
        mime_type='image/jpeg',
    )


@pytest.mark.django_db
class TestMediaFileAPI:

    def test_create(self, staff_client, folder):
        response = staff_client.post('/api/v1/media/', {
            'filename': 'intro.mp4',
            'url': 'https://cdn.example.com/intro.mp4',
            'size': 1000,
            'mime_type': 'video/mp4',
            'folder': folder.pk,
        }, format='json')

        assert response.status_code == 201
        assert response.data['id'].startswith('file_')
        assert MediaFile.objects.get(pk=response.data['id']).folder == folder

    def test_filter_by_type_and_folder(self, staff_client, media_file, folder):
        filed = MediaFile.objects.create(
            filename='clip.mp4', url='https://cdn.example.com/clip.mp4',
            mime_type='video/mp4', folder=folder,
        )

        images = staff_client.get('/api/v1/media/?type=image')
        in_folder = staff_client.get(f'/api/v1/media/?folder={folder.pk}')
        unfiled = staff_client.get('/api/v1/media/?folder=root')

        assert [row['id'] for row in images.data['media']] == [media_file.pk]
        assert [row['id'] for row in in_folder.data['media']] == [filed.pk]
        assert [row['id'] for row in unfiled.data['media']] == [media_file.pk]

    def test_patch_cannot_change_url(self, staff_client, media_file):
        response = staff_client.patch(f'/api/v1/media/{media_file.pk}/', {
            'alt_text': 'Summer hero',
            'url': 'https://evil.example.com/x.jpg',
        }, format='json')

        assert response.status_code == 200
        media_file.refresh_from_db()
        assert media_file.alt_text == 'Summer hero'
        assert media_file.url == 'https://cdn.example.com/hero.jpg'

    def test_permanent_delete_blocked_by_product_image(self, staff_client, media_file, product):
        ProductImage.objects.create(product=product, url=media_file.url, is_primary=True)
        media_file.delete()

        response = staff_client.delete(f'/api/v1/media/{media_file.pk}/permanent/')

        assert response.status_code == 409
        assert response.data['details'] == [{'product': 'Wireless Mouse'}]

    def test_soft_delete_and_permanent_delete(self, staff_client, media_file):
        assert staff_client.delete(f'/api/v1/media/{media_file.pk}/').status_code == 204
        assert staff_client.delete(f'/api/v1/media/{media_file.pk}/permanent/').status_code == 204
        assert not MediaFile.objects.filter(pk=media_file.pk).exists()


@pytest.mark.django_db
class TestMediaFolderAPI:

    def test_list_counts_live_files(self, staff_client, folder):
        MediaFile.objects.create(filename='a.png', url='https://cdn.example.com/a.png', mime_type='image/png', folder=folder)
        MediaFile.objects.create(
            filename='b.png', url='https://cdn.example.com/b.png', mime_type='image/png', folder=folder
        ).delete()

        response = staff_client.get('/api/v1/media-folders/')

        assert response.status_code == 200
        assert response.data['folders'][0]['file_count'] == 1

    def test_create_and_duplicate_name(self, staff_client, folder):
        response = staff_client.post('/api/v1/media-folders/', {'name': 'Icons', 'parent': folder.pk}, format='json')
        assert response.status_code == 201

        duplicate = staff_client.post('/api/v1/media-folders/', {'name': 'banners'}, format='json')
        assert duplicate.status_code == 409

    def test_folder_cannot_move_into_descendant(self, staff_client, folder):
        child = MediaFolder.objects.create(name='Summer', parent=folder)

        response = staff_client.put(f'/api/v1/media-folders/{folder.pk}/', {'name': 'Banners', 'parent': child.pk}, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'parent'

    def test_rename(self, staff_client, folder):
        response = staff_client.put(f'/api/v1/media-folders/{folder.pk}/', {'name': 'Hero banners'}, format='json')

        assert response.data == {'success': True}
        folder.refresh_from_db()
        assert folder.name == 'Hero banners'

    def test_delete_non_empty_folder_is_conflict(self, staff_client, folder):
        MediaFile.objects.create(
            filename='old.png', url='https://cdn.example.com/old.png', mime_type='image/png', folder=folder
        ).delete()

        response = staff_client.delete(f'/api/v1/media-folders/{folder.pk}/')

        assert response.status_code == 409
        assert response.data['details'] == [{'files': 1, 'folders': 0}]

    def test_delete_empty_folder(self, staff_client, folder):
        response = staff_client.delete(f'/api/v1/media-folders/{folder.pk}/')

        assert response.status_code == 204
        assert not MediaFolder.objects.exists()
