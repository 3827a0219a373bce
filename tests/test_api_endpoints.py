"""Tests for metadata API endpoints."""

import hashlib


def _create_folder(client, name, parent_id=None):
    response = client.post('/api/storage/folders', json={'name': name, 'parentId': parent_id})
    assert response.status_code == 201
    return response.json()


def _request_upload(client, file_name='a.pdf', file_type='application/pdf', **extra):
    response = client.post('/api/s3/upload-url', json={'fileName': file_name, 'fileType': file_type, **extra})
    assert response.status_code == 200
    return response.json()


class TestServiceEndpoints:

    def test_root_endpoint(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert response.json()['status'] == 'running'

    def test_health_endpoint(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    def test_ready_endpoint(self, client):
        response = client.get('/ready')
        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'ready'
        assert data['database'] == 'ok'
        assert data['object_store'] == 'ok'

    def test_request_id_header(self, client):
        response = client.get('/')
        assert response.headers['X-Request-ID']


class TestFolderEndpoints:

    def test_create_folder_camel_case(self, client):
        parent = _create_folder(client, 'Docs')
        child = _create_folder(client, 'Invoices', parent_id=parent['id'])

        assert child['parentId'] == parent['id']
        assert 'createdAt' in child
        assert 'updatedAt' in child
        assert 'parent_id' not in child

    def test_create_folder_missing_name(self, client):
        response = client.post('/api/storage/folders', json={'description': 'no name'})
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    def test_create_folder_blank_name(self, client):
        response = client.post('/api/storage/folders', json={'name': '   '})
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    def test_create_duplicate_folder(self, client):
        _create_folder(client, 'Docs')

        response = client.post('/api/storage/folders', json={'name': 'Docs'})
        assert response.status_code == 409
        assert response.json()['code'] == 'CONFLICT'

    def test_create_folder_unknown_parent(self, client):
        response = client.post('/api/storage/folders', json={'name': 'Child', 'parentId': 'missing'})
        assert response.status_code == 404
        assert response.json()['code'] == 'NOT_FOUND'

    def test_root_parent_sentinel(self, client):
        folder = _create_folder(client, 'Docs', parent_id='root')
        assert folder['parentId'] is None

        child = _create_folder(client, 'Child', parent_id=folder['id'])
        response = client.put(f"/api/storage/folders/{child['id']}", json={'parentId': 'root'})
        assert response.status_code == 200
        assert response.json()['parentId'] is None

    def test_search_non_ascii_name(self, client):
        _create_folder(client, 'Ölfass')

        response = client.get('/api/storage/folders/search', params={'name': 'ölfass'})
        assert [f['name'] for f in response.json()['data']] == ['Ölfass']

    def test_get_folder_relations_only_when_requested(self, client):
        parent = _create_folder(client, 'Docs')
        _create_folder(client, 'Child', parent_id=parent['id'])

        plain = client.get(f"/api/storage/folders/{parent['id']}").json()
        assert 'children' not in plain
        assert 'files' not in plain

        full = client.get(
            f"/api/storage/folders/{parent['id']}",
            params={'includeChildren': 'true', 'includeFiles': 'true'}
        ).json()
        assert [c['name'] for c in full['children']] == ['Child']
        assert full['files'] == []

    def test_get_missing_folder(self, client):
        response = client.get('/api/storage/folders/missing')
        assert response.status_code == 404
        assert response.json()['code'] == 'NOT_FOUND'

    def test_list_root_folders(self, client):
        parent = _create_folder(client, 'B')
        _create_folder(client, 'A')
        _create_folder(client, 'Nested', parent_id=parent['id'])

        response = client.get('/api/storage/folders')
        assert response.status_code == 200
        assert [f['name'] for f in response.json()] == ['A', 'B']

    def test_update_folder(self, client):
        target = _create_folder(client, 'Target')
        folder = _create_folder(client, 'Folder')

        response = client.put(
            f"/api/storage/folders/{folder['id']}",
            json={'name': 'Renamed', 'parentId': target['id']}
        )
        assert response.status_code == 200
        assert response.json()['name'] == 'Renamed'
        assert response.json()['parentId'] == target['id']

        back = client.put(f"/api/storage/folders/{folder['id']}", json={'parentId': None})
        assert back.json()['parentId'] is None
        assert back.json()['name'] == 'Renamed'

    def test_move_folder_into_descendant(self, client):
        parent = _create_folder(client, 'Parent')
        child = _create_folder(client, 'Child', parent_id=parent['id'])

        response = client.put(f"/api/storage/folders/{parent['id']}", json={'parentId': child['id']})
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    def test_delete_non_empty_folder(self, client):
        parent = _create_folder(client, 'Parent')
        _create_folder(client, 'Child', parent_id=parent['id'])

        response = client.delete(f"/api/storage/folders/{parent['id']}")
        assert response.status_code == 409
        assert client.get(f"/api/storage/folders/{parent['id']}").status_code == 200

        response = client.delete(f"/api/storage/folders/{parent['id']}", params={'recursive': 'true'})
        assert response.status_code == 200
        assert response.json()['recursive'] is True
        assert response.json()['folder']['id'] == parent['id']
        assert client.get(f"/api/storage/folders/{parent['id']}").status_code == 404

    def test_search_folders(self, client):
        for i in range(3):
            _create_folder(client, f'Report {i}')
        _create_folder(client, 'Other')

        response = client.get('/api/storage/folders/search', params={'name': 'report', 'limit': 2})
        assert response.status_code == 200
        data = response.json()
        assert data['total'] == 3
        assert data['totalPages'] == 2
        assert data['hasNext'] is True
        assert [f['name'] for f in data['data']] == ['Report 0', 'Report 1']

    def test_list_folder_files(self, client):
        folder = _create_folder(client, 'Docs')
        _request_upload(client, folderId=folder['id'])

        response = client.get(f"/api/storage/folders/{folder['id']}/files")
        assert response.status_code == 200
        assert len(response.json()) == 1

        assert client.get('/api/storage/folders/missing/files').status_code == 404
        assert client.get('/api/storage/folders/root/files').json() == []


class TestFileEndpoints:

    def test_create_and_get_file(self, client):
        response = client.post('/api/storage/files', json={
            'name': 'notes.txt',
            'storagePath': 'external/notes.txt',
            'mimeType': 'text/plain',
            'size': 12,
            'tags': ['work'],
        })
        assert response.status_code == 201
        created = response.json()
        assert created['status'] == 'pending'
        assert created['storagePath'] == 'external/notes.txt'

        by_id = client.get(f"/api/storage/files/{created['id']}")
        assert by_id.json()['tags'] == ['work']

        by_path = client.get('/api/storage/files/by-path', params={'storagePath': 'external/notes.txt'})
        assert by_path.status_code == 200
        assert by_path.json()['id'] == created['id']

    def test_create_file_negative_size(self, client):
        response = client.post('/api/storage/files', json={
            'name': 'a.txt', 'storagePath': 'x/a.txt', 'mimeType': 'text/plain', 'size': -1,
        })
        assert response.status_code == 400

    def test_create_file_duplicate_storage_path(self, client):
        body = {'name': 'a.txt', 'storagePath': 'x/a.txt', 'mimeType': 'text/plain', 'size': 1}
        assert client.post('/api/storage/files', json=body).status_code == 201

        response = client.post('/api/storage/files', json=body)
        assert response.status_code == 409

    def test_update_file_moves_between_folders(self, client):
        folder = _create_folder(client, 'Docs')
        upload = _request_upload(client)

        moved = client.put(f"/api/storage/files/{upload['fileId']}", json={'folderId': folder['id']})
        assert moved.status_code == 200
        assert moved.json()['folderId'] == folder['id']

        back = client.put(f"/api/storage/files/{upload['fileId']}", json={'folderId': None})
        assert back.json()['folderId'] is None

    def test_get_missing_file(self, client):
        response = client.get('/api/storage/files/missing')
        assert response.status_code == 404
        assert response.json()['code'] == 'NOT_FOUND'

    def test_search_files(self, client):
        _request_upload(client, 'photo.png', 'image/png', tags=['holiday'])
        _request_upload(client, 'scan.pdf', 'application/pdf')

        response = client.get('/api/storage/files/search', params={'mimeType': 'image', 'tags': 'holiday,other'})
        assert response.status_code == 200
        data = response.json()
        assert data['total'] == 1
        assert data['data'][0]['name'] == 'photo.png'

    def test_search_invalid_sort(self, client):
        response = client.get('/api/storage/files/search', params={'sortBy': 'storagePath'})
        assert response.status_code == 400

    def test_file_stats(self, client):
        _request_upload(client, 'a.png', 'image/png', fileSize=10)
        _request_upload(client, 'b.pdf', 'application/pdf', fileSize=5)

        response = client.get('/api/storage/files/stats')
        assert response.status_code == 200
        data = response.json()
        assert data['totalFiles'] == 2
        assert data['totalSize'] == 15
        assert {d['mimeType'] for d in data['mimeTypeDistribution']} == {'image/png', 'application/pdf'}

    def test_delete_file(self, client, app_object_store):
        upload = _request_upload(client)
        app_object_store.put_object(upload['key'], b'data', 'application/pdf')

        response = client.delete(f"/api/storage/files/{upload['fileId']}")
        assert response.status_code == 200
        assert app_object_store.head_object(upload['key']) is None


class TestTransferEndpoints:

    def test_upload_url(self, client):
        data = _request_upload(client, 'Report.pdf', fileSize=100, description='Q1', tags=['finance'])

        assert data['uploadUrl'].startswith('http')
        assert data['key'].startswith('root/')
        assert data['originalFileName'] == 'Report.pdf'
        assert data['expiresIn'] == 900
        assert data['maxFileSize'] == 50 * 1024 * 1024
        assert data['instructions']['method'] == 'PUT'
        assert data['instructions']['headers']['Content-Type'] == 'application/pdf'

    def test_upload_url_disallowed_type(self, client):
        response = client.post('/api/s3/upload-url', json={'fileName': 'x.exe', 'fileType': 'application/x-msdownload'})
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'
        assert client.get('/api/s3/files').json()['pagination']['total'] == 0

    def test_upload_url_too_large(self, client):
        response = client.post('/api/s3/upload-url', json={
            'fileName': 'big.pdf', 'fileType': 'application/pdf', 'fileSize': 50 * 1024 * 1024 + 1,
        })
        assert response.status_code == 400

    def test_upload_url_missing_fields(self, client):
        response = client.post('/api/s3/upload-url', json={'fileName': 'a.pdf'})
        assert response.status_code == 400

    def test_upload_url_unknown_folder(self, client):
        response = client.post('/api/s3/upload-url', json={
            'fileName': 'a.pdf', 'fileType': 'application/pdf', 'folderId': 'missing',
        })
        assert response.status_code == 404

    def test_confirm_before_upload(self, client):
        upload = _request_upload(client)

        response = client.post('/api/s3/confirm-upload', json={'fileId': upload['fileId']})
        assert response.status_code == 404

        info = client.get(f"/api/s3/info/{upload['fileId']}").json()
        assert info['file']['status'] == 'pending'
        assert info['s3Verification']['exists'] is False

    def test_full_transfer_flow(self, client, app_object_store):
        folder = _create_folder(client, 'Docs')
        content = b'%PDF-1.4 api flow'
        upload = _request_upload(client, 'a.pdf', folderId=folder['id'], fileSize=len(content))
        assert upload['key'].startswith(f"folders/{folder['id']}/")
        assert upload['key'].endswith('.pdf')

        app_object_store.put_object(upload['key'], content, 'application/pdf')

        confirmed = client.post('/api/s3/confirm-upload', json={'fileId': upload['fileId']})
        assert confirmed.status_code == 200
        assert confirmed.json()['status'] == 'confirmed'
        assert confirmed.json()['checksum'] == hashlib.md5(content).hexdigest()

        listed = client.get(f"/api/storage/folders/{folder['id']}/files").json()
        assert [f['id'] for f in listed] == [upload['fileId']]

        download = client.get(f"/api/s3/download-url/{upload['fileId']}", params={'download': 'true'})
        assert download.status_code == 200
        assert download.json()['downloadType'] == 'attachment'
        assert download.json()['expiresIn'] == 3600

        info = client.get(f"/api/s3/info/{upload['fileId']}", params={'includeFolder': 'true'}).json()
        assert info['s3Verification']['exists'] is True
        assert info['s3Verification']['size'] == len(content)
        assert info['file']['folder']['name'] == 'Docs'

        deleted = client.delete(f"/api/s3/delete/{upload['fileId']}")
        assert deleted.status_code == 200
        assert deleted.json()['file']['id'] == upload['fileId']
        assert 'deletedAt' in deleted.json()

        assert client.delete(f"/api/s3/delete/{upload['fileId']}").status_code == 404
        assert client.get(f"/api/storage/folders/{folder['id']}/files").json() == []

    def test_list_files(self, client):
        for i in range(3):
            _request_upload(client, f'{i}.txt', 'text/plain')

        response = client.get('/api/s3/files', params={'limit': 2, 'sortBy': 'name', 'sortOrder': 'ASC'})
        assert response.status_code == 200
        data = response.json()
        assert [f['name'] for f in data['files']] == ['0.txt', '1.txt']
        assert data['pagination'] == {
            'page': 1, 'limit': 2, 'total': 3, 'totalPages': 2, 'hasNext': True, 'hasPrev': False,
        }
        assert data['sort'] == {'sortBy': 'name', 'sortOrder': 'asc'}
        assert data['filters']['tags'] == []

    def test_list_files_clamps_paging(self, client):
        response = client.get('/api/s3/files', params={'page': 0, 'limit': 1000})
        assert response.status_code == 200
        assert response.json()['pagination']['page'] == 1
        assert response.json()['pagination']['limit'] == 100

    def test_list_files_invalid_sort(self, client):
        response = client.get('/api/s3/files', params={'sortBy': 'bogus'})
        assert response.status_code == 400

    def test_download_url_unknown_file(self, client):
        assert client.get('/api/s3/download-url/missing').status_code == 404

    def test_stats(self, client):
        _request_upload(client, 'a.png', 'image/png', fileSize=7)

        response = client.get('/api/s3/stats')
        assert response.status_code == 200
        statistics = response.json()['statistics']
        assert statistics['totalFiles'] == 1
        assert statistics['totalSize'] == 7
