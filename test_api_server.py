"""
Tests for the Flask extraction API.
"""
import pytest

import api_server
from config import NOT_FOUND

LISTING_PAGE = """
<html><head><title>Vintage Oak Dining Chair | eBay</title></head>
<body>
  <div class="item-specifics"><dl><dt>Wood:</dt><dd>Oak</dd></dl></div>
  <div itemprop="description"><p>Solid oak chair, restored and waxed, collection only.</p></div>
</body></html>
"""


@pytest.fixture
def client():
    api_server.app.config['TESTING'] = True
    with api_server.app.test_client() as client:
        yield client


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_extract_single_page(client):
    response = client.post('/extract', json={'html': LISTING_PAGE, 'name': 'chair.html'})

    assert response.status_code == 200
    body = response.get_json()
    result = body['results'][0]
    assert body['success'] is True
    assert result['name'] == 'chair.html'
    assert result['valid'] is True
    assert result['listing']['title'] == 'Vintage Oak Dining Chair'
    assert result['listing']['itemSpecifics'] == [{'label': 'Wood', 'value': 'Oak'}]
    assert result['listing']['itemId'] == NOT_FOUND


def test_extract_reports_missing_fields(client):
    response = client.post('/extract', json={'html': '<html><body><p>hi</p></body></html>'})

    result = response.get_json()['results'][0]
    assert response.status_code == 200
    assert result['valid'] is False
    assert result['missing_fields'] == ['title', 'description', 'item specifics']


def test_extract_strict_rejects_unusable_listing(client):
    response = client.post('/extract', json={'html': '<p>hi</p>', 'strict': True})

    assert response.status_code == 422
    body = response.get_json()
    assert body['success'] is False
    assert body['missing_fields'] == ['title', 'description', 'item specifics']


@pytest.mark.parametrize('payload', [None, {}, {'html': ''}, {'html_contents': 'nope'}, {'html_contents': []},
                                     {'html_contents': ['<p>x</p>']}, {'page': '<p>x</p>'}])
def test_extract_bad_requests(client, payload):
    if payload is None:
        response = client.post('/extract', data='not json')
    else:
        response = client.post('/extract', json=payload)

    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_extract_batch_keeps_request_order(client):
    pages = [
        {'html': LISTING_PAGE, 'name': 'chair.html'},
        {'html': '<p>empty</p>', 'name': 'empty.html'},
        {'html': LISTING_PAGE},
    ]
    response = client.post('/extract', json={'html_contents': pages, 'max_workers': 2})

    body = response.get_json()
    assert response.status_code == 200
    assert [r['name'] for r in body['results']] == ['chair.html', 'empty.html', 'item_2']
    assert body['total_processed'] == 3
    assert body['total_valid'] == 2
    assert body['max_workers_used'] == 2


def test_extract_batch_size_limit(client):
    pages = [{'html': '<p>x</p>'}] * (api_server.MAX_BATCH_SIZE + 1)
    response = client.post('/extract', json={'html_contents': pages})
    assert response.status_code == 400


def test_validate_endpoint(client):
    listing = {'title': 'Oak chair', 'descriptionHtml': '<p>Oak</p>',
               'itemSpecifics': [{'label': 'Wood', 'value': 'Oak'}]}
    assert client.post('/validate', json={'listing': listing}).status_code == 200

    listing['itemSpecifics'] = []
    response = client.post('/validate', json={'listing': listing})
    assert response.status_code == 422
    assert response.get_json()['missing_fields'] == ['item specifics']


def test_text_endpoint(client):
    response = client.post('/text', json={'html': '<ul><li>A</li><li>B</li></ul>'})
    assert response.get_json()['text'] == '- A\n- B'
    assert client.post('/text', json={}).status_code == 400


@pytest.mark.parametrize('endpoint,payload', [
    ('/validate', [1]),
    ('/validate', 'listing'),
    ('/validate', {'listing': 'oak chair'}),
    ('/text', ['x']),
    ('/text', {'html': 5}),
    ('/config', ['max_workers']),
    ('/extract', [{'html': '<p>x</p>'}]),
])
def test_non_object_bodies_are_rejected_as_json(client, endpoint, payload):
    response = client.post(endpoint, json=payload)

    assert response.status_code == 400
    assert response.is_json
    assert response.get_json()['success'] is False


def test_config_endpoint(client, monkeypatch):
    monkeypatch.setattr(api_server, 'MAX_WORKERS', api_server.MAX_WORKERS)

    assert client.post('/config', json={'max_workers': 50}).status_code == 400
    assert client.post('/config', json={'max_workers': 'many'}).status_code == 400

    response = client.post('/config', json={'max_workers': 3})
    assert response.status_code == 200
    assert client.get('/config').get_json()['max_workers'] == 3
