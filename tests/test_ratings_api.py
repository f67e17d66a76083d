"""Tests for /api/ratings and /api/stores as seen by a normal user."""

from storerating import db
from storerating.errors import ALREADY_RATED_MESSAGE, NOT_RATED_MESSAGE, NOT_RATED_YET_MESSAGE


def test_rating_requires_login(client, store):
    response = client.post('/api/ratings', json={'store_id': store.id, 'rating': 4})
    assert response.status_code == 401


def test_submit_rating(client, login, store, rater):
    login(rater)

    response = client.post('/api/ratings', json={'store_id': store.id, 'rating': 4})

    assert response.status_code == 201
    data = response.get_json()
    assert data['rating']['user_id'] == rater.id
    assert data['rating']['store_id'] == store.id
    assert data['rating']['rating'] == 4
    assert data['rating']['created_at']
    assert data['store_updated'] == {'new_average_rating': 4.0, 'total_ratings': 1}


def test_submit_twice_returns_conflict_message(client, login, store, rater):
    login(rater)
    client.post('/api/ratings', json={'store_id': store.id, 'rating': 4})

    response = client.post('/api/ratings', json={'store_id': store.id, 'rating': 2})

    assert response.status_code == 409
    assert response.get_json()['error'] == ALREADY_RATED_MESSAGE
    db.session.refresh(store)
    assert store.rating == 4.0


def test_modify_rating(client, login, store, rater):
    login(rater)
    client.post('/api/ratings', json={'store_id': store.id, 'rating': 4})

    response = client.put('/api/ratings', json={'store_id': store.id, 'rating': 2})

    assert response.status_code == 200
    data = response.get_json()
    assert data['rating']['old_rating'] == 4
    assert data['rating']['new_rating'] == 2
    assert data['store_updated'] == {'new_average_rating': 2.0, 'total_ratings': 1}


def test_modify_unrated_store(client, login, store, rater):
    login(rater)

    response = client.put('/api/ratings', json={'store_id': store.id, 'rating': 2})

    assert response.status_code == 404
    assert response.get_json()['error'] == NOT_RATED_YET_MESSAGE


def test_delete_rating(client, login, store, raters):
    login(raters[1])
    client.post('/api/ratings', json={'store_id': store.id, 'rating': 5})
    login(raters[0])
    client.post('/api/ratings', json={'store_id': store.id, 'rating': 1})

    response = client.delete(f'/api/ratings/{store.id}')

    assert response.status_code == 200
    data = response.get_json()
    assert data['deleted_rating']['rating'] == 1
    assert data['store_updated'] == {'new_average_rating': 5.0, 'total_ratings': 1}

    response = client.delete(f'/api/ratings/{store.id}')
    assert response.status_code == 404
    assert response.get_json()['error'] == NOT_RATED_MESSAGE


def test_invalid_payloads(client, login, store, rater):
    login(rater)

    assert client.post('/api/ratings', json={'store_id': store.id, 'rating': 6}).status_code == 400
    assert client.post('/api/ratings', json={'store_id': store.id, 'rating': 3.5}).status_code == 400
    assert client.post('/api/ratings', json={'store_id': 'abc', 'rating': 3}).status_code == 400
    assert client.post('/api/ratings', data='not json').status_code == 400


def test_unknown_store(client, login, rater):
    login(rater)
    response = client.post('/api/ratings', json={'store_id': 4242, 'rating': 3})
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Store not found'


def test_owner_cannot_rate(client, login, store, owner):
    login(owner)
    response = client.post('/api/ratings', json={'store_id': store.id, 'rating': 5})
    assert response.status_code == 403
    assert response.get_json()['error'] == 'Only normal users can submit ratings'


def test_my_ratings_paginates(client, login, store, other_store, rater):
    login(rater)
    client.post('/api/ratings', json={'store_id': store.id, 'rating': 3})
    client.post('/api/ratings', json={'store_id': other_store.id, 'rating': 5})

    response = client.get('/api/ratings/my-ratings?limit=1')

    data = response.get_json()
    assert response.status_code == 200
    assert len(data['ratings']) == 1
    assert data['pagination'] == {'page': 1, 'limit': 1, 'total': 2, 'pages': 2}


def test_store_list_shows_user_rating_and_actions(client, login, store, other_store, rater):
    login(rater)
    client.post('/api/ratings', json={'store_id': store.id, 'rating': 4})

    response = client.get('/api/stores?sort=name&order=asc')

    stores = response.get_json()['stores']
    assert [s['name'] for s in stores] == ['Bakery', 'Corner Store']
    bakery, corner = stores
    assert bakery['user_rating'] is None
    assert bakery['can_rate'] is True
    assert corner['user_rating'] == 4
    assert corner['can_modify'] is True
    assert corner['rating'] == 4.0
    assert corner['total_ratings'] == 1


def test_store_list_filters_and_sorting(client, login, store, other_store, rater):
    login(rater)

    response = client.get('/api/stores?name=bak')
    assert [s['name'] for s in response.get_json()['stores']] == ['Bakery']

    response = client.get('/api/stores?address=market')
    assert [s['name'] for s in response.get_json()['stores']] == ['Corner Store']

    assert client.get('/api/stores?sort=password').status_code == 400
    assert client.get('/api/stores?order=sideways').status_code == 400


def test_store_details(client, login, store, raters):
    login(raters[0])
    client.post('/api/ratings', json={'store_id': store.id, 'rating': 2})

    response = client.get(f'/api/stores/{store.id}')

    data = response.get_json()
    assert data['store']['user_rating'] == 2
    assert data['recent_ratings'][0]['user_name'] == raters[0].name
    assert client.get('/api/stores/999').status_code == 404


def test_out_of_range_store_ids(client, login, store, rater):
    login(rater)
    huge = 10 ** 20

    assert client.post('/api/ratings', json={'store_id': huge, 'rating': 3}).status_code == 400
    assert client.put('/api/ratings', json={'store_id': huge, 'rating': 3}).status_code == 400
    response = client.delete(f'/api/ratings/{huge}')
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Store not found'
    assert client.get(f'/api/stores/{huge}').status_code == 404


def test_store_list_for_owner_cannot_rate(client, login, store, owner):
    login(owner)

    stores = client.get('/api/stores').get_json()['stores']

    assert [s['can_rate'] for s in stores] == [False]
    assert stores[0]['can_modify'] is False
