def test_register_login_logout(client):
    res = client.post('/register', json={'username': 'erin', 'password': 'secret', 'nickname': 'Erin'})
    assert res.status_code == 201
    assert res.get_json()['user']['nickname'] == 'Erin'

    res = client.get('/check_login')
    assert res.status_code == 200
    assert res.get_json()['user']['username'] == 'erin'

    assert client.post('/logout').status_code == 200
    assert client.get('/check_login').status_code == 401

    res = client.post('/login', json={'username': 'erin', 'password': 'wrong'})
    assert res.status_code == 401
    res = client.post('/login', json={'username': 'erin', 'password': 'secret'})
    assert res.status_code == 200


def test_register_validation(client):
    assert client.post('/register', json={'username': 'x'}).status_code == 400
    assert client.post('/register', json={'username': 'x', 'password': 'p'}).status_code == 201
    res = client.post('/register', json={'username': 'x', 'password': 'p'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Username already exists'


def test_index(client):
    assert client.get('/').status_code == 200
