from skribbl.game.words import categorize_difficulty
from skribbl.realtime import events


def test_health(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.get_json() == {'ok': True, 'rooms': 0}


def test_reserve_room_code(client):
    res = client.post('/api/rooms')
    assert res.status_code == 201
    code = res.get_json()['roomCode']
    assert len(code) == 6 and code.isalnum()


def test_room_lookup(client, sio_factory):
    assert client.get('/api/rooms/ABCD').status_code == 404
    assert client.get('/api/rooms/!!').status_code == 400

    alice = sio_factory()
    alice.emit(events.JOIN, {'roomCode': 'ABCD', 'playerName': 'Alice'}, callback=True)

    res = client.get('/api/rooms/abcd')
    assert res.status_code == 200
    state = res.get_json()
    assert state['roomCode'] == 'ABCD'
    assert state['currentWord'] is None
    assert 'bannedPlayers' not in state
    assert [p['name'] for p in state['players']] == ['Alice']


def test_words(client):
    res = client.get('/api/words?count=2')
    assert res.status_code == 200
    assert len(res.get_json()['words']) == 2

    hard = client.get('/api/words?count=3&difficulty=hard').get_json()['words']
    assert hard and all(categorize_difficulty(w) == 'hard' for w in hard)

    assert client.get('/api/words?difficulty=bogus').status_code == 400
    assert len(client.get('/api/words?count=abc').get_json()['words']) == 3
