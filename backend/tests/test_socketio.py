def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received() if pkt['name'] == name]


def _last_state(sio_client):
    states = _events(sio_client, 'room:state')
    return states[-1] if states else None


def test_health_and_categories(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'ok', 'rooms': 0}

    res = client.get('/api/words/categories')
    body = res.get_json()
    assert body['policy'] == 'reuse'
    assert {c['id'] for c in body['categories']} == {'sport', 'cuisine'}


def test_unknown_room_is_404(client):
    res = client.get('/api/rooms/ZZZZ')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'room_not_found'


def test_create_and_join(sio_factory, client):
    host = sio_factory()
    ack = host.emit('room:create', {'name': 'Alice'}, callback=True)
    assert ack['ok'] is True
    code = ack['roomCode']
    created = _events(host, 'room:created')
    assert created and created[0]['roomCode'] == code

    guest = sio_factory()
    ack = guest.emit('room:join', {'roomCode': code.lower(), 'name': 'Bob'}, callback=True)
    assert ack['ok'] is True
    assert ack['roomCode'] == code

    state = _last_state(host)
    assert [p['name'] for p in state['players']] == ['Alice', 'Bob']
    assert state['you']['isHost'] is True

    res = client.get(f'/api/rooms/{code}')
    assert res.status_code == 200
    assert res.get_json()['phase'] == 'lobby'
    assert client.get('/api/health').get_json()['rooms'] == 1


def test_join_errors_are_reported(sio_factory):
    guest = sio_factory()
    ack = guest.emit('room:join', {'roomCode': 'ZZZZ', 'name': 'Bob'}, callback=True)
    assert ack == {'ok': False, 'error': 'room_not_found'}
    errors = _events(guest, 'room:error')
    assert errors[-1]['error'] == 'room_not_found'
    assert errors[-1]['message']

    ack = guest.emit('room:create', {'name': '<script>'}, callback=True)
    assert ack == {'ok': False, 'error': 'invalid_name'}


def test_actions_outside_a_room_are_rejected(sio_factory):
    stray = sio_factory()
    ack = stray.emit('game:start', {}, callback=True)
    assert ack == {'ok': False, 'error': 'room_not_found'}
    assert _events(stray, 'game:error')[-1]['error'] == 'room_not_found'


def test_start_game_and_play_a_clue(sio_factory, flask_app):
    host = sio_factory()
    code = host.emit('room:create', {'name': 'Alice'}, callback=True)['roomCode']
    guests = [sio_factory(), sio_factory()]

    guests[0].emit('room:join', {'roomCode': code, 'name': 'Bob'}, callback=True)
    ack = host.emit('game:start', {}, callback=True)
    assert ack == {'ok': False, 'error': 'not_enough_players'}

    guests[1].emit('room:join', {'roomCode': code, 'name': 'Chloé'}, callback=True)
    ack = guests[0].emit('game:start', {}, callback=True)
    assert ack == {'ok': False, 'error': 'only_host'}
    assert host.emit('game:start', {}, callback=True) == {'ok': True}

    clients = [host] + guests
    states = [_last_state(c) for c in clients]
    assert all(s['phase'] == 'playing' for s in states)
    givers = [c for c, s in zip(clients, states) if s['round']['word'] is not None]
    assert len(givers) == 1
    giver = givers[0]

    ack = giver.emit('clue:submit', {'text': 'nuage'}, callback=True)
    assert ack == {'ok': True}
    state = _last_state(giver)
    assert state['round']['phase'] == 'guessing'
    assert state['round']['clues'] == ['nuage']

    outsider = next(
        c for c, s in zip(clients, states)
        if s['you']['teamIndex'] != s['activeTeamIndex']
    )
    ack = outsider.emit('steal:submit', {'text': 'nuage'}, callback=True)
    assert ack == {'ok': False, 'error': 'wrong_phase'}

    registry = flask_app.extensions['room_registry']
    assert registry.get_room(code).engine.round.clues == ['nuage']


def test_disconnect_removes_player(sio_factory, flask_app):
    host = sio_factory()
    code = host.emit('room:create', {'name': 'Alice'}, callback=True)['roomCode']
    guest = sio_factory()
    guest.emit('room:join', {'roomCode': code, 'name': 'Bob'}, callback=True)
    host.get_received()

    guest.disconnect()
    state = _last_state(host)
    assert [p['name'] for p in state['players']] == ['Alice']

    host.disconnect()
    assert code not in flask_app.extensions['room_registry']


def test_failed_join_keeps_player_in_current_room(sio_factory, flask_app):
    registry = flask_app.extensions['room_registry']
    host = sio_factory()
    code = host.emit('room:create', {'name': 'Alice'}, callback=True)['roomCode']
    guest = sio_factory()
    guest.emit('room:join', {'roomCode': code, 'name': 'Bob'}, callback=True)

    ack = guest.emit('room:join', {'roomCode': 'ZZZZ', 'name': 'Bob'}, callback=True)
    assert ack == {'ok': False, 'error': 'room_not_found'}
    ack = guest.emit('room:join', {'roomCode': code, 'name': '<b>'}, callback=True)
    assert ack == {'ok': False, 'error': 'invalid_name'}

    room = registry.get_room(code)
    assert [p.name for p in room.players.values()] == ['Alice', 'Bob']


def test_failed_create_keeps_host_room(sio_factory, flask_app):
    registry = flask_app.extensions['room_registry']
    host = sio_factory()
    code = host.emit('room:create', {'name': 'Alice'}, callback=True)['roomCode']

    ack = host.emit('room:create', {'name': '<bad>'}, callback=True)
    assert ack == {'ok': False, 'error': 'invalid_name'}
    assert code in registry
    room = registry.get_room(code)
    assert [p.name for p in room.players.values()] == ['Alice']
    assert room.players[room.host_id].name == 'Alice'


def test_moving_to_another_room_leaves_the_first(sio_factory, flask_app):
    registry = flask_app.extensions['room_registry']
    host = sio_factory()
    first = host.emit('room:create', {'name': 'Alice'}, callback=True)['roomCode']
    guest = sio_factory()
    guest.emit('room:join', {'roomCode': first, 'name': 'Bob'}, callback=True)
    other = sio_factory()
    second = other.emit('room:create', {'name': 'Chloé'}, callback=True)['roomCode']

    ack = guest.emit('room:join', {'roomCode': second, 'name': 'Bob'}, callback=True)
    assert ack['ok'] is True
    assert [p.name for p in registry.get_room(first).players.values()] == ['Alice']
    assert [p.name for p in registry.get_room(second).players.values()] == ['Chloé', 'Bob']
    bob_id = list(registry.get_room(second).players)[1]
    assert registry.room_of(bob_id).code == second
