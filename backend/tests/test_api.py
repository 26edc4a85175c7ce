from mathbattle.models import Participant


def test_status_counts_waiting_and_active(client, flask_app):
    res = client.get('/')
    assert res.status_code == 200
    data = res.get_json()
    assert data['players'] == 0
    assert data['activeGames'] == 0

    lobby = flask_app.extensions['lobby']
    lobby.join_queue(Participant(id='a', name='Alice'))
    assert client.get('/').get_json()['players'] == 1
    lobby.join_queue(Participant(id='b', name='Bob'))
    data = client.get('/').get_json()
    assert data['players'] == 0
    assert data['activeGames'] == 1


def test_health(client):
    res = client.get('/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'OK'
    assert 'timestamp' in data


def test_catalog_command(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['catalog'])
    assert result.exit_code == 0
    assert 'Logic Bomb' in result.output
    assert '4 copies' in result.output
