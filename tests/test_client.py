"""
Tests for the blocking Docker client.
"""

import json

import pytest

from dockjobs.client import DockerClient
from dockjobs.configuration import Configuration
from dockjobs.exceptions import APIError, InvalidInputError
from dockjobs.request import HttpMethod

from conftest import StubResponse, StubTransportFactory


def make_client(*responses):
    factory = StubTransportFactory(*responses)
    return DockerClient(Configuration(), factory), factory


def test_version(app):
    client, factory = make_client(StubResponse(200, b'{"Version": "19.03.5", "ApiVersion": "1.40"}'))
    assert client.version()['ApiVersion'] == '1.40'
    assert factory.requests[0].path == '/v1.40/version'


def test_list_containers(app):
    client, factory = make_client(StubResponse(200, b'[{"Id": "abc", "Names": ["/web"]}]'))
    containers = client.containers.list(all=True, limit=3)
    assert containers == [{'Id': 'abc', 'Names': ['/web']}]
    assert factory.requests[0].query == [('all', 'true'), ('limit', '3')]


def test_list_images(app):
    client, factory = make_client(StubResponse(200, b'[{"Id": "sha256:abc"}]'))
    assert client.images.list(digests=True) == [{'Id': 'sha256:abc'}]
    assert factory.requests[0].query == [('digests', 'true')]


def test_create_container(app):
    client, factory = make_client(StubResponse(201, b'{"Id": "abc", "Warnings": []}'))
    reply = client.containers.create('nginx:latest', name='web', Cmd=['nginx', '-g', 'daemon off;'])

    assert reply['Id'] == 'abc'
    request = factory.requests[0]
    assert request.query == [('name', 'web')]
    assert json.loads(request.payload) == {'Image': 'nginx:latest',
                                           'Cmd': ['nginx', '-g', 'daemon off;']}


def test_container_lifecycle(app):
    client, factory = make_client(StubResponse(204, b''))
    assert client.containers.start('web') is None
    client.containers.stop('web', timeout=5)
    client.containers.remove('web', force=True, v=True)

    assert [(r.method, r.target) for r in factory.requests] == [
        (HttpMethod.POST, '/v1.40/containers/web/start'),
        (HttpMethod.POST, '/v1.40/containers/web/stop?t=5'),
        (HttpMethod.DELETE, '/v1.40/containers/web?v=true&force=true'),
    ]


def test_exec_run(app):
    client, factory = make_client(StubResponse(201, b'{"Id": "e1"}'), StubResponse(200, b''))
    exec_id = client.containers.exec_run('web', 'echo hi', environment={'A': '1'})

    assert exec_id == 'e1'
    create, start = factory.requests
    assert create.path == '/v1.40/containers/web/exec'
    body = json.loads(create.payload)
    assert body['Cmd'] == ['sh', '-c', 'echo hi']
    assert body['Env'] == ['A=1']
    assert start.path == '/v1.40/exec/e1/start'
    assert json.loads(start.payload) == {'Detach': True, 'Tty': False}


def test_api_error_raised(app):
    client, _ = make_client(StubResponse(404, b'{"message": "No such container: web"}', has_error=True))
    with pytest.raises(APIError, match='No such container: web'):
        client.containers.start('web')


def test_invalid_input_raised(app):
    client, factory = make_client()
    with pytest.raises(InvalidInputError):
        client.containers.start('')
    assert factory.requests == []


def test_transport_failure_raised(app):
    client, _ = make_client(StubResponse(None, b'', has_error=True, error_string='Host not found'))
    with pytest.raises(APIError, match='not parseable'):
        client.version()
