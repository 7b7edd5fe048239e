"""
Tests for the Unix socket transport.
"""

import http.client

import pytest
from PyQt6.QtCore import QObject
from PyQt6.QtNetwork import QLocalServer

from dockjobs.client import DockerClient
from dockjobs.configuration import Configuration
from dockjobs.defaults import Defaults
from dockjobs.exceptions import APIError, ErrorCode
from dockjobs.job import ApiJob
from dockjobs.operations import StartContainer
from dockjobs.request import HttpMethod, Request
from dockjobs.unix_transport import (UnixSocketReply, UnixSocketTransport,
                                     UnixSocketTransportFactory, parse_response)


def test_parse_response_with_length():
    data = (b'HTTP/1.1 404 Not Found\r\n'
            b'Content-Type: application/json\r\n'
            b'Content-Length: 27\r\n'
            b'\r\n'
            b'{"message":"no such thing"}')
    response = parse_response(data)
    assert response.status == 404
    assert response.reason == 'Not Found'
    assert response.read() == b'{"message":"no such thing"}'


def test_parse_chunked_response():
    data = (b'HTTP/1.1 200 OK\r\n'
            b'Transfer-Encoding: chunked\r\n'
            b'\r\n'
            b'2\r\n[]\r\n'
            b'0\r\n\r\n')
    assert parse_response(data).read() == b'[]'


def test_parse_head_response_has_no_body():
    data = b'HTTP/1.1 200 OK\r\nContent-Length: 10\r\n\r\n'
    assert parse_response(data, 'HEAD').read() == b''


def test_parse_garbage():
    with pytest.raises(http.client.HTTPException):
        parse_response(b'')


def test_raw_request(app):
    request = Request(method=HttpMethod.POST, url='http://localhost:2375/v1.40/containers/create',
                      path='/v1.40/containers/create', target='/v1.40/containers/create?name=web',
                      headers={'Content-Type': 'application/json'}, payload=b'{}')
    reply = UnixSocketReply('/nonexistent/docker.sock', request)
    reply.abort()

    raw = reply._raw_request()
    assert raw.startswith(b'POST /v1.40/containers/create?name=web HTTP/1.1\r\n')
    assert b'Content-Type: application/json\r\n' in raw
    assert b'Content-Length: 2\r\n' in raw
    assert raw.endswith(b'\r\n\r\n{}')
    assert reply.has_error


def test_socket_path_prefix_is_removed(app):
    transport = UnixSocketTransport('unix:///var/run/docker.sock')
    assert transport.socket_path == '/var/run/docker.sock'


def test_missing_socket(app, tmp_path):
    factory = UnixSocketTransportFactory(str(tmp_path / 'missing.sock'))
    client = DockerClient(Configuration(), factory, timeout=5)
    with pytest.raises(APIError):
        client.version()


def http_response(status: str, body: bytes) -> bytes:
    head = (f"HTTP/1.1 {status}\r\n"
            f"Content-Type: application/json\r\n"
            f"Content-Length: {len(body)}\r\n"
            f"\r\n")
    return head.encode('latin-1') + body


class DockerSocketServer(QObject):
    """Local socket server answering every request with one canned response"""

    def __init__(self, path: str, response: bytes):
        super().__init__()
        self.path = path
        self.response = response
        self.requests = []
        self._connections = []
        self._answered = []
        self._server = QLocalServer(self)
        self._server.newConnection.connect(self._accept)
        QLocalServer.removeServer(path)
        if not self._server.listen(path):
            raise RuntimeError(self._server.errorString())

    def _accept(self):
        while self._server.hasPendingConnections():
            socket = self._server.nextPendingConnection()
            buffer = bytearray()
            self._connections.append(socket)
            socket.readyRead.connect(lambda s=socket, b=buffer: self._read(s, b))

    def _read(self, socket, buffer):
        buffer.extend(bytes(socket.readAll()))
        if b'\r\n\r\n' not in buffer or socket in self._answered:
            return
        self._answered.append(socket)
        self.requests.append(bytes(buffer))
        socket.write(self.response)
        socket.flush()
        socket.disconnectFromServer()

    def close(self):
        self._server.close()


@pytest.fixture
def socket_server(app, tmp_path):
    servers = []

    def start(response: bytes) -> DockerSocketServer:
        server = DockerSocketServer(str(tmp_path / 'd.sock'), response)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.close()


def test_exchange_over_socket(socket_server):
    server = socket_server(http_response('200 OK', b'{"Version": "1"}'))
    client = DockerClient(Configuration(), UnixSocketTransportFactory(server.path), timeout=5)

    assert client.version() == {'Version': '1'}
    assert len(server.requests) == 1
    request = server.requests[0]
    assert request.startswith(b'GET /v1.40/version HTTP/1.1\r\n')
    assert b'Accept: application/json\r\n' in request
    assert b'Connection: close\r\n' in request


def test_error_reply_over_socket(socket_server):
    body = b'{"message": "no such container"}'
    server = socket_server(http_response('404 Not Found', body))
    factory = UnixSocketTransportFactory(server.path)
    job = ApiJob(StartContainer(id='web'), defaults=Defaults(Configuration(), factory),
                 request_timeout=5)
    job.set_auto_delete(False)

    assert job.exec() is False
    assert job.error() == ErrorCode.API_ERROR
    assert job.error_string() == 'no such container'
    assert server.requests[0].startswith(b'POST /v1.40/containers/web/start HTTP/1.1\r\n')
    assert b'Content-Length: 0\r\n' in server.requests[0]
