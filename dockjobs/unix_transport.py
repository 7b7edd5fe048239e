"""
Transport for the Docker Unix socket
Speaks HTTP/1.1 over a QLocalSocket, replies are parsed with http.client
"""

import io
import os
import platform
import http.client
import logging
from typing import Optional

from PyQt6.QtCore import QObject, QTimer
from PyQt6.QtNetwork import QLocalSocket

from .request import HttpMethod, Request
from .transport import Transport, TransportFactory, TransportReply

logger = logging.getLogger(__name__)


def default_socket_path() -> str:
    """Docker socket path of the current platform"""
    if platform.system() == "Darwin":  # macOS
        socket_path = os.path.expanduser('~/.docker/run/docker.sock')
        # Fallback to default Unix socket
        if os.path.exists(socket_path):
            return socket_path
    return '/var/run/docker.sock'


class _BufferSocket:
    """Just enough of a socket for http.client.HTTPResponse"""

    def __init__(self, data: bytes):
        self._file = io.BytesIO(data)

    def makefile(self, *args, **kwargs):
        return self._file


def parse_response(data: bytes, method: str = 'GET') -> http.client.HTTPResponse:
    """
    Parse a complete raw HTTP response

    Args:
        data: Everything read from the connection until it was closed
        method: Request method, HEAD replies have no body

    Returns:
        HTTPResponse with status and headers read, body still unread
    """
    response = http.client.HTTPResponse(_BufferSocket(data), method=method)
    response.begin()
    return response


class UnixSocketReply(TransportReply):
    """Single HTTP exchange over a local socket"""

    def __init__(self, socket_path: str, request: Request, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._request = request
        self._buffer = bytearray()
        self._done = False

        self._socket = QLocalSocket(self)
        self._socket.connected.connect(self._on_connected)
        self._socket.readyRead.connect(self._on_ready_read)
        self._socket.disconnected.connect(self._on_disconnected)
        self._socket.errorOccurred.connect(self._on_error)

        # connect on the next loop iteration so errors arrive after send() returned
        QTimer.singleShot(0, lambda: self._connect(socket_path))

    def _connect(self, socket_path: str):
        if not self._done:
            self._socket.connectToServer(socket_path)

    def _raw_request(self) -> bytes:
        request = self._request
        lines = [f"{request.method.value} {request.target} HTTP/1.1",
                 'Host: localhost',
                 'Connection: close']
        for name, value in request.headers.items():
            lines.append(f"{name}: {value}")
        if request.payload or request.method in (HttpMethod.POST, HttpMethod.PUT):
            lines.append(f"Content-Length: {len(request.payload)}")
        head = '\r\n'.join(lines) + '\r\n\r\n'
        return head.encode('latin-1') + request.payload

    def _on_connected(self):
        self._socket.write(self._raw_request())
        self._socket.flush()

    def _on_ready_read(self):
        self._buffer.extend(bytes(self._socket.readAll()))
        self.download_progress.emit(len(self._buffer), -1)

    def _on_disconnected(self):
        if self._done:
            return
        self._buffer.extend(bytes(self._socket.readAll()))

        try:
            response = parse_response(bytes(self._buffer), self._request.method.value)
            body = response.read()
        except (http.client.HTTPException, OSError) as e:
            logger.error(f"Invalid HTTP response from Docker socket: {e!r}")
            self._complete(True, f"Invalid HTTP response: {e!r}")
            return

        self._complete(response.status >= 400, f"{response.status} {response.reason}",
                       response.status, body)

    def _on_error(self, error):
        if error == QLocalSocket.LocalSocketError.PeerClosedError:
            # regular end of a Connection: close exchange, handled by _on_disconnected
            return
        logger.error(f"Docker socket error: {self._socket.errorString()}")
        self._complete(True, self._socket.errorString())

    def _complete(self, has_error: bool, error_string: str,
                  status_code: Optional[int] = None, data: bytes = b''):
        if self._done:
            return
        self._done = True
        self.has_error = has_error
        self.error_string = error_string
        self.status_code = status_code
        self._data = data
        self.finished.emit()

    def abort(self):
        if self._done:
            return
        self._complete(True, 'Operation canceled')
        self._socket.abort()


class UnixSocketTransport(Transport):
    """
    Transport talking to the Docker daemon through its Unix socket

    Host and port of the configuration are only used to build the request
    URL, the connection always goes to socket_path.

    Args:
        socket_path: Docker socket path (default: auto-detect)
        parent: Parent QObject
    """

    def __init__(self, socket_path: Optional[str] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        # Remove unix:// prefix if present
        self.socket_path = (socket_path or default_socket_path()).replace('unix://', '')

    def send(self, request: Request) -> TransportReply:
        logger.debug(f"Sending {request.method.value} {request.target} to {self.socket_path}")
        return UnixSocketReply(self.socket_path, request, self)


class UnixSocketTransportFactory(TransportFactory):

    def __init__(self, socket_path: Optional[str] = None):
        self.socket_path = socket_path

    def create(self, parent: Optional[QObject] = None) -> Transport:
        return UnixSocketTransport(self.socket_path, parent)
