"""
Transport layer
HTTP clients the jobs send their requests through
"""

from typing import Optional

from PyQt6.QtCore import QObject, QUrl, pyqtSignal
from PyQt6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from .request import HttpMethod, Request


class TransportReply(QObject):
    """
    Reply to a request sent through a Transport

    Implementations must not emit finished before Transport.send() returned.
    After finished, status_code holds the HTTP status (None if no HTTP
    response arrived), has_error tells whether the transport failed or the
    server answered with an error status.

    Signals:
        finished(): the exchange is complete or was aborted
        download_progress(received, total): total is -1 if unknown
        ssl_errors(errors): list of TLS error strings, handlers may call
            ignore_ssl_errors() synchronously to continue
    """
    finished = pyqtSignal()
    download_progress = pyqtSignal(object, object)
    ssl_errors = pyqtSignal(list)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.status_code: Optional[int] = None
        self.has_error = False
        self.error_string = ''
        self._data = b''

    def read_all(self) -> bytes:
        data, self._data = self._data, b''
        return data

    def abort(self):
        raise NotImplementedError

    def ignore_ssl_errors(self):
        pass


class Transport(QObject):
    """Sends requests and hands out replies"""

    def send(self, request: Request) -> TransportReply:
        raise NotImplementedError


class TransportFactory:
    """Creates a new Transport for every job that needs one"""

    def create(self, parent: Optional[QObject] = None) -> Transport:
        raise NotImplementedError


class QtNetworkReply(TransportReply):
    """TransportReply wrapping a QNetworkReply"""

    def __init__(self, reply: QNetworkReply, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._reply = reply
        self._done = False
        reply.finished.connect(self._on_finished)
        reply.downloadProgress.connect(self._on_download_progress)
        reply.sslErrors.connect(self._on_ssl_errors)

    def _on_finished(self):
        if self._done:
            return
        self._done = True
        status = self._reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
        self.status_code = int(status) if status is not None else None
        self.has_error = self._reply.error() != QNetworkReply.NetworkError.NoError
        self.error_string = self._reply.errorString()
        self._data = bytes(self._reply.readAll())
        self._reply.deleteLater()
        self.finished.emit()

    def _on_download_progress(self, received: int, total: int):
        self.download_progress.emit(received, total)

    def _on_ssl_errors(self, errors):
        self.ssl_errors.emit([e.errorString() for e in errors])

    def abort(self):
        if not self._done:
            self._reply.abort()

    def ignore_ssl_errors(self):
        if not self._done:
            self._reply.ignoreSslErrors()


class QtNetworkTransport(Transport):
    """
    Transport based on QNetworkAccessManager

    Args:
        parent: Parent QObject
        manager: Network access manager to use, a new one is created if omitted
    """

    def __init__(self, parent: Optional[QObject] = None,
                 manager: Optional[QNetworkAccessManager] = None):
        super().__init__(parent)
        self._manager = manager if manager is not None else QNetworkAccessManager(self)

    def send(self, request: Request) -> TransportReply:
        nr = QNetworkRequest(QUrl.fromEncoded(request.url.encode('ascii')))
        for name, value in request.headers.items():
            nr.setRawHeader(name.encode('latin-1'), value.encode('latin-1'))

        if request.method == HttpMethod.HEAD:
            reply = self._manager.head(nr)
        elif request.method == HttpMethod.POST:
            reply = self._manager.post(nr, request.payload)
        elif request.method == HttpMethod.PUT:
            reply = self._manager.put(nr, request.payload)
        elif request.method == HttpMethod.DELETE:
            reply = self._manager.deleteResource(nr)
        else:
            reply = self._manager.get(nr)

        return QtNetworkReply(reply, self)


class QtNetworkTransportFactory(TransportFactory):
    """Default factory, creates a QtNetworkTransport per job"""

    def create(self, parent: Optional[QObject] = None) -> Transport:
        return QtNetworkTransport(parent)
