"""
Shared fixtures: Qt application and a scripted transport
"""

from dataclasses import dataclass
from typing import List, Optional

import pytest
from PyQt6.QtCore import QCoreApplication, QEventLoop, QObject, QTimer

from dockjobs.configuration import Configuration
from dockjobs.defaults import Defaults
from dockjobs.request import Request
from dockjobs.transport import Transport, TransportFactory, TransportReply


@dataclass
class StubResponse:
    """What a StubReply answers with"""
    status_code: Optional[int] = 200
    data: bytes = b''
    has_error: bool = False
    error_string: str = ''
    ssl_errors: Optional[List[str]] = None
    respond: bool = True


class StubReply(TransportReply):
    """Reply finishing on the next loop iteration with a canned response"""

    def __init__(self, response: StubResponse, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.response = response
        self.aborted = False
        self.ssl_ignored = False
        if response.respond:
            QTimer.singleShot(0, self._respond)

    def _respond(self):
        if self.aborted:
            return
        if self.response.ssl_errors is not None:
            self.ssl_errors.emit(list(self.response.ssl_errors))
            if self.aborted:
                return
        self.status_code = self.response.status_code
        self.has_error = self.response.has_error
        self.error_string = self.response.error_string
        self._data = self.response.data
        self.finished.emit()

    def abort(self):
        if self.aborted:
            return
        self.aborted = True
        self.status_code = None
        self.has_error = True
        self.error_string = 'Operation canceled'
        self.finished.emit()

    def ignore_ssl_errors(self):
        self.ssl_ignored = True


class StubTransport(Transport):

    def __init__(self, factory: 'StubTransportFactory', parent: Optional[QObject] = None):
        super().__init__(parent)
        self.factory = factory

    def send(self, request: Request) -> TransportReply:
        self.factory.requests.append(request)
        reply = StubReply(self.factory.next_response(), self)
        self.factory.replies.append(reply)
        return reply


class StubTransportFactory(TransportFactory):
    """
    Records every request and answers them in order, the last response is
    repeated once the others are used up
    """

    def __init__(self, *responses: StubResponse):
        self.responses = list(responses) or [StubResponse()]
        self.requests: List[Request] = []
        self.replies: List[StubReply] = []

    def next_response(self) -> StubResponse:
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def create(self, parent: Optional[QObject] = None) -> Transport:
        return StubTransport(self, parent)


def wait_for(job, timeout_ms: int = 5000):
    """Run an event loop until the job finished"""
    loop = QEventLoop()
    job.finished.connect(lambda _: loop.quit())
    guard = QTimer()
    guard.setSingleShot(True)
    guard.timeout.connect(loop.quit)
    guard.start(timeout_ms)
    if not job.is_finished():
        loop.exec()
    guard.stop()


@pytest.fixture(scope='session')
def app():
    """Create QCoreApplication instance for testing."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def factory():
    return StubTransportFactory()


@pytest.fixture
def defaults(factory):
    return Defaults(Configuration(), factory)
