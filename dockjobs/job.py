"""
Docker API job
Runs one Operation against the Docker Engine API
"""

import base64
import json
import logging
from typing import Any, List, Optional, Tuple

from PyQt6.QtCore import QObject, QTimer, QUrl, QUrlQuery, pyqtSignal

from .basejob import BaseJob, Capability, Unit
from .configuration import Configuration
from .defaults import Defaults, global_defaults
from .exceptions import (ErrorCode, ConfigurationError, InvalidInputError,
                         exception_for)
from .request import API_ROOT, Operation, Request
from .transport import QtNetworkTransportFactory, Transport, TransportReply
from .validation import check_output, extract_error

logger = logging.getLogger(__name__)

REGISTRY_AUTH_HEADER = 'X-Registry-Auth'
UNKNOWN_SSL_ERROR = 'Can not perform API request. An unknown SSL error has occurred.'


class ApiJob(BaseJob):
    """
    Job sending the request described by an Operation

    Use start() and the succeeded/failed/finished signals for asynchronous
    execution or exec() to block until the reply has been checked. The
    parsed reply is available from reply_data() after success.

    Args:
        operation: Operation to perform
        configuration: Connection configuration, the default configuration
            is used if omitted
        parent: Parent QObject
        defaults: Registry providing default configuration and transport
            factory (default: the process-wide registry)
        request_timeout: Seconds the request may take, 0 disables the timeout
    """
    configuration_changed = pyqtSignal(object)
    succeeded = pyqtSignal(object)
    failed = pyqtSignal(int, str)

    DEFAULT_TIMEOUT = 300

    def __init__(self, operation: Operation, configuration: Optional[Configuration] = None,
                 parent: Optional[QObject] = None, defaults: Optional[Defaults] = None,
                 request_timeout: float = DEFAULT_TIMEOUT):
        super().__init__(parent)
        self._operation = operation
        self._configuration = configuration
        self._defaults = defaults if defaults is not None else global_defaults()
        self._request_timeout = request_timeout
        self._transport: Optional[Transport] = None
        self._reply: Optional[TransportReply] = None
        self._timeout_timer: Optional[QTimer] = None
        self._json_result: Any = None
        self.set_capabilities(Capability.KILLABLE)

    @property
    def operation(self) -> Operation:
        return self._operation

    def configuration(self) -> Optional[Configuration]:
        return self._configuration

    def set_configuration(self, configuration: Optional[Configuration]):
        if configuration != self._configuration:
            logger.debug(f"Changing configuration from {self._configuration!r} to {configuration!r}")
            self._configuration = configuration
            self.configuration_changed.emit(configuration)

    def request_timeout(self) -> float:
        return self._request_timeout

    def set_request_timeout(self, seconds: float):
        self._request_timeout = seconds

    def reply_data(self) -> Any:
        """Parsed JSON reply, None if the job failed or expects no content"""
        if self.error() != ErrorCode.NO_ERROR:
            return None
        return self._json_result

    def raise_for_error(self):
        """Raise the exception matching the error, if there is one"""
        if self.error() != ErrorCode.NO_ERROR:
            raise exception_for(self.error(), self.error_string())

    def start(self):
        self._mark_started()
        QTimer.singleShot(0, self.send_request)

    # Request building

    def _build_url(self, configuration: Configuration) -> Tuple[QUrl, bool]:
        url = QUrl()
        url.setScheme(configuration.scheme)
        # every QUrl setter resets the error state of the previous one
        url.setHost(configuration.host)
        valid = url.isValid()
        url.setPort(configuration.port)
        valid = valid and url.isValid()
        url.setPath(self._operation.build_path(API_ROOT))
        valid = valid and url.isValid()
        query = QUrlQuery()
        for key, value in self._operation.build_query():
            query.addQueryItem(key, value)
        url.setQuery(query)
        return url, valid and url.isValid()

    def _registry_auth(self, configuration: Configuration) -> str:
        auth = {
            'username': configuration.username,
            'password': configuration.password,
            'serveraddress': configuration.host,
        }
        return base64.urlsafe_b64encode(json.dumps(auth).encode('utf-8')).decode('ascii')

    def build_request(self, configuration: Optional[Configuration] = None) -> Request:
        """
        Build the HTTP request for the operation without sending it

        Args:
            configuration: Configuration to build for, falls back to the
                job and then to the default configuration

        Returns:
            The request

        Raises:
            ConfigurationError: If no configuration is available
            InvalidInputError: If the resulting URL is not valid
        """
        configuration = configuration or self._configuration or self._defaults.configuration
        if configuration is None:
            raise ConfigurationError('No configuration set.', code=ErrorCode.MISSING_CONFIG)

        url, valid = self._build_url(configuration)
        if not valid:
            # an invalid QUrl renders as an empty string
            text = (f"{configuration.scheme}://{configuration.host}:{configuration.port}"
                    f"{self._operation.build_path(API_ROOT)}")
            raise InvalidInputError(text, code=ErrorCode.INVALID_REQUEST_URL)

        operation = self._operation
        headers = {}
        if operation.expected.is_json:
            headers['Accept'] = 'application/json'
        headers.update(operation.build_headers())
        if operation.requires_auth:
            headers[REGISTRY_AUTH_HEADER] = self._registry_auth(configuration)

        payload, content_type = operation.build_payload()
        if content_type:
            headers['Content-Type'] = content_type

        path = url.path(QUrl.ComponentFormattingOption.FullyEncoded)
        target = path
        if url.hasQuery():
            target = f"{path}?{url.query(QUrl.ComponentFormattingOption.FullyEncoded)}"

        return Request(
            method=operation.method,
            url=bytes(url.toEncoded()).decode('ascii'),
            path=url.path(),
            target=target,
            query=list(operation.build_query()),
            query_string=url.query(),
            headers=headers,
            payload=payload,
            content_type=content_type,
        )

    # Execution

    def _emit_error(self, code: int, text: str = ''):
        self.set_error(code, text)
        self._json_result = None
        self.failed.emit(int(code), self.error_string())
        self.emit_result()

    def _check_input(self) -> bool:
        configuration = self._configuration
        if not configuration.host:
            self._emit_error(ErrorCode.MISSING_HOST)
            logger.critical('Can not send request: missing host.')
            return False

        if self._operation.requires_auth:
            if not configuration.username:
                self._emit_error(ErrorCode.MISSING_USER)
                logger.critical('Can not send request: missing username.')
                return False
            if not configuration.password:
                self._emit_error(ErrorCode.MISSING_PASSWORD)
                logger.critical('Can not send request: missing password.')
                return False

        message = self._operation.check_input()
        if message:
            self._emit_error(ErrorCode.INVALID_INPUT, message)
            logger.critical(f"Can not send request: {message}")
            return False

        return True

    def _log_request(self, request: Request):
        logger.debug(f"Start performing {request.method.value} network operation.")
        logger.debug(f"API URL: {request.url}")
        for name, value in request.headers.items():
            if name == REGISTRY_AUTH_HEADER:
                value = '**************'
            logger.debug(f"{name}: {value}")
        if request.payload:
            logger.debug(f"Payload: {request.payload!r}")

    def send_request(self):
        """Check the input, then set up and send the request"""
        if self.is_finished():
            return

        description = self._operation.describe()
        self.description.emit(self, description.title, description.field)

        self.info_message.emit(self, 'Setting up request')
        logger.debug('Setting up network request.')

        if self._configuration is None:
            configuration = self._defaults.configuration
            if configuration is None:
                self._emit_error(ErrorCode.MISSING_CONFIG)
                logger.critical('Can not send request: missing configuration.')
                return
            logger.debug(f"Using default configuration {configuration!r}")
            self._configuration = configuration
            self.configuration_changed.emit(configuration)

        if not self._check_input():
            return

        try:
            request = self.build_request(self._configuration)
        except InvalidInputError as e:
            self._emit_error(ErrorCode.INVALID_REQUEST_URL, str(e))
            logger.critical(f"Can not send request: invalid URL {e}")
            return

        if self._transport is None:
            factory = self._defaults.transport_factory or QtNetworkTransportFactory()
            self._transport = factory.create(self)
            logger.debug(f"Using {self._transport!r} created by {factory!r}")

        if logger.isEnabledFor(logging.DEBUG):
            self._log_request(request)

        self.info_message.emit(self, 'Sending request')
        logger.debug('Sending network request.')

        reply = self._transport.send(request)
        reply.finished.connect(self._request_finished)
        reply.ssl_errors.connect(self._handle_ssl_errors)
        reply.download_progress.connect(self._download_progress)
        self._reply = reply

        if self._request_timeout > 0:
            if self._timeout_timer is None:
                self._timeout_timer = QTimer(self)
                self._timeout_timer.setSingleShot(True)
                self._timeout_timer.timeout.connect(self._request_timed_out)
            self._timeout_timer.start(int(self._request_timeout * 1000))
            logger.debug(f"Started request timeout timer with {self._request_timeout:g} seconds.")

    def _take_reply(self) -> Optional[TransportReply]:
        """Detach the in-flight reply so nothing it emits reaches the job anymore"""
        if self._timeout_timer is not None:
            self._timeout_timer.stop()
        reply, self._reply = self._reply, None
        if reply is not None:
            reply.blockSignals(True)
        return reply

    def _handle_ssl_errors(self, errors: List[str]):
        reply = self._reply
        if reply is None:
            return
        if self._configuration.ignore_ssl_errors:
            for error in errors:
                logger.warning(f"Ignoring SSL error: {error}")
            reply.ignore_ssl_errors()
        else:
            text = errors[0] if errors else UNKNOWN_SSL_ERROR
            self.set_error(ErrorCode.SSL_ERROR, text)
            logger.critical(f"SSL error: {text}")
            reply.abort()

    def _download_progress(self, received: int, total: int):
        if total > 0:
            self.set_total_amount(Unit.BYTES, total)
        self.set_processed_amount(Unit.BYTES, received)

    def _request_timed_out(self):
        reply = self._take_reply()
        if reply is None:
            return
        reply.abort()
        reply.deleteLater()
        logger.critical(f"Request timed out after {self._request_timeout:g} seconds.")
        self._emit_error(ErrorCode.REQUEST_TIMED_OUT, f"{self._request_timeout:g}")

    def _request_finished(self):
        reply = self._take_reply()
        if reply is None:
            return

        self.info_message.emit(self, 'Checking reply')
        logger.debug(f"Request finished, checking reply. HTTP status code: {reply.status_code}")

        data = reply.read_all()
        logger.debug(f"Reply data: {data!r}")

        if not reply.has_error:
            check = check_output(self._operation.expected, data)
            if check.ok:
                self._json_result = check.payload
                self.succeeded.emit(self._json_result)
            else:
                self.set_error(check.error, check.text)
                logger.debug(f"Error code: {self.error()!r}")
                self.failed.emit(int(self.error()), self.error_string())
        else:
            self._extract_error(reply, data)
            self._json_result = None
            self.failed.emit(int(self.error()), self.error_string())

        reply.deleteLater()
        self.emit_result()

    def _extract_error(self, reply: TransportReply, data: bytes):
        # an error classified while in flight (TLS) wins
        if self.error() != ErrorCode.NO_ERROR:
            return

        logger.critical(f"Request failed (HTTP status {reply.status_code}): {reply.error_string}")
        message, _ = extract_error(data)
        self.set_error(ErrorCode.API_ERROR, message)

    def _do_kill(self) -> bool:
        reply = self._take_reply()
        if reply is not None:
            reply.abort()
            reply.deleteLater()
        return True

    def dispose(self):
        reply = self._take_reply()
        if reply is not None:
            reply.abort()
            reply.deleteLater()
        super().dispose()

    def __repr__(self):
        return f"<ApiJob: {type(self._operation).__name__} {self.state.value}>"
