"""
Docker job errors
Error codes reported by jobs and the exceptions raised by the blocking API
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Error codes a job can finish with"""
    NO_ERROR = 0
    KILLED = 1
    USER_DEFINED = 100
    MISSING_CONFIG = 101
    MISSING_HOST = 102
    MISSING_USER = 103
    MISSING_PASSWORD = 104
    AUTHN_FAILED = 105
    AUTHZ_FAILED = 106
    INVALID_REQUEST_URL = 107
    REQUEST_TIMED_OUT = 108
    JSON_PARSE_ERROR = 109
    SSL_ERROR = 110
    NETWORK_ERROR = 111
    API_ERROR = 112
    EMPTY_REPLY = 113
    EMPTY_JSON = 114
    WRONG_OUTPUT_TYPE = 115
    INVALID_INPUT = 116
    UNKNOWN_ERROR = 117


def error_message(code: int, text: str = '') -> str:
    """
    Build the human readable message for an error code

    Args:
        code: Error code, usually an ErrorCode member
        text: Error detail text stored together with the code

    Returns:
        Message suitable for showing to a user
    """
    if code == ErrorCode.NO_ERROR:
        return ''
    if code == ErrorCode.KILLED:
        return text or 'The job has been killed.'
    if code == ErrorCode.MISSING_CONFIG:
        return 'No configuration set.'
    if code == ErrorCode.MISSING_HOST:
        return 'Missing remote host name.'
    if code == ErrorCode.MISSING_USER:
        return 'Missing username.'
    if code == ErrorCode.MISSING_PASSWORD:
        return 'Missing password.'
    if code == ErrorCode.AUTHN_FAILED:
        return 'Authentication failed at the remote server, please check your username and password.'
    if code == ErrorCode.AUTHZ_FAILED:
        return 'Authorization failed, you are not allowed to perform this request.'
    if code == ErrorCode.INVALID_REQUEST_URL:
        return (f"The URL ({text}) generated to perform the request is not valid, "
                f"please check your input values.")
    if code == ErrorCode.REQUEST_TIMED_OUT:
        return f"The request timed out after {text} seconds."
    if code == ErrorCode.JSON_PARSE_ERROR:
        return f"Failed to parse the received JSON data: {text}"
    if code in (ErrorCode.SSL_ERROR, ErrorCode.NETWORK_ERROR,
                ErrorCode.API_ERROR, ErrorCode.INVALID_INPUT):
        return text
    if code in (ErrorCode.EMPTY_REPLY, ErrorCode.EMPTY_JSON):
        return 'Unexpected empty reply data.'
    if code == ErrorCode.WRONG_OUTPUT_TYPE:
        return 'Unexpected JSON type in received data.'
    return 'Sorry, but unfortunately an unknown error has occurred.'


class DockerException(Exception):
    """Base Docker exception"""

    def __init__(self, message, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class JobStateError(DockerException):
    """A job was driven through an invalid lifecycle transition"""
    pass


class ConfigurationError(DockerException):
    """Configuration, host or credentials are missing"""
    pass


class InvalidInputError(DockerException):
    """Input data of an operation is not valid"""
    pass


class TransportError(DockerException):
    """Connection, TLS or timeout failure"""
    pass


class APIError(DockerException):
    """Docker API error"""
    pass


class ResponseError(DockerException):
    """Reply does not have the expected content"""
    pass


_EXCEPTIONS = {
    ErrorCode.MISSING_CONFIG: ConfigurationError,
    ErrorCode.MISSING_HOST: ConfigurationError,
    ErrorCode.MISSING_USER: ConfigurationError,
    ErrorCode.MISSING_PASSWORD: ConfigurationError,
    ErrorCode.AUTHN_FAILED: APIError,
    ErrorCode.AUTHZ_FAILED: APIError,
    ErrorCode.INVALID_REQUEST_URL: InvalidInputError,
    ErrorCode.INVALID_INPUT: InvalidInputError,
    ErrorCode.REQUEST_TIMED_OUT: TransportError,
    ErrorCode.SSL_ERROR: TransportError,
    ErrorCode.NETWORK_ERROR: TransportError,
    ErrorCode.API_ERROR: APIError,
    ErrorCode.JSON_PARSE_ERROR: ResponseError,
    ErrorCode.EMPTY_REPLY: ResponseError,
    ErrorCode.EMPTY_JSON: ResponseError,
    ErrorCode.WRONG_OUTPUT_TYPE: ResponseError,
}


def exception_for(code: int, message: str) -> DockerException:
    """Create the exception matching an error code"""
    exc_class = _EXCEPTIONS.get(code, DockerException)
    return exc_class(message, code=code)
