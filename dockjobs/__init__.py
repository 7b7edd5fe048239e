"""
dockjobs - Docker Engine API client built on Qt jobs
Requests run asynchronously with start() or blocking with exec()
"""

from .basejob import BaseJob, Capability, JobState, KillVerbosity, Unit
from .client import DockerClient
from .configuration import Configuration
from .defaults import Defaults, default_configuration, set_default_configuration, set_transport_factory
from .exceptions import (
    ErrorCode,
    DockerException,
    JobStateError,
    ConfigurationError,
    InvalidInputError,
    TransportError,
    APIError,
    ResponseError
)
from .job import ApiJob
from .operations import (
    GetVersion,
    ListImages,
    ListContainers,
    CreateContainer,
    StartContainer,
    StopContainer,
    RemoveContainer,
    CreateExecInstance,
    StartExecInstance
)
from .request import ExpectedContent, HttpMethod, Operation, Request

__all__ = [
    'BaseJob',
    'Capability',
    'JobState',
    'KillVerbosity',
    'Unit',
    'DockerClient',
    'Configuration',
    'Defaults',
    'default_configuration',
    'set_default_configuration',
    'set_transport_factory',
    'ErrorCode',
    'DockerException',
    'JobStateError',
    'ConfigurationError',
    'InvalidInputError',
    'TransportError',
    'APIError',
    'ResponseError',
    'ApiJob',
    'GetVersion',
    'ListImages',
    'ListContainers',
    'CreateContainer',
    'StartContainer',
    'StopContainer',
    'RemoveContainer',
    'CreateExecInstance',
    'StartExecInstance',
    'ExpectedContent',
    'HttpMethod',
    'Operation',
    'Request'
]

__version__ = '1.0.0'
