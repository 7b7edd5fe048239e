"""
Docker Client - blocking API entry point
Runs jobs with exec() and raises exceptions on failure
"""

import logging
from typing import Any, Dict, List, Optional, Union

from PyQt6.QtCore import QCoreApplication

from .configuration import Configuration
from .defaults import Defaults, global_defaults
from .job import ApiJob
from .operations import (CreateContainer, CreateExecInstance, GetVersion, ListContainers,
                         ListImages, RemoveContainer, StartContainer, StartExecInstance,
                         StopContainer)
from .request import Operation
from .transport import TransportFactory

logger = logging.getLogger(__name__)

_application = None


def ensure_application() -> QCoreApplication:
    """Return the running Qt application, creating a core application if there is none"""
    global _application
    app = QCoreApplication.instance()
    if app is None:
        _application = app = QCoreApplication([])
    return app


class ImageCollection:
    """Docker Images collection"""

    def __init__(self, client: 'DockerClient'):
        self.client = client

    def list(self, all: bool = False, digests: bool = False) -> List[Dict[str, Any]]:
        """
        List images

        Args:
            all: Show all images (including intermediates)
            digests: Include digest information

        Returns:
            List of image records as returned by the API
        """
        return self.client.run(ListImages(show_all=all, show_digests=digests))


class ContainerCollection:
    """Docker Containers collection"""

    def __init__(self, client: 'DockerClient'):
        self.client = client

    def list(self, all: bool = False, limit: int = 0, size: bool = False) -> List[Dict[str, Any]]:
        """
        List containers

        Args:
            all: Show all containers (including stopped)
            limit: Maximum number of containers to return
            size: Include container sizes

        Returns:
            List of container records as returned by the API
        """
        return self.client.run(ListContainers(show_all=all, limit=limit, show_size=size))

    def create(self, image: str, name: str = '', **config) -> Dict[str, Any]:
        """
        Create container

        Args:
            image: Image name or ID
            name: Container name
            **config: Additional container configuration keys, e.g. Cmd=['sh']

        Returns:
            Reply with the new container "Id" and "Warnings"
        """
        container_config = {'Image': image}
        container_config.update(config)
        return self.client.run(CreateContainer(name=name, config=container_config))

    def start(self, container_id: str, detach_keys: str = ''):
        """Start container"""
        self.client.run(StartContainer(id=container_id, detach_keys=detach_keys))

    def stop(self, container_id: str, timeout: int = 0):
        """Stop container"""
        self.client.run(StopContainer(id=container_id, timeout=timeout))

    def remove(self, container_id: str, force: bool = False, v: bool = False, link: bool = False):
        """Remove container"""
        self.client.run(RemoveContainer(id=container_id, force=force, remove_volumes=v,
                                        remove_link=link))

    def exec_run(self, container_id: str, cmd: Union[str, List[str]], tty: bool = False,
                 privileged: bool = False, user: str = '',
                 environment: Optional[Dict[str, str]] = None, workdir: str = '') -> str:
        """
        Execute command in running container, detached

        Args:
            container_id: Container ID
            cmd: Command to execute
            tty: Allocate TTY
            privileged: Run as privileged
            user: User to run as
            environment: Environment variables
            workdir: Working directory

        Returns:
            ID of the exec instance
        """
        create = CreateExecInstance(
            id=container_id,
            cmd=cmd if isinstance(cmd, list) else ['sh', '-c', cmd],
            tty=tty,
            privileged=privileged,
            user=user,
            working_dir=workdir,
        )
        for key, value in (environment or {}).items():
            create.add_env(key, value)

        exec_id = self.client.run(create)['Id']
        self.client.run(StartExecInstance(id=exec_id, detach=True, tty=tty))
        return exec_id


class DockerClient:
    """
    Docker API Client

    Every call runs one job and blocks until it finished. Failures are
    raised as DockerException subclasses.
    """

    def __init__(self, configuration: Optional[Configuration] = None,
                 transport_factory: Optional[TransportFactory] = None,
                 timeout: float = ApiJob.DEFAULT_TIMEOUT):
        """
        Initialize Docker client

        Args:
            configuration: Connection configuration (default: the default
                configuration, else localhost:2375)
            transport_factory: Transport factory (default: the default factory)
            timeout: Request timeout in seconds
        """
        ensure_application()
        self.defaults = Defaults(
            configuration or global_defaults().configuration or Configuration(),
            transport_factory or global_defaults().transport_factory,
        )
        self.timeout = timeout
        self.images = ImageCollection(self)
        self.containers = ContainerCollection(self)

    def run(self, operation: Operation) -> Any:
        """
        Run an operation

        Args:
            operation: Operation to perform

        Returns:
            Parsed reply, None for operations without reply content
        """
        logger.debug(f"Running {operation!r}")
        job = ApiJob(operation, defaults=self.defaults, request_timeout=self.timeout)
        job.exec()
        job.raise_for_error()
        return job.reply_data()

    def version(self) -> Dict[str, Any]:
        """Get Docker version info"""
        return self.run(GetVersion())
