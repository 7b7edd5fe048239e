"""
Docker API operations
Version, images, containers and exec instances
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .request import API_ROOT, Description, ExpectedContent, HttpMethod, Operation

CONTAINER_NAME_PATTERN = r'^/?[a-zA-Z0-9][a-zA-Z0-9_.-]+$'
_CONTAINER_NAME_RE = re.compile(CONTAINER_NAME_PATTERN)

# single letter or ctrl-<value>, several sequences joined by commas
_DETACH_KEY = r'(?:[a-zA-Z]|ctrl-[a-z@^\[,_])'
_DETACH_KEYS_RE = re.compile(rf'{_DETACH_KEY}(?:,{_DETACH_KEY})*')

INVALID_DETACH_KEYS = ('Invalid "detachKeys" parameter. Format is a single character a-Z '
                       'or "ctrl-<value>" where <value> is one of: a-z, @, ^, [, _ or ,.')


def is_valid_container_name(name: str) -> bool:
    """Empty names are valid, Docker generates one then"""
    return not name or _CONTAINER_NAME_RE.fullmatch(name) is not None


def is_valid_detach_keys(detach_keys: str) -> bool:
    return not detach_keys or _DETACH_KEYS_RE.fullmatch(detach_keys) is not None


def _strip_slash(id: str) -> str:
    return id[1:] if id.startswith('/') else id


def _json_payload(body: Dict[str, Any]) -> Tuple[bytes, str]:
    return json.dumps(body, separators=(',', ':')).encode('utf-8'), 'application/json'


@dataclass
class GetVersion(Operation):
    """Docker version information"""
    method = HttpMethod.GET
    expected = ExpectedContent.JSON_OBJECT

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/version"

    def describe(self) -> Description:
        return Description('Requesting version information')


@dataclass
class ListImages(Operation):
    """
    List images

    Args:
        show_all: Include intermediate images
        show_digests: Include digest information
    """
    show_all: bool = False
    show_digests: bool = False

    method = HttpMethod.GET
    expected = ExpectedContent.JSON_ARRAY

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/images/json"

    def build_query(self) -> List[Tuple[str, str]]:
        query = super().build_query()
        if self.show_all:
            query.append(('all', 'true'))
        if self.show_digests:
            query.append(('digests', 'true'))
        return query

    def describe(self) -> Description:
        return Description('Requesting list of images')


@dataclass
class ListContainers(Operation):
    """
    List containers

    Args:
        show_all: Include stopped containers
        limit: Return only the most recently created containers, 0 for no limit
        show_size: Include the container sizes
    """
    show_all: bool = False
    limit: int = 0
    show_size: bool = False

    method = HttpMethod.GET
    expected = ExpectedContent.JSON_ARRAY

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/containers/json"

    def build_query(self) -> List[Tuple[str, str]]:
        query = super().build_query()
        if self.show_all:
            query.append(('all', 'true'))
        if self.limit > 0:
            query.append(('limit', str(self.limit)))
        if self.show_size:
            query.append(('size', 'true'))
        return query

    def describe(self) -> Description:
        return Description('Requesting list of containers')


@dataclass
class CreateContainer(Operation):
    """
    Create a container

    Args:
        name: Optional container name, sent as given
        config: Container configuration as accepted by the Docker API,
            at least "Image" has to be set
    """
    name: str = ''
    config: Dict[str, Any] = field(default_factory=dict)

    method = HttpMethod.POST
    expected = ExpectedContent.JSON_OBJECT

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/containers/create"

    def build_query(self) -> List[Tuple[str, str]]:
        query = super().build_query()
        if self.name:
            query.append(('name', self.name))
        return query

    def build_payload(self) -> Tuple[bytes, str]:
        return _json_payload(self.config)

    def check_input(self) -> Optional[str]:
        error = super().check_input()
        if error:
            return error
        if not is_valid_container_name(self.name):
            return ('The name for the container is not valid. It has to match the '
                    f"following regular expression: {CONTAINER_NAME_PATTERN}")
        if not self.config.get('Image'):
            return 'The name of the image from which the container is to be created is missing.'
        return None

    def describe(self) -> Description:
        title = f"Creating new container {self.name}" if self.name else 'Creating new container'
        return Description(title, ('Image', str(self.config.get('Image', ''))))


@dataclass
class StartContainer(Operation):
    """
    Start a container

    Args:
        id: Container ID or name
        detach_keys: Override the key sequence for detaching
    """
    id: str = ''
    detach_keys: str = ''

    method = HttpMethod.POST
    expected = ExpectedContent.NONE

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/containers/{_strip_slash(self.id)}/start"

    def build_query(self) -> List[Tuple[str, str]]:
        query = super().build_query()
        if self.detach_keys:
            query.append(('detachKeys', self.detach_keys))
        return query

    def check_input(self) -> Optional[str]:
        error = super().check_input()
        if error:
            return error
        if not self.id:
            return 'Can not start a container without a valid container ID.'
        if not is_valid_detach_keys(self.detach_keys):
            return INVALID_DETACH_KEYS
        return None

    def describe(self) -> Description:
        return Description(f"Starting container with ID {self.id}")


@dataclass
class StopContainer(Operation):
    """
    Stop a container

    Args:
        id: Container ID or name
        timeout: Seconds to wait before killing the container, 0 for the daemon default
    """
    id: str = ''
    timeout: int = 0

    method = HttpMethod.POST
    expected = ExpectedContent.NONE

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/containers/{_strip_slash(self.id)}/stop"

    def build_query(self) -> List[Tuple[str, str]]:
        query = super().build_query()
        if self.timeout > 0:
            query.append(('t', str(self.timeout)))
        return query

    def check_input(self) -> Optional[str]:
        error = super().check_input()
        if error:
            return error
        if not self.id:
            return 'Can not stop a container without a valid container ID.'
        return None

    def describe(self) -> Description:
        return Description(f"Stopping container with ID {self.id}")


@dataclass
class RemoveContainer(Operation):
    """
    Remove a container

    Args:
        id: Container ID or name
        remove_volumes: Remove anonymous volumes of the container
        force: Kill a running container before removing it
        remove_link: Remove the specified link instead of the container
    """
    id: str = ''
    remove_volumes: bool = False
    force: bool = False
    remove_link: bool = False

    method = HttpMethod.DELETE
    expected = ExpectedContent.NONE

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/containers/{_strip_slash(self.id)}"

    def build_query(self) -> List[Tuple[str, str]]:
        query = super().build_query()
        if self.remove_volumes:
            query.append(('v', 'true'))
        if self.force:
            query.append(('force', 'true'))
        if self.remove_link:
            query.append(('link', 'true'))
        return query

    def check_input(self) -> Optional[str]:
        error = super().check_input()
        if error:
            return error
        if not self.id:
            return 'Can not remove a container without a valid container ID.'
        return None

    def describe(self) -> Description:
        return Description(f"Removing container with ID {self.id}")


@dataclass
class CreateExecInstance(Operation):
    """
    Create an exec instance in a running container

    Args:
        id: Container ID or name
        cmd: Command to run, one list entry per argument
        env: Environment variables as "KEY=value" strings
    """
    id: str = ''
    cmd: List[str] = field(default_factory=list)
    env: List[str] = field(default_factory=list)
    attach_stdin: bool = False
    attach_stdout: bool = False
    attach_stderr: bool = False
    detach_keys: str = ''
    tty: bool = False
    privileged: bool = False
    user: str = ''
    working_dir: str = ''

    method = HttpMethod.POST
    expected = ExpectedContent.JSON_OBJECT

    def add_env(self, key: str, value: Optional[str] = None):
        """Add an environment variable, either as "KEY=value" or as key and value"""
        self.env.append(key if value is None else f"{key}={value}")

    def remove_env(self, entry: str):
        self.env = [e for e in self.env if e != entry]

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/containers/{_strip_slash(self.id)}/exec"

    def build_payload(self) -> Tuple[bytes, str]:
        return _json_payload({
            'AttachStdin': self.attach_stdin,
            'AttachStdout': self.attach_stdout,
            'AttachStderr': self.attach_stderr,
            'DetachKeys': self.detach_keys,
            'Tty': self.tty,
            'Env': list(self.env),
            'Cmd': list(self.cmd),
            'Privileged': self.privileged,
            'User': self.user,
            'WorkingDir': self.working_dir,
        })

    def check_input(self) -> Optional[str]:
        error = super().check_input()
        if error:
            return error
        if not self.id:
            return 'Can not create a new execution instance without a valid container ID.'
        if not is_valid_detach_keys(self.detach_keys):
            return INVALID_DETACH_KEYS
        if not self.cmd:
            return 'Can not create a new execution instance without any command to execute.'
        return None

    def describe(self) -> Description:
        return Description(f"Creating new execution instance for container {self.id}")


@dataclass
class StartExecInstance(Operation):
    """
    Start a previously created exec instance

    Args:
        id: Exec instance ID
        detach: Detach from the command
        tty: Allocate a pseudo-TTY
    """
    id: str = ''
    detach: bool = False
    tty: bool = False

    method = HttpMethod.POST
    expected = ExpectedContent.NONE

    def build_path(self, root: str = API_ROOT) -> str:
        return f"{root}/exec/{self.id}/start"

    def build_payload(self) -> Tuple[bytes, str]:
        return _json_payload({'Detach': self.detach, 'Tty': self.tty})

    def check_input(self) -> Optional[str]:
        error = super().check_input()
        if error:
            return error
        if not self.id:
            return 'Missing execution instance ID to start.'
        return None

    def describe(self) -> Description:
        return Description('Starting execution instance', ('ID', self.id))
