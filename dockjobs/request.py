"""
Request descriptors
Declarative description of a single Docker API operation
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

API_ROOT = '/v1.40'


class HttpMethod(Enum):
    HEAD = 'HEAD'
    GET = 'GET'
    PUT = 'PUT'
    POST = 'POST'
    DELETE = 'DELETE'


class ExpectedContent(Enum):
    """Kind of reply body an operation expects"""
    NONE = 'none'
    JSON_ARRAY = 'array'
    JSON_OBJECT = 'object'

    @property
    def is_json(self) -> bool:
        return self is not ExpectedContent.NONE


@dataclass(frozen=True)
class Description:
    """Human readable job description, field is an optional (name, value) pair"""
    title: str
    field: Optional[Tuple[str, str]] = None


@dataclass
class Request:
    """A fully built HTTP request, ready to be handed to a transport"""
    method: HttpMethod
    url: str
    path: str
    target: str
    query: List[Tuple[str, str]] = field(default_factory=list)
    query_string: str = ''
    headers: Dict[str, str] = field(default_factory=dict)
    payload: bytes = b''
    content_type: str = ''


class Operation:
    """
    Base for all API operations

    Subclasses set method and expected as class attributes and override
    the build_*() hooks they need. check_input() overrides have to call
    the base implementation first and return its error if there is one.
    """
    method: HttpMethod = HttpMethod.GET
    expected: ExpectedContent = ExpectedContent.NONE
    requires_auth: bool = False

    def build_path(self, root: str = API_ROOT) -> str:
        return root

    def build_query(self) -> List[Tuple[str, str]]:
        return []

    def build_headers(self) -> Dict[str, str]:
        return {}

    def build_payload(self) -> Tuple[bytes, str]:
        """Return body bytes and content type"""
        return b'', ''

    def check_input(self) -> Optional[str]:
        """Return an error message if the input is not valid"""
        return None

    def describe(self) -> Description:
        return Description(type(self).__name__)
