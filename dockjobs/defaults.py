"""
Process-wide defaults used by jobs that have no explicit configuration
"""

import logging
import threading
from typing import Optional, TYPE_CHECKING

from .configuration import Configuration

if TYPE_CHECKING:
    from .transport import TransportFactory

logger = logging.getLogger(__name__)


class Defaults:
    """
    Registry for the default configuration and transport factory

    Jobs read from it every time they send a request, the application
    writes to it when it is (re)configured. A registry can be handed to a
    job directly, the module level instance is used otherwise.
    """

    def __init__(self, configuration: Optional[Configuration] = None,
                 transport_factory: Optional['TransportFactory'] = None):
        self._lock = threading.Lock()
        self._configuration = configuration
        self._transport_factory = transport_factory

    @property
    def configuration(self) -> Optional[Configuration]:
        with self._lock:
            return self._configuration

    @configuration.setter
    def configuration(self, configuration: Optional[Configuration]):
        with self._lock:
            logger.debug(f"Setting default configuration to {configuration!r}")
            self._configuration = configuration

    @property
    def transport_factory(self) -> Optional['TransportFactory']:
        with self._lock:
            return self._transport_factory

    @transport_factory.setter
    def transport_factory(self, factory: Optional['TransportFactory']):
        with self._lock:
            logger.debug(f"Setting default transport factory to {factory!r}")
            self._transport_factory = factory

    def reset(self):
        """Drop the default configuration and transport factory"""
        with self._lock:
            self._configuration = None
            self._transport_factory = None


_defaults = Defaults()


def global_defaults() -> Defaults:
    """Return the module level registry"""
    return _defaults


def default_configuration() -> Optional[Configuration]:
    return _defaults.configuration


def set_default_configuration(configuration: Optional[Configuration]):
    _defaults.configuration = configuration


def transport_factory() -> Optional['TransportFactory']:
    return _defaults.transport_factory


def set_transport_factory(factory: Optional['TransportFactory']):
    _defaults.transport_factory = factory
