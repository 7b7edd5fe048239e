"""
Connection configuration for the Docker daemon
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Configuration:
    """
    Read-only connection settings used by jobs

    Args:
        host: Remote host the Docker daemon listens on
        port: Remote TCP port
        use_ssl: Connect with https instead of http
        ignore_ssl_errors: Continue on TLS certificate errors
        username: Username for authenticated requests
        password: Password for authenticated requests
    """
    host: str = 'localhost'
    port: int = 2375
    use_ssl: bool = False
    ignore_ssl_errors: bool = False
    username: str = ''
    password: str = ''

    @property
    def scheme(self) -> str:
        """URL scheme derived from the TLS flag"""
        return 'https' if self.use_ssl else 'http'

    def __repr__(self):
        # credentials stay out of log output
        return (f"<Configuration: {self.scheme}://{self.host}:{self.port}"
                f"{' ignore-ssl-errors' if self.ignore_ssl_errors else ''}>")
