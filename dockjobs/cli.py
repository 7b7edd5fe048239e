"""
CLI - command line interface
"""

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from .client import DockerClient
from .exceptions import DockerException
from .settings_manager import SettingsManager
from .unix_transport import UnixSocketTransportFactory

logger = logging.getLogger(__name__)


def _short_id(object_id: str) -> str:
    # "sha256:0123..." -> "0123..."
    return object_id.split(':', 1)[-1][:12]


def _format_size(size: int) -> str:
    for unit in ('B', 'kB', 'MB', 'GB'):
        if size < 1000:
            return f"{size:.0f}{unit}" if unit == 'B' else f"{size:.1f}{unit}"
        size /= 1000
    return f"{size:.1f}TB"


class DockJobsCLI:
    """Docker API CLI interface"""

    def __init__(self, client: DockerClient):
        self.client = client

    def show_version(self):
        info = self.client.version()
        print(f"Version:     {info.get('Version', '')}")
        print(f"API version: {info.get('ApiVersion', '')}")
        print(f"Go version:  {info.get('GoVersion', '')}")
        print(f"OS/Arch:     {info.get('Os', '')}/{info.get('Arch', '')}")

    def list_images(self, all_images: bool = False, digests: bool = False):
        """List images"""
        images = self.client.images.list(all=all_images, digests=digests)

        if not images:
            logger.info("No images found")
            return

        # Header
        header = f"{'REPOSITORY:TAG':<50} {'ID':<15} {'SIZE':<10}"
        if digests:
            header += f" {'DIGEST':<20}"
        print(header)
        print("-" * len(header))

        for image in images:
            tags = image.get('RepoTags') or ['<none>:<none>']
            size = _format_size(image.get('Size', 0))
            for tag in tags:
                line = f"{tag:<50} {_short_id(image.get('Id', '')):<15} {size:<10}"
                if digests:
                    repo_digests = image.get('RepoDigests') or ['<none>']
                    line += f" {repo_digests[0].split('@', 1)[-1]}"
                print(line)

        print(f"\nTotal: {len(images)}")

    def list_containers(self, all_containers: bool = False, limit: int = 0, size: bool = False):
        """List containers"""
        containers = self.client.containers.list(all=all_containers, limit=limit, size=size)

        if not containers:
            logger.info("No containers found")
            return

        # Header
        header = f"{'NAME':<30} {'STATUS':<25} {'IMAGE':<40} {'ID':<15}"
        if size:
            header += f" {'SIZE':<10}"
        print(header)
        print("-" * len(header))

        # Containers
        for c in containers:
            names = c.get('Names') or ['']
            line = (f"{names[0].lstrip('/'):<30} {c.get('Status', ''):<25} "
                    f"{c.get('Image', ''):<40} {_short_id(c.get('Id', '')):<15}")
            if size:
                line += f" {_format_size(c.get('SizeRw', 0) or 0):<10}"
            print(line)

        print(f"\nTotal: {len(containers)}")

    def start_container(self, container_id: str):
        """Start container"""
        logger.info(f"Starting container {container_id}...")
        self.client.containers.start(container_id)
        logger.info(f"✓ Container {container_id} started")

    def stop_container(self, container_id: str, timeout: int = 0):
        """Stop container"""
        logger.info(f"Stopping container {container_id}...")
        self.client.containers.stop(container_id, timeout=timeout)
        logger.info(f"✓ Container {container_id} stopped")

    def remove_container(self, container_id: str, force: bool = False, volumes: bool = False):
        """Remove container"""
        logger.info(f"Removing container {container_id}...")
        self.client.containers.remove(container_id, force=force, v=volumes)
        logger.info(f"✓ Container {container_id} removed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dockjobs',
        description='dockjobs - Docker Engine API client',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Usage examples:
  %(prog)s version                                 # Docker version information
  %(prog)s images --all                            # List all images
  %(prog)s ps --all --limit 10                     # List the last 10 containers
  %(prog)s start my-container
  %(prog)s stop my-container -t 5
  %(prog)s rm my-container --force --volumes
  %(prog)s --socket /var/run/docker.sock ps        # Talk to the local socket
"""
    )

    # Connection parameters
    parser.add_argument('--host', help='Docker daemon host')
    parser.add_argument('--port', type=int, help='Docker daemon port')
    parser.add_argument('--tls', action='store_true', help='Use HTTPS')
    parser.add_argument('--socket', help='Docker socket path, overrides host and port')
    parser.add_argument('--settings', help='Settings file')
    parser.add_argument('--debug', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True, metavar='action')

    subparsers.add_parser('version', help='Show Docker version information')

    images = subparsers.add_parser('images', help='List images')
    images.add_argument('--all', action='store_true', help='Show intermediate images')
    images.add_argument('--digests', action='store_true', help='Show digests')

    ps = subparsers.add_parser('ps', help='List containers')
    ps.add_argument('--all', action='store_true', help='Show all containers')
    ps.add_argument('--limit', type=int, default=0, help='Show only the last N containers')
    ps.add_argument('--size', action='store_true', help='Show container sizes')

    start = subparsers.add_parser('start', help='Start container')
    start.add_argument('id', help='Container ID or name')

    stop = subparsers.add_parser('stop', help='Stop container')
    stop.add_argument('id', help='Container ID or name')
    stop.add_argument('-t', '--time', type=int, default=0,
                      help='Seconds to wait before killing the container')

    rm = subparsers.add_parser('rm', help='Remove container')
    rm.add_argument('id', help='Container ID or name')
    rm.add_argument('--force', action='store_true', help='Kill a running container first')
    rm.add_argument('--volumes', action='store_true', help='Remove anonymous volumes')

    return parser


def create_client(args: argparse.Namespace, settings: SettingsManager) -> DockerClient:
    """Docker client for the settings, with command line overrides applied"""
    configuration = settings.configuration()
    overrides = {}
    if args.host:
        overrides['host'] = args.host
    if args.port:
        overrides['port'] = args.port
    if args.tls:
        overrides['use_ssl'] = True
    if overrides:
        configuration = dataclasses.replace(configuration, **overrides)

    socket_path = args.socket or settings.get('socket_path')
    factory = UnixSocketTransportFactory(socket_path) if socket_path else None
    return DockerClient(configuration, factory, timeout=settings.get('request_timeout', 300))


def run_cli(argv: Optional[List[str]] = None) -> int:
    """Start CLI application"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(message)s')
    settings = SettingsManager(args.settings)
    level = 'DEBUG' if args.debug else str(settings.get('log_level', 'INFO')).upper()
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))

    cli = DockJobsCLI(create_client(args, settings))

    # Executing action
    try:
        if args.action == 'version':
            cli.show_version()

        elif args.action == 'images':
            cli.list_images(all_images=args.all, digests=args.digests)

        elif args.action == 'ps':
            cli.list_containers(all_containers=args.all, limit=args.limit, size=args.size)

        elif args.action == 'start':
            cli.start_container(args.id)

        elif args.action == 'stop':
            cli.stop_container(args.id, timeout=args.time)

        elif args.action == 'rm':
            cli.remove_container(args.id, force=args.force, volumes=args.volumes)

    except KeyboardInterrupt:
        logger.info("\n\nInterrupted by user")
        return 0
    except DockerException as e:
        logger.error(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(run_cli())
