# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command Line Interface for sscompose.
"""
import functools
import logging
import os

import click
from dotenv import load_dotenv
from pydantic import ValidationError

from ..MODELS.fleet_config import ServerNode, ClientNode, GeneratorSettings, DEFAULT_IMAGE
from ..PARSERS.fleet_parser import FleetParser, default_fleet
from ..PARSERS.endpoint_parser import EndpointParser
from ..BUILDERS.manifest_assembler import ManifestAssembler
from ..CONVERTERS.to_compose import ComposeConverter
from ..RUNNERS.compose_runner import ComposeRunner, DEFAULT_COMPOSE_BIN
from ..UTILS.exceptions import SSComposeError, ConfigError
from ..UTILS.logging import setup_logging

ENVVAR_PREFIX = "SSCOMPOSE"


def handle_errors(func):
    """
    Reports sscompose errors as a one-line failure with exit status 1.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SSComposeError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def build_node(model, **fields):
    """Validates node options into a model, reporting problems as ConfigError."""
    try:
        return model(**fields)
    except ValidationError as e:
        raise ConfigError(f"Invalid {model.__name__} options:\n{e}") from e


def workdir_options(func):
    """Options locating the per-node compose file."""
    func = click.option('--file', '-f', 'compose_file', default='docker-compose.yml',
                        show_default=True, help='Compose file, relative to the workdir')(func)
    func = click.option('--workdir', '-w', default='.', show_default=True,
                        type=click.Path(file_okay=False),
                        help='Directory holding the compose file')(func)
    return func


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """
    sscompose - shadowsocks fleet to docker-compose generator.

    Builds compose files for shadowsocks servers and clients, with optional
    kcptun tunnels, and starts or stops them with docker-compose.
    """
    ctx.ensure_object(dict)
    setup_logging(logging.DEBUG if verbose else logging.INFO)


@cli.command()
@click.option('--config', '-c', 'config_path', default='./shadowsocks.yml', show_default=True,
              help='Fleet file to create')
@click.option('--image', default=DEFAULT_IMAGE, show_default=True, help='Image for every service')
@handle_errors
def init(config_path, image):
    """Write a sample fleet file."""
    FleetParser().write(default_fleet(image), config_path)
    click.echo(f"init shadowsocks config file [{config_path}] success.")


@cli.command()
@click.option('--config', '-c', 'config_path', default='./shadowsocks.yml', show_default=True,
              help='Fleet file to read')
@click.option('--output', '-o', default='docker-compose.yml', show_default=True,
              help='Compose file to write')
@click.option('--backup-ports/--no-backup-ports', default=True, show_default=True,
              help='Publish server backup ports')
@click.option('--allow-duplicates', is_flag=True,
              help='Let a later service overwrite an earlier one with the same name')
@click.option('--check-ports', is_flag=True, help='Reject fleets publishing a host port twice')
@handle_errors
def generate(config_path, output, backup_ports, allow_duplicates, check_ports):
    """Generate one compose file for a whole fleet."""
    fleet = FleetParser().parse(config_path)
    settings = GeneratorSettings(
        image=fleet.image,
        backup_ports=backup_ports,
        allow_duplicates=allow_duplicates,
        check_ports=check_ports,
    )
    manifest = ManifestAssembler(settings).assemble_fleet(fleet)
    ComposeConverter(manifest).convert(output)
    click.echo(f"generate shadowsocks docker compose file [{output}] success.")


def add_lifecycle_commands(group: click.Group):
    """
    Adds `start` and `stop`, which run docker-compose up/down on the
    group's compose file.
    """
    @group.command()
    @workdir_options
    @click.option('--compose-bin', default=DEFAULT_COMPOSE_BIN, show_default=True,
                  help='docker-compose executable')
    @handle_errors
    def start(workdir, compose_file, compose_bin):
        """Start the node with docker-compose up -d."""
        ComposeRunner(workdir, compose_bin).up(compose_file)
        click.echo(f"{group.name} started.")

    @group.command()
    @workdir_options
    @click.option('--compose-bin', default=DEFAULT_COMPOSE_BIN, show_default=True,
                  help='docker-compose executable')
    @handle_errors
    def stop(workdir, compose_file, compose_bin):
        """Stop the node with docker-compose down."""
        ComposeRunner(workdir, compose_bin).down(compose_file)
        click.echo(f"{group.name} stopped.")


@cli.group()
def server():
    """Manage a single shadowsocks server."""


@server.command('config')
@click.option('--image', default=DEFAULT_IMAGE, show_default=True, help='Server image')
@click.option('--name', default='ss-server', show_default=True, help='Container name')
@click.option('--port', default='9000', show_default=True, help='Published host port')
@click.option('--backup-port', 'backup_ports', multiple=True, help='Extra published host port (repeatable)')
@click.option('--backup-ports/--no-backup-ports', 'enable_backup', default=True, show_default=True,
              help='Publish the backup ports')
@click.option('--key', required=True, help='Shared secret')
@workdir_options
@handle_errors
def server_config(image, name, port, backup_ports, enable_backup, key, workdir, compose_file):
    """Write the compose file for one server."""
    node = build_node(ServerNode, name=name, port=port, backup_ports=list(backup_ports), key=key)
    settings = GeneratorSettings(image=image, backup_ports=enable_backup)
    manifest = ManifestAssembler(settings).assemble_server(node)
    path = ComposeConverter(manifest).convert(os.path.join(workdir, compose_file))
    click.echo(f"server config written to {path}")


@cli.group()
def client():
    """Manage a single shadowsocks client."""


@client.command('config')
@click.option('--image', default=DEFAULT_IMAGE, show_default=True, help='Client image')
@click.option('--name', default='ss-client', show_default=True, help='Container name prefix')
@click.option('--port', default='1080', show_default=True, help='Local port of the primary remote')
@click.option('--kcp/--no-kcp', default=False, show_default=True,
              help='Reach the primary remote through kcptun')
@click.option('--remote-ip', help='Primary remote host')
@click.option('--remote-port', help='Primary remote port')
@click.option('--endpoint', 'endpoints', multiple=True,
              help='Extra remote, e.g. provider=linode,host=1.2.3.4,ports=2047:3047,kcp=true,base=1100')
@click.option('--key', required=True, help='Shared secret')
@click.option('--check-ports', is_flag=True, help='Reject endpoints publishing a host port twice')
@workdir_options
@handle_errors
def client_config(image, name, port, kcp, remote_ip, remote_port, endpoints, key, check_ports,
                  workdir, compose_file):
    """Write the compose file for one client and its extra endpoints."""
    node = build_node(
        ClientNode,
        name=name,
        port=port,
        kcp=kcp,
        remote_ip=remote_ip or "",
        remote_port=remote_port or "",
        key=key,
        endpoints=[EndpointParser.parse(spec) for spec in endpoints],
    )
    settings = GeneratorSettings(image=image, check_ports=check_ports)
    manifest = ManifestAssembler(settings).assemble_client(node)
    path = ComposeConverter(manifest).convert(os.path.join(workdir, compose_file))
    click.echo(f"client config written to {path} ({len(manifest.services)} services)")


add_lifecycle_commands(server)
add_lifecycle_commands(client)


def main():
    """
    Main entry point for the CLI.
    """
    load_dotenv()
    cli(obj={}, auto_envvar_prefix=ENVVAR_PREFIX)


if __name__ == '__main__':
    main()
