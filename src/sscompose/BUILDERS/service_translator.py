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
Translation of server and client nodes into compose services.
"""
from typing import List, Optional

from ..MODELS.fleet_config import ServerNode, ClientNode, DEFAULT_IMAGE
from ..MODELS.compose_manifest import Service
from ..UTILS.exceptions import ConfigError
from ..UTILS.logging import get_logger
from . import launch_templates as lt

logger = get_logger("builders.translator")


class ServiceTranslator:
    """
    Turns one node description into the service(s) that run it.
    """
    def __init__(self, image: str = DEFAULT_IMAGE, backup_ports: bool = True):
        """
        Initializes the translator.

        :param image: Image every generated service runs.
        :param backup_ports: Whether server backup ports are published.
        """
        self.image = image
        self.backup_ports = backup_ports

    def translate_server(self, node: ServerNode, network: str) -> Service:
        """
        Builds the service for a server node. Every published host port maps
        to the in-container server port over both TCP and UDP, since kcptun
        listens on UDP next to shadowsocks on TCP.

        :param node: The server node.
        :param network: Network the service joins.
        :return: The server service.
        """
        _require(node.key, "key", node.name)
        _require(node.port, "port", node.name)

        host_ports = [node.port]
        if self.backup_ports:
            host_ports.extend(node.backup_ports)
        for host_port in host_ports:
            _port_number(host_port, node.name)

        ports = []
        for host_port in host_ports:
            ports.append(f"{host_port}:{lt.SERVER_PORT}")
            ports.append(f"{host_port}:{lt.SERVER_PORT}/udp")

        service = Service(
            image=self.image,
            container_name=node.name,
            ports=ports,
            command=lt.render_server_command(node.key),
            networks=[network],
        )
        logger.debug(f"Translated server {node.name} with ports {', '.join(host_ports)}")
        return service

    def translate_client(self,
                         node: ClientNode,
                         network: str,
                         provider: Optional[str] = None,
                         remote_ip: Optional[str] = None,
                         remote_port: Optional[str] = None,
                         local_port: Optional[str] = None,
                         obfuscate: Optional[bool] = None,
                         suffix_port: bool = False) -> Service:
        """
        Builds one client service. Overrides default to the node's own values.

        :param node: The client node.
        :param network: Network the service joins.
        :param provider: Optional provider tag appended to the container name.
        :param remote_ip: Remote host, defaults to node.remote_ip.
        :param remote_port: Remote port, defaults to node.remote_port.
        :param local_port: Published host port, defaults to node.port.
        :param obfuscate: Whether to route through kcptun, defaults to node.kcp.
        :param suffix_port: Append the local port to the container name.
        :return: The client service.
        """
        remote_ip = remote_ip or node.remote_ip
        remote_port = remote_port or node.remote_port
        local_port = local_port or node.port
        if obfuscate is None:
            obfuscate = node.kcp

        _require(node.key, "key", node.name)
        _require(remote_ip, "remote_ip", node.name)
        _require(remote_port, "remote_port", node.name)
        _require(local_port, "port", node.name)
        _port_number(local_port, node.name)
        _port_number(remote_port, node.name)

        name = node.name
        if provider:
            name = f"{name}-{provider}"
        if suffix_port:
            name = f"{name}-{local_port}"

        if obfuscate:
            # ss-local talks to the local kcptun client, which carries the real remote
            environment = {
                "SS_MODULE": lt.SS_LOCAL_MODULE,
                "SS_CONFIG": lt.render_ss_local_config(lt.LOOPBACK, lt.KCP_TUNNEL_PORT, node.key),
                "KCP_FLAG": "true",
                "KCP_MODULE": lt.KCP_CLIENT_MODULE,
                "KCP_CONFIG": lt.render_kcp_client_config(remote_ip, remote_port, node.key),
            }
        else:
            environment = {
                "SS_MODULE": lt.SS_LOCAL_MODULE,
                "SS_CONFIG": lt.render_ss_local_config(remote_ip, remote_port, node.key),
            }

        service = Service(
            image=self.image,
            container_name=name,
            ports=[f"{local_port}:{lt.CLIENT_PORT}"],
            environment=environment,
            networks=[network],
        )
        logger.debug(f"Translated client {name} -> {remote_ip}:{remote_port} (kcp={obfuscate})")
        return service

    def translate_client_fleet(self,
                               node: ClientNode,
                               network: str,
                               suffix_port: bool = False) -> List[Service]:
        """
        Builds the primary client service plus one service per remote port of
        every additional endpoint.

        Fan-out local ports count up from the one after the highest port
        allocated so far, unless the endpoint sets its own base port.

        :param node: The client node.
        :param network: Network the services join.
        :param suffix_port: Append the local port to the primary container name.
        :return: Services in allocation order, primary first.
        """
        services = [self.translate_client(node, network, suffix_port=suffix_port)]
        if not node.endpoints:
            return services

        next_port = _port_number(node.port, node.name) + 1
        for endpoint in node.endpoints:
            start = endpoint.base_port if endpoint.base_port is not None else next_port
            for offset, remote_port in enumerate(endpoint.ports):
                local_port = start + offset
                _port_number(str(local_port), node.name)
                services.append(self.translate_client(
                    node,
                    network,
                    provider=endpoint.provider,
                    remote_ip=endpoint.host,
                    remote_port=remote_port,
                    local_port=str(local_port),
                    obfuscate=endpoint.obfuscate,
                    suffix_port=True,
                ))
                next_port = max(next_port, local_port + 1)

        return services


def _require(value: Optional[str], field: str, node_name: str):
    if not value:
        raise ConfigError(f"{node_name}: missing required field '{field}'")


def _port_number(port: str, node_name: str) -> int:
    try:
        number = int(port)
    except ValueError as e:
        raise ConfigError(f"{node_name}: port '{port}' is not a number") from e
    if not 1 <= number <= 65535:
        raise ConfigError(f"{node_name}: port {number} must be between 1 and 65535")
    return number
