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
Assembly of translated services into a complete compose manifest.
"""
from typing import List, Optional

from ..MODELS.fleet_config import FleetConfig, ServerNode, ClientNode, GeneratorSettings
from ..MODELS.compose_manifest import Manifest, Network, Service
from ..UTILS.exceptions import DuplicateNameError
from ..UTILS.logging import get_logger
from .service_translator import ServiceTranslator
from .port_registry import PortRegistry

logger = get_logger("builders.assembler")

SERVER_GROUP = "shadowsocks-server"
CLIENT_GROUP = "shadowsocks-client"


class ManifestAssembler:
    """
    Builds manifests for a whole fleet (batch) or for a single node.
    Every call starts from an empty manifest.
    """
    def __init__(self, settings: Optional[GeneratorSettings] = None):
        """
        Initializes the assembler.

        :param settings: Generation options; defaults apply when omitted.
        """
        self.settings = settings or GeneratorSettings()

    def assemble_fleet(self, fleet: FleetConfig) -> Manifest:
        """
        Builds one manifest for every server and client of a fleet. Servers
        share one network, clients share another; a network is only added
        for a non-empty group.

        :param fleet: The fleet definition.
        :return: The manifest.
        """
        translator = self._translator(fleet.image)

        server_services = [translator.translate_server(node, SERVER_GROUP) for node in fleet.servers]
        client_services = []
        for node in fleet.clients:
            client_services.extend(translator.translate_client_fleet(node, CLIENT_GROUP))

        self._check_ports(server_services + client_services)

        manifest = Manifest()
        if server_services:
            self.add_group(manifest, SERVER_GROUP, server_services)
        if client_services:
            self.add_group(manifest, CLIENT_GROUP, client_services)

        logger.info(
            f"Assembled {len(manifest.services)} services "
            f"({len(fleet.servers)} servers, {len(fleet.clients)} clients)"
        )
        return manifest

    def assemble_server(self, node: ServerNode) -> Manifest:
        """
        Builds the manifest for a single server, on a network named after it.
        """
        service = self._translator().translate_server(node, node.name)
        self._check_ports([service])
        manifest = Manifest()
        self.add_group(manifest, node.name, [service])
        return manifest

    def assemble_client(self, node: ClientNode) -> Manifest:
        """
        Builds the manifest for a single client and its fan-out endpoints,
        all on a network named after the client.
        """
        services = self._translator().translate_client_fleet(node, node.name, suffix_port=True)
        self._check_ports(services)
        manifest = Manifest()
        self.add_group(manifest, node.name, services)
        logger.info(f"Assembled {len(services)} services for client {node.name}")
        return manifest

    def add_group(self, manifest: Manifest, group: str, services: List[Service]):
        """
        Adds services and the bridge network they share.

        :param manifest: Manifest to extend.
        :param group: Group name; the network key, and its name with a -network suffix.
        :param services: Services already attached to the group's network.
        """
        for service in services:
            self.add_service(manifest, service)
        manifest.networks[group] = Network(name=f"{group}-network")

    def add_service(self, manifest: Manifest, service: Service):
        """
        Adds a service keyed by its container name.

        :raises DuplicateNameError: If the name is taken and duplicates are not allowed.
        """
        name = service.container_name
        if name in manifest.services:
            if not self.settings.allow_duplicates:
                raise DuplicateNameError(name)
            logger.warning(f"Service {name} is defined twice, keeping the later definition")
        manifest.services[name] = service

    def _translator(self, image: Optional[str] = None) -> ServiceTranslator:
        return ServiceTranslator(image or self.settings.image, backup_ports=self.settings.backup_ports)

    def _check_ports(self, services: List[Service]):
        if self.settings.check_ports:
            PortRegistry().register_all(services)
