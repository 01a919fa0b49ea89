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
Host port bookkeeping for generated services.
"""
from typing import Dict, List, Tuple

from ..MODELS.compose_manifest import Service
from ..UTILS.exceptions import ConfigError


def parse_port_binding(binding: str) -> Tuple[str, str, str]:
    """
    Splits "host:container[/proto]" into (host, container, proto).
    """
    mapping, _, proto = binding.partition('/')
    host, sep, container = mapping.rpartition(':')
    if not sep:
        host, container = mapping, mapping
    return host, container, proto or "tcp"


class PortRegistry:
    """
    Tracks which service publishes each host port so collisions are caught
    before a manifest is written.
    """
    def __init__(self):
        self.host_port_to_service: Dict[Tuple[str, str], str] = {}  # (host_port, proto) -> container_name

    def register(self, service: Service):
        """
        Records every host port of a service.

        :param service: The service to record.
        :raises ConfigError: If a host port is already published by another service.
        """
        for binding in service.ports:
            host, _, proto = parse_port_binding(binding)
            owner = self.host_port_to_service.get((host, proto))
            if owner is not None:
                raise ConfigError(
                    f"Host port {host}/{proto} of {service.container_name} is already used by {owner}"
                )
            self.host_port_to_service[(host, proto)] = service.container_name

    def register_all(self, services: List[Service]):
        for service in services:
            self.register(service)
