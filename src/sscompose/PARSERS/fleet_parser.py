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
Parser and writer for fleet definition files.
"""
from typing import Any

import yaml
from pydantic import ValidationError

from ..MODELS.fleet_config import FleetConfig, ServerNode, ClientNode, DEFAULT_IMAGE
from ..UTILS.atomic_write import atomic_write
from ..UTILS.exceptions import ConfigError, FileError
from ..UTILS.logging import get_logger

logger = get_logger("parsers.fleet")

DEFAULT_KEY = "12345678"
DEFAULT_SERVER_PORT = "9000"
DEFAULT_CLIENT_PORT = 1080
DEFAULT_REMOTE_IP = "127.0.0.1"
SAMPLE_COUNT = 3

SCALAR_TEXT_TAGS = (
    "tag:yaml.org,2002:int",
    "tag:yaml.org,2002:float",
    "tag:yaml.org,2002:bool",
)


class FleetLoader(yaml.SafeLoader):
    """
    Safe loader that keeps unquoted numbers and booleans as their source text,
    so keys like 01234567 or 12_345_678 reach the containers unchanged.
    """


FleetLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in SCALAR_TEXT_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def default_fleet(image: str = DEFAULT_IMAGE) -> FleetConfig:
    """
    Builds the sample fleet written by `init`: three servers and three
    clients, with kcp on every other client.

    :param image: Image for the fleet.
    :return: The sample fleet.
    """
    servers = [
        ServerNode(name=f"server-{i}", port=DEFAULT_SERVER_PORT, key=DEFAULT_KEY)
        for i in range(SAMPLE_COUNT)
    ]
    clients = [
        ClientNode(
            name=f"client-{i}",
            port=str(DEFAULT_CLIENT_PORT + i),
            kcp=i % 2 == 0,
            remote_ip=DEFAULT_REMOTE_IP,
            remote_port=DEFAULT_SERVER_PORT,
            key=DEFAULT_KEY,
        )
        for i in range(SAMPLE_COUNT)
    ]
    return FleetConfig(image=image, servers=servers, clients=clients)


class FleetParser:
    """
    Parser for fleet definition YAML files.
    """

    def parse(self, fleet_path: str) -> FleetConfig:
        """
        Parses a fleet file from a path.

        :param fleet_path: Path to the fleet file.
        :return: Parsed fleet.
        :raises FileError: If the file cannot be read or is not valid YAML.
        :raises ConfigError: If the content does not describe a valid fleet.
        """
        try:
            with open(fleet_path, 'r') as f:
                content = f.read()
        except OSError as e:
            raise FileError(fleet_path, e.strerror or str(e)) from e
        logger.debug(f"Loaded fleet file {fleet_path}")
        return self.parse_from_string(content, source=fleet_path)

    def parse_from_string(self, content: str, source: str = "<string>") -> FleetConfig:
        """
        Parses a fleet definition from YAML text.

        :param content: YAML content.
        :param source: Name used in error messages.
        :return: Parsed fleet.
        """
        try:
            data = yaml.load(content, Loader=FleetLoader)
        except (yaml.YAMLError, ValueError) as e:
            raise FileError(source, f"invalid YAML: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{source}: fleet definition must be a mapping")

        try:
            return FleetConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"{source}: invalid fleet definition:\n{e}") from e

    def dump(self, config: FleetConfig) -> str:
        """
        Renders a fleet as YAML, leaving out empty fields.
        """
        data = _prune(config.model_dump(mode='json'))
        return yaml.safe_dump(data or {}, sort_keys=False, default_flow_style=False)

    def write(self, config: FleetConfig, fleet_path: str) -> str:
        """
        Writes a fleet file.

        :raises FileError: If the file cannot be written.
        """
        atomic_write(fleet_path, self.dump(config))
        logger.info(f"Fleet file written to {fleet_path}")
        return fleet_path


def _prune(value: Any) -> Any:
    """
    Recursively drops empty strings, empty collections, False and None from mappings.
    """
    if isinstance(value, dict):
        pruned = {}
        for key, item in value.items():
            item = _prune(item)
            if item is None or item is False or item in ("", [], {}):
                continue
            pruned[key] = item
        return pruned
    if isinstance(value, list):
        return [_prune(item) for item in value]
    return value
