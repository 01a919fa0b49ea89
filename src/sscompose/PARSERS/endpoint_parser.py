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
Parser for remote endpoint options given on the command line.
"""
from typing import Dict

from pydantic import ValidationError

from ..MODELS.fleet_config import RemoteEndpoint
from ..UTILS.exceptions import ConfigError

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


class EndpointParser:
    """
    Parses endpoint specs of the form

        provider=linode,host=1.2.3.4,ports=2047:3047,kcp=true,base=1100

    `ports` is a colon separated list; `kcp` and `base` are optional.
    """

    @staticmethod
    def parse(spec: str) -> RemoteEndpoint:
        """
        Parses one endpoint spec.

        :param spec: The spec string.
        :return: The endpoint.
        :raises ConfigError: If the spec is malformed or misses a field.
        """
        fields: Dict[str, str] = {}
        for part in spec.split(','):
            part = part.strip()
            if not part:
                continue
            if '=' not in part:
                raise ConfigError(f"Invalid endpoint field '{part}' in '{spec}', expected key=value")
            key, value = part.split('=', 1)
            fields[key.strip().lower()] = value.strip()

        unknown = set(fields) - {"provider", "host", "ports", "kcp", "base"}
        if unknown:
            raise ConfigError(f"Unknown endpoint field(s) {', '.join(sorted(unknown))} in '{spec}'")

        data = {
            "provider": fields.get("provider", ""),
            "host": fields.get("host", ""),
            "ports": [p for p in fields.get("ports", "").split(':') if p],
            "obfuscate": EndpointParser._parse_bool(fields.get("kcp", "false"), spec),
        }
        if fields.get("base"):
            data["base_port"] = fields["base"]

        try:
            return RemoteEndpoint.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid endpoint '{spec}':\n{e}") from e

    @staticmethod
    def _parse_bool(value: str, spec: str) -> bool:
        lowered = value.lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ConfigError(f"Invalid kcp value '{value}' in '{spec}'")
