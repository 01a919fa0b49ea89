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
Converter rendering a manifest as a docker-compose YAML file.
"""
from typing import Any, Dict

import yaml

from ..MODELS.compose_manifest import Manifest, Service
from ..UTILS.atomic_write import atomic_write
from ..UTILS.logging import get_logger

logger = get_logger("converters.compose")


class ComposeConverter:
    """
    Renders a manifest deterministically: mapping sections are sorted by key,
    fixed-schema objects keep their field order, and empty service fields are
    left out.
    """

    def __init__(self, manifest: Manifest):
        """
        Initializes the compose converter.

        :param manifest: The manifest to render.
        """
        self.manifest = manifest

    def to_dict(self) -> Dict[str, Any]:
        """
        Builds the plain-data form of the manifest, in output order.
        """
        services = {
            name: _service_to_dict(self.manifest.services[name])
            for name in sorted(self.manifest.services)
        }
        networks = {
            key: self.manifest.networks[key].model_dump(mode='json')
            for key in sorted(self.manifest.networks)
        }
        return {
            'version': self.manifest.version,
            'services': services,
            'networks': networks,
        }

    def render(self) -> str:
        """
        Renders the manifest as YAML text.
        """
        return yaml.safe_dump(
            self.to_dict(),
            sort_keys=False,
            default_flow_style=False,
            width=4096,
        )

    def convert(self, output_path: str = "docker-compose.yml") -> str:
        """
        Writes the rendered manifest.

        :param output_path: Destination of the compose file.
        :return: The path written.
        :raises FileError: If the file cannot be written.
        """
        atomic_write(output_path, self.render())
        logger.info(f"Compose file written to {output_path}")
        return output_path


def _service_to_dict(service: Service) -> Dict[str, Any]:
    data = service.model_dump(mode='json')
    data['environment'] = dict(sorted(data['environment'].items()))
    return {key: value for key, value in data.items() if value not in ("", [], {})}
