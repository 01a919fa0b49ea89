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
Models for the generated docker-compose manifest.
"""
from typing import List, Dict
from pydantic import BaseModel, Field
from enum import Enum

COMPOSE_VERSION = "3.5"


class RestartPolicyCondition(str, Enum):
    """
    Restart policies the generator emits.
    """
    ALWAYS = "always"


class NetworkDriver(str, Enum):
    """
    Network drivers the generator emits.
    """
    BRIDGE = "bridge"


class Service(BaseModel):
    """
    One compose service. Field order is the order fields are rendered in.
    """
    image: str = ""
    container_name: str = ""
    ports: List[str] = []  # "host:container[/proto]"
    environment: Dict[str, str] = {}
    command: str = ""
    restart: RestartPolicyCondition = RestartPolicyCondition.ALWAYS
    networks: List[str] = []


class Network(BaseModel):
    """
    A compose network shared by one logical group of services.
    """
    name: str
    driver: NetworkDriver = NetworkDriver.BRIDGE


class Manifest(BaseModel):
    """
    A complete docker-compose file.
    """
    version: str = COMPOSE_VERSION
    services: Dict[str, Service] = Field(default_factory=dict)
    networks: Dict[str, Network] = Field(default_factory=dict)
