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
Models for the declarative fleet definition: servers, clients and their remote endpoints.
"""
from typing import List, Optional, Any
from pydantic import BaseModel, Field, field_validator

DEFAULT_IMAGE = "mritd/shadowsocks:3.3.4-20200409"


def _number_to_str(value: Any) -> Any:
    """
    YAML reads unquoted ports and keys as integers; both are carried as strings.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, list):
        return [_number_to_str(v) for v in value]
    return value


class ServerNode(BaseModel):
    """
    One shadowsocks server endpoint with its kcptun server companion.
    """
    name: str = Field(min_length=1)
    port: str = Field(min_length=1)
    backup_ports: List[str] = []
    key: str = Field(min_length=1)

    @field_validator('port', 'backup_ports', 'key', mode='before')
    @classmethod
    def coerce_numbers(cls, value):
        return _number_to_str(value)


class RemoteEndpoint(BaseModel):
    """
    An additional remote a client fans out to, such as a second hosting provider.
    Each remote port yields its own local service.
    """
    provider: str = Field(min_length=1)
    host: str = Field(min_length=1)
    ports: List[str] = Field(min_length=1)
    obfuscate: bool = False
    base_port: Optional[int] = Field(default=None, ge=1, le=65535)

    @field_validator('ports', mode='before')
    @classmethod
    def coerce_numbers(cls, value):
        return _number_to_str(value)


class ClientNode(BaseModel):
    """
    One local shadowsocks entry point and the remote server it forwards to.
    With kcp enabled, traffic goes through a local kcptun client first.
    """
    name: str = Field(min_length=1)
    port: str = Field(min_length=1)
    kcp: bool = False
    remote_ip: str = Field(min_length=1)
    remote_port: str = Field(min_length=1)
    key: str = Field(min_length=1)
    endpoints: List[RemoteEndpoint] = []

    @field_validator('port', 'remote_port', 'key', mode='before')
    @classmethod
    def coerce_numbers(cls, value):
        return _number_to_str(value)


class FleetConfig(BaseModel):
    """
    Root of the fleet definition file.
    """
    image: str = DEFAULT_IMAGE
    servers: List[ServerNode] = []
    clients: List[ClientNode] = []


class GeneratorSettings(BaseModel):
    """
    Options that shape manifest generation for one run.
    """
    image: str = DEFAULT_IMAGE
    backup_ports: bool = True
    allow_duplicates: bool = False
    check_ports: bool = False
