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
Launch lines understood by the mritd/shadowsocks image.

The image's entrypoint takes the shadowsocks module and its flags, and
optionally a kcptun module with its own flags. Inside the container
shadowsocks always listens on 9000 (server) or 1080 (client), and a client
side kcptun tunnel listens on 2080.
"""
from jinja2 import Template

SERVER_PORT = "9000"
CLIENT_PORT = "1080"
KCP_TUNNEL_PORT = "2080"
LOOPBACK = "127.0.0.1"
CIPHER = "aes-256-cfb"
KCP_MODE = "fast2"
KCP_CRYPT = "aes"

SS_SERVER_MODULE = "ss-server"
SS_LOCAL_MODULE = "ss-local"
KCP_SERVER_MODULE = "kcpserver"
KCP_CLIENT_MODULE = "kcpclient"

SERVER_COMMAND_TEMPLATE = Template(
    '-m "{{ ss_module }}" '
    '-s "-s 0.0.0.0 -p {{ server_port }} -m {{ cipher }} -k {{ key }} --fast-open" '
    '-x -e "{{ kcp_module }}" '
    '-k "-t {{ loopback }}:{{ server_port }} -l :{{ server_port }} '
    '--mode {{ mode }} --key {{ key }} --crypt {{ crypt }}"'
)

SS_LOCAL_CONFIG_TEMPLATE = Template(
    '-s {{ host }} -p {{ port }} -b 0.0.0.0 -l {{ client_port }} -m {{ cipher }} -k {{ key }}'
)

KCP_CLIENT_CONFIG_TEMPLATE = Template(
    '-r {{ host }}:{{ port }} -l :{{ tunnel_port }} --mode {{ mode }} --key {{ key }} --crypt {{ crypt }}'
)


def render_server_command(key: str) -> str:
    """
    Command for a server container: ss-server on 9000 plus a kcptun server on
    the same port forwarding to it. The key appears once for each.
    """
    return SERVER_COMMAND_TEMPLATE.render(
        ss_module=SS_SERVER_MODULE,
        kcp_module=KCP_SERVER_MODULE,
        server_port=SERVER_PORT,
        loopback=LOOPBACK,
        cipher=CIPHER,
        mode=KCP_MODE,
        crypt=KCP_CRYPT,
        key=key,
    )


def render_ss_local_config(host: str, port: str, key: str) -> str:
    """
    SS_CONFIG for ss-local pointing at host:port.
    """
    return SS_LOCAL_CONFIG_TEMPLATE.render(
        host=host,
        port=port,
        client_port=CLIENT_PORT,
        cipher=CIPHER,
        key=key,
    )


def render_kcp_client_config(host: str, port: str, key: str) -> str:
    """
    KCP_CONFIG for the kcptun client carrying local 2080 to host:port.
    """
    return KCP_CLIENT_CONFIG_TEMPLATE.render(
        host=host,
        port=port,
        tunnel_port=KCP_TUNNEL_PORT,
        mode=KCP_MODE,
        crypt=KCP_CRYPT,
        key=key,
    )
