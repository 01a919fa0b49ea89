import pytest
from sscompose.BUILDERS.service_translator import ServiceTranslator
from sscompose.MODELS.fleet_config import ServerNode, ClientNode, RemoteEndpoint
from sscompose.UTILS.exceptions import ConfigError

KEY = "s3cr3t-key"


def make_client(**overrides):
    fields = dict(name="client", port="1080", kcp=False, remote_ip="1.2.3.4", remote_port="9000", key=KEY)
    fields.update(overrides)
    return ClientNode(**fields)


class TestServerTranslation:
    """Tests for server node translation."""

    def test_primary_port_only_when_backups_disabled(self):
        translator = ServiceTranslator(image="img", backup_ports=False)
        node = ServerNode(name="server-0", port="9000", backup_ports=["2047"], key=KEY)
        service = translator.translate_server(node, "net")

        assert service.ports == ["9000:9000", "9000:9000/udp"]
        assert service.command.count(KEY) == 2
        assert service.container_name == "server-0"
        assert service.image == "img"
        assert service.networks == ["net"]
        assert service.restart == "always"
        assert service.environment == {}

    def test_backup_ports_follow_primary_in_order(self):
        translator = ServiceTranslator(backup_ports=True)
        node = ServerNode(name="server-0", port="9000", backup_ports=["2047", "3047"], key=KEY)
        service = translator.translate_server(node, "net")

        assert service.ports == [
            "9000:9000", "9000:9000/udp",
            "2047:9000", "2047:9000/udp",
            "3047:9000", "3047:9000/udp",
        ]

    def test_command_is_compatible_with_image(self):
        service = ServiceTranslator().translate_server(
            ServerNode(name="s", port="9000", key="k"), "net"
        )
        assert service.command == (
            '-m "ss-server" -s "-s 0.0.0.0 -p 9000 -m aes-256-cfb -k k --fast-open" '
            '-x -e "kcpserver" -k "-t 127.0.0.1:9000 -l :9000 --mode fast2 --key k --crypt aes"'
        )


class TestClientTranslation:
    """Tests for client node translation."""

    def test_plain_client_targets_remote_directly(self):
        service = ServiceTranslator().translate_client(make_client(), "net")

        assert service.ports == ["1080:1080"]
        assert service.command == ""
        assert service.environment == {
            "SS_MODULE": "ss-local",
            "SS_CONFIG": f"-s 1.2.3.4 -p 9000 -b 0.0.0.0 -l 1080 -m aes-256-cfb -k {KEY}",
        }
        assert not any(k.startswith("KCP_") for k in service.environment)

    def test_kcp_client_goes_through_local_tunnel(self):
        service = ServiceTranslator().translate_client(make_client(kcp=True), "net")
        env = service.environment

        assert env["SS_CONFIG"] == f"-s 127.0.0.1 -p 2080 -b 0.0.0.0 -l 1080 -m aes-256-cfb -k {KEY}"
        assert "1.2.3.4" not in env["SS_CONFIG"]
        assert env["KCP_FLAG"] == "true"
        assert env["KCP_MODULE"] == "kcpclient"
        assert env["KCP_CONFIG"] == f"-r 1.2.3.4:9000 -l :2080 --mode fast2 --key {KEY} --crypt aes"

    def test_container_name_suffixes(self):
        translator = ServiceTranslator()
        node = make_client(name="office")

        assert translator.translate_client(node, "net").container_name == "office"
        assert translator.translate_client(node, "net", suffix_port=True).container_name == "office-1080"
        named = translator.translate_client(node, "net", provider="linode", local_port="1090", suffix_port=True)
        assert named.container_name == "office-linode-1090"
        assert named.ports == ["1090:1080"]

    def test_obfuscate_override_beats_node_setting(self):
        service = ServiceTranslator().translate_client(make_client(kcp=True), "net", obfuscate=False)
        assert "KCP_CONFIG" not in service.environment

    def test_missing_key_is_config_error(self):
        node = make_client().model_copy(update={"key": ""})
        with pytest.raises(ConfigError):
            ServiceTranslator().translate_client(node, "net")


class TestClientFanOut:
    """Tests for multi-endpoint client fan-out."""

    def test_endpoints_get_sequential_local_ports(self):
        node = make_client(endpoints=[
            RemoteEndpoint(provider="qingcloud", host="5.6.7.8", ports=["9000"], obfuscate=False),
            RemoteEndpoint(provider="linode", host="9.9.9.9", ports=["2047", "3047"], obfuscate=True),
        ])
        services = ServiceTranslator().translate_client_fleet(node, "net")

        assert [s.container_name for s in services] == [
            "client", "client-qingcloud-1081", "client-linode-1082", "client-linode-1083",
        ]
        assert [s.ports[0] for s in services] == ["1080:1080", "1081:1080", "1082:1080", "1083:1080"]
        assert "KCP_CONFIG" not in services[1].environment
        assert services[2].environment["KCP_CONFIG"].startswith("-r 9.9.9.9:2047 ")
        assert services[3].environment["KCP_CONFIG"].startswith("-r 9.9.9.9:3047 ")

    def test_endpoint_base_port(self):
        node = make_client(endpoints=[
            RemoteEndpoint(provider="linode", host="9.9.9.9", ports=["2047", "3047"], base_port=1100),
            RemoteEndpoint(provider="qingcloud", host="5.6.7.8", ports=["9000"]),
        ])
        services = ServiceTranslator().translate_client_fleet(node, "net", suffix_port=True)

        assert [s.container_name for s in services] == [
            "client-1080", "client-linode-1100", "client-linode-1101", "client-qingcloud-1102",
        ]

    def test_non_numeric_port_with_endpoints(self):
        node = make_client(port="abc", endpoints=[
            RemoteEndpoint(provider="linode", host="9.9.9.9", ports=["2047"]),
        ])
        with pytest.raises(ConfigError):
            ServiceTranslator().translate_client_fleet(node, "net")


class TestPortBounds:
    """Tests for host port validation."""

    def test_fan_out_past_highest_port(self):
        node = make_client(port="65535", endpoints=[
            RemoteEndpoint(provider="linode", host="9.9.9.9", ports=["2047"]),
        ])
        with pytest.raises(ConfigError):
            ServiceTranslator().translate_client_fleet(node, "net")

    def test_fan_out_running_past_highest_port_from_base(self):
        node = make_client(endpoints=[
            RemoteEndpoint(provider="linode", host="9.9.9.9", ports=["1", "2"], base_port=65535),
        ])
        with pytest.raises(ConfigError):
            ServiceTranslator().translate_client_fleet(node, "net")

    def test_negative_base_port_rejected(self):
        with pytest.raises(ValueError):
            RemoteEndpoint(provider="linode", host="9.9.9.9", ports=["2047"], base_port=-1)

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_invalid_client_port(self, port):
        with pytest.raises(ConfigError):
            ServiceTranslator().translate_client(make_client(port=port), "net")

    @pytest.mark.parametrize("port,backups", [("abc", []), ("9000", ["0"]), ("9000", ["x"])])
    def test_invalid_server_ports(self, port, backups):
        node = ServerNode(name="s", port=port, backup_ports=backups, key=KEY)
        with pytest.raises(ConfigError):
            ServiceTranslator().translate_server(node, "net")

    def test_disabled_backup_ports_are_not_checked(self):
        node = ServerNode(name="s", port="9000", backup_ports=["x"], key=KEY)
        service = ServiceTranslator(backup_ports=False).translate_server(node, "net")
        assert service.ports == ["9000:9000", "9000:9000/udp"]
