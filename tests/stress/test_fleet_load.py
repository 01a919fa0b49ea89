import time
from sscompose.BUILDERS.manifest_assembler import ManifestAssembler
from sscompose.CONVERTERS.to_compose import ComposeConverter
from sscompose.MODELS.fleet_config import GeneratorSettings
from sscompose.PARSERS.fleet_parser import FleetParser


def large_fleet_yaml(count):
    content = "image: test:latest\nservers:\n"
    for i in range(count):
        content += f"  - name: server-{i}\n"
        content += f"    port: {10000 + i}\n"
        content += f"    backup_ports: [{20000 + i}]\n"
        content += f"    key: key-{i}\n"
    content += "clients:\n"
    for i in range(count):
        content += f"  - name: client-{i}\n"
        content += f"    port: {30000 + i}\n"
        content += f"    kcp: {'true' if i % 2 == 0 else 'false'}\n"
        content += f"    remote_ip: 10.0.{i // 256}.{i % 256}\n"
        content += f"    remote_port: {10000 + i}\n"
        content += f"    key: key-{i}\n"
    return content


def test_large_fleet_generation():
    """
    Generate a manifest for 1000 servers and 1000 clients with port checking on.
    """
    fleet = FleetParser().parse_from_string(large_fleet_yaml(1000))

    start_time = time.time()
    manifest = ManifestAssembler(GeneratorSettings(check_ports=True)).assemble_fleet(fleet)
    text = ComposeConverter(manifest).render()
    end_time = time.time()

    print(f"Generated 2000 services in {end_time - start_time:.2f}s")
    assert len(manifest.services) == 2000
    assert len(manifest.networks) == 2
    assert text == ComposeConverter(manifest).render()
    assert end_time - start_time < 10.0
