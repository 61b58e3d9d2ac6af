from pathlib import Path

from pydantic import ValidationError
import pytest

from cdker.aws_provider.security_group import as_port
from cdker.instance.instance_config import build_options
from cdker.instance.provision_config import FleetConfig, SecurityGroupRuleConfig
from cdker.instance.types import (
    EBSVolumeType,
    InstanceClass,
    InstanceSize,
    PeerKind,
    PortProtocol,
    SecurityGroupPort,
    SubnetType,
)


FLEET_TOML = """
stack_name = "example-stack"
name_prefix = "example"
account = "123456789012"
region = "eu-west-1"

[ssh_key]
name = "devops"

[[instances]]
instance_class = "t3"
instance_size = "small"
subnet_type = "public"
count = 2
associate_public_ip = true
bash_user_data = ["apt-get update -y"]

[[instances.storage]]
size = 30
name = "/dev/sdf"
volume_type = "gp2"

[[instances.security_groups]]
name = "http"
port = 80

[[instances.security_groups]]
name = "https"
peer = "10.0.0.0/8"
port = 443

[[instances]]
instance_class = "m5"
instance_size = "2xlarge"
subnet_type = "private"

[instances.vpc]
name = "shared"
"""


def _write(tmp_path: Path, content: str) -> str:
    path = tmp_path / "fleet.toml"
    path.write_text(content)
    return str(path)


def test_load_missing_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        FleetConfig.load(str(tmp_path / "missing.toml"))


def test_load_and_expand_counts(tmp_path: Path):
    cfg = FleetConfig.load(_write(tmp_path, FLEET_TOML))

    assert cfg.total_instances == 3
    specs = cfg.to_instance_specs()
    assert len(specs) == 3

    web_a, web_b, worker = specs
    assert web_a == web_b
    assert web_a is not web_b
    assert web_a.instance_class == InstanceClass.T3
    assert web_a.instance_size == InstanceSize.SMALL
    assert web_a.associate_public_ip is True
    assert web_a.storage_specs[0].size == 30
    assert web_a.storage_specs[0].volume_type == EBSVolumeType.GP2
    assert web_a.bash_user_data == ["apt-get update -y"]

    http, https = web_a.security_group_specs
    assert http.peer.kind == PeerKind.ANY_IPV4
    assert http.port == SecurityGroupPort.tcp(80)
    assert https.peer.kind == PeerKind.IPV4
    assert https.peer.cidr == "10.0.0.0/8"

    assert worker.instance_size == InstanceSize.XLARGE2
    assert worker.subnet_type == SubnetType.PRIVATE
    assert worker.vpc.name == "shared"
    assert worker.storage_specs == []


def test_instance_option_fns(tmp_path: Path):
    cfg = FleetConfig.load(_write(tmp_path, FLEET_TOML))
    opts = build_options(*cfg.instance_option_fns())

    assert opts.instance_name_prefix == "example"
    assert opts.ssh_key_specs.name == "devops"
    assert opts.ssh_key_specs.public_key is None
    assert len(opts.instance_specs) == 3


def test_public_key_path_is_read(tmp_path: Path):
    key_file = tmp_path / "id.pub"
    key_file.write_text("ssh-ed25519 AAAAexample user\n")

    cfg = FleetConfig(stack_name="s", ssh_key={"name": "k", "public_key_path": str(key_file)})
    assert cfg.ssh_key.get_public_key() == "ssh-ed25519 AAAAexample user"


def test_unknown_instance_class_rejected():
    with pytest.raises(ValidationError):
        FleetConfig(stack_name="s", instances=[{"instance_class": "z9", "instance_size": "small"}])


def test_negative_count_rejected():
    with pytest.raises(ValidationError):
        FleetConfig(stack_name="s", instances=[{"instance_class": "t3", "instance_size": "small", "count": -1}])


def test_invalid_peer_rejected():
    with pytest.raises(ValidationError):
        SecurityGroupRuleConfig(name="bad", peer="not-a-cidr", port=22)


def test_port_and_range_are_exclusive():
    with pytest.raises(ValidationError):
        SecurityGroupRuleConfig(name="bad", port=22, from_port=20, to_port=30)


def test_rule_port_variants():
    assert SecurityGroupRuleConfig(name="r", from_port=8000, to_port=8080).to_port_spec() == SecurityGroupPort.tcp_range(8000, 8080)
    assert SecurityGroupRuleConfig(name="r", protocol="udp", port=53).to_port_spec() == SecurityGroupPort.udp(53)
    assert SecurityGroupRuleConfig(name="r", protocol="all").to_port_spec().protocol == PortProtocol.ALL_TRAFFIC
    assert SecurityGroupRuleConfig(name="r", peer="::/0", port=22).to_peer().kind == PeerKind.IPV6
    assert SecurityGroupRuleConfig(name="r", peer="any-ipv6", port=22).to_peer().kind == PeerKind.ANY_IPV6


def test_to_port_without_from_port_rejected():
    with pytest.raises(ValidationError):
        SecurityGroupRuleConfig(name="web", to_port=8080)


def test_reversed_port_range_rejected():
    with pytest.raises(ValidationError):
        SecurityGroupRuleConfig(name="web", from_port=8080, to_port=8000)


def test_all_traffic_with_port_rejected():
    with pytest.raises(ValidationError):
        SecurityGroupRuleConfig(name="any", protocol="all", port=22)
    with pytest.raises(ValidationError):
        SecurityGroupRuleConfig(name="any", protocol="all", from_port=20, to_port=30)


def test_from_port_alone_is_a_single_port():
    assert SecurityGroupRuleConfig(name="web", from_port=8080).to_port_spec() == SecurityGroupPort.tcp(8080)


def test_port_without_start_is_not_widened():
    with pytest.raises(ValueError):
        as_port(SecurityGroupPort(PortProtocol.TCP, None, 8080))
