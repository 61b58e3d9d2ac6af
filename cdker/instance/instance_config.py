from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .types import (
    AMIType,
    InstanceClass,
    InstanceSize,
    InstanceSpec,
    SSHKeySpecs,
    SecurityGroupPeer,
    SecurityGroupPort,
    SecurityGroupSpec,
    StorageSpec,
    SubnetType,
)


DEFAULT_INSTANCE_NAME_PREFIX = "ec2-instance"
DEFAULT_SSH_PORT = 22
DEFAULT_DISK_SIZE = 10
DEFAULT_DEVICE_NAME = "/dev/sdf"


@dataclass
class InstancesOptions:
    instance_name_prefix: str = DEFAULT_INSTANCE_NAME_PREFIX
    ssh_key_specs: Optional[SSHKeySpecs] = None
    instance_specs: List[InstanceSpec] = field(default_factory=list)


OptionFn = Callable[[InstancesOptions], None]


def default_instance_spec() -> InstanceSpec:
    # one small public ubuntu host in the default VPC, ssh open
    return InstanceSpec(
        instance_class=InstanceClass.T3,
        instance_size=InstanceSize.SMALL,
        subnet_type=SubnetType.PUBLIC,
        ami=AMIType.UBUNTU_20,
        vpc=None,
        associate_public_ip=False,
        storage_specs=[
            StorageSpec(size=DEFAULT_DISK_SIZE, name=DEFAULT_DEVICE_NAME, delete_on_termination=True),
        ],
        security_group_specs=[
            SecurityGroupSpec(
                name=f"{DEFAULT_INSTANCE_NAME_PREFIX}-security-group",
                peer=SecurityGroupPeer.any_ipv4(),
                port=SecurityGroupPort.tcp(DEFAULT_SSH_PORT),
                allow_from_self=True,
            ),
        ],
    )


def default_options() -> InstancesOptions:
    return InstancesOptions(instance_specs=[default_instance_spec()])


def build_options(*option_fns: OptionFn) -> InstancesOptions:
    """Fold ``option_fns`` over the defaults; later functions win."""
    opts = default_options()
    for fn in option_fns:
        fn(opts)
    return opts


def with_name_prefix(prefix: str) -> OptionFn:
    def _apply(opts: InstancesOptions):
        opts.instance_name_prefix = prefix
    return _apply


def with_ssh_key(name: str, public_key: Optional[str] = None) -> OptionFn:
    def _apply(opts: InstancesOptions):
        opts.ssh_key_specs = SSHKeySpecs(name=name, public_key=public_key)
    return _apply


def with_instance_specs(specs: List[InstanceSpec]) -> OptionFn:
    def _apply(opts: InstancesOptions):
        opts.instance_specs = list(specs)
    return _apply
