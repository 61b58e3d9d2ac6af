import ipaddress
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
import tomllib

from .instance_config import DEFAULT_DEVICE_NAME, DEFAULT_INSTANCE_NAME_PREFIX, OptionFn, with_instance_specs, with_name_prefix, with_ssh_key
from .types import (
    AMIType,
    EBSVolumeType,
    InstanceClass,
    InstanceSize,
    InstanceSpec,
    PortProtocol,
    SecurityGroupPeer,
    SecurityGroupPort,
    SecurityGroupSpec,
    StorageSpec,
    SubnetType,
    VPCSpec,
)


class StorageConfig(BaseModel):
    size: int = Field(gt=0)
    name: str = DEFAULT_DEVICE_NAME
    delete_on_termination: bool = True
    volume_type: Optional[EBSVolumeType] = None
    encrypted: bool = False
    iops: Optional[int] = None

    def to_spec(self) -> StorageSpec:
        return StorageSpec(**self.model_dump())


class SecurityGroupRuleConfig(BaseModel):
    name: str
    # "any-ipv4", "any-ipv6" or a CIDR block
    peer: str = "any-ipv4"
    protocol: PortProtocol = PortProtocol.TCP
    port: Optional[int] = None
    from_port: Optional[int] = None
    to_port: Optional[int] = None
    allow_from_self: bool = False

    @field_validator("peer")
    @classmethod
    def _check_peer(cls, v: str) -> str:
        if v not in ("any-ipv4", "any-ipv6"):
            ipaddress.ip_network(v, strict=False)
        return v

    @model_validator(mode="after")
    def _check_ports(self):
        if self.port is not None and (self.from_port is not None or self.to_port is not None):
            raise ValueError(f"rule {self.name}: use either port or from_port/to_port")
        if self.protocol == PortProtocol.ALL_TRAFFIC and (self.port is not None or self.from_port is not None or self.to_port is not None):
            raise ValueError(f"rule {self.name}: protocol all takes no port")
        if self.to_port is not None and self.from_port is None:
            raise ValueError(f"rule {self.name}: to_port needs from_port")
        if self.from_port is not None and self.to_port is not None and self.from_port > self.to_port:
            raise ValueError(f"rule {self.name}: from_port {self.from_port} is above to_port {self.to_port}")
        return self

    def to_peer(self) -> SecurityGroupPeer:
        if self.peer == "any-ipv4":
            return SecurityGroupPeer.any_ipv4()
        elif self.peer == "any-ipv6":
            return SecurityGroupPeer.any_ipv6()
        elif ipaddress.ip_network(self.peer, strict=False).version == 6:
            return SecurityGroupPeer.ipv6(self.peer)
        else:
            return SecurityGroupPeer.ipv4(self.peer)

    def to_port_spec(self) -> SecurityGroupPort:
        if self.protocol == PortProtocol.ALL_TRAFFIC:
            return SecurityGroupPort.all_traffic()

        from_port = self.port if self.port is not None else self.from_port
        to_port = self.port if self.port is not None else (self.to_port if self.to_port is not None else from_port)
        return SecurityGroupPort(self.protocol, from_port, to_port)

    def to_spec(self) -> SecurityGroupSpec:
        return SecurityGroupSpec(name=self.name, peer=self.to_peer(), port=self.to_port_spec(), allow_from_self=self.allow_from_self)


class VpcConfig(BaseModel):
    vpc_id: Optional[str] = None
    name: Optional[str] = None
    region: Optional[str] = None
    is_default: Optional[bool] = None

    def to_spec(self) -> VPCSpec:
        return VPCSpec(**self.model_dump())


class InstanceGroupConfig(BaseModel):
    instance_class: InstanceClass
    instance_size: InstanceSize
    subnet_type: SubnetType = SubnetType.PUBLIC
    count: int = Field(default=1, ge=0)
    ami: Optional[AMIType] = None
    vpc: Optional[VpcConfig] = None
    associate_public_ip: bool = False
    storage: List[StorageConfig] = []
    security_groups: List[SecurityGroupRuleConfig] = []
    bash_user_data: List[str] = []
    user_data_causes_replacement: bool = False

    def to_spec(self) -> InstanceSpec:
        return InstanceSpec(
            instance_class=self.instance_class,
            instance_size=self.instance_size,
            subnet_type=self.subnet_type,
            ami=self.ami,
            vpc=self.vpc.to_spec() if self.vpc is not None else None,
            associate_public_ip=self.associate_public_ip,
            storage_specs=[s.to_spec() for s in self.storage],
            security_group_specs=[r.to_spec() for r in self.security_groups],
            bash_user_data=list(self.bash_user_data),
            user_data_causes_replacement=self.user_data_causes_replacement,
        )


class SSHKeyConfig(BaseModel):
    name: str
    public_key: Optional[str] = None
    public_key_path: Optional[str] = None

    @model_validator(mode="after")
    def _check_source(self):
        if self.public_key is not None and self.public_key_path is not None:
            raise ValueError(f"ssh key {self.name}: use either public_key or public_key_path")
        return self

    def get_public_key(self) -> Optional[str]:
        if self.public_key_path is not None:
            return Path(self.public_key_path).expanduser().read_text().strip()
        return self.public_key


class FleetConfig(BaseModel):
    stack_name: str
    name_prefix: str = DEFAULT_INSTANCE_NAME_PREFIX
    account: Optional[str] = None
    region: Optional[str] = None
    tags: Dict[str, str] = {}
    ssh_key: Optional[SSHKeyConfig] = None
    instances: List[InstanceGroupConfig] = []

    @property
    def total_instances(self):
        return sum([group.count for group in self.instances])

    @classmethod
    def load(cls, path: str) -> 'FleetConfig':
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return cls(**data)

    def to_instance_specs(self) -> List[InstanceSpec]:
        specs = []
        for group in self.instances:
            specs.extend(group.to_spec().clone(group.count))
        return specs

    def instance_option_fns(self) -> List[OptionFn]:
        fns = [with_name_prefix(self.name_prefix), with_instance_specs(self.to_instance_specs())]
        if self.ssh_key is not None:
            fns.append(with_ssh_key(self.ssh_key.name, self.ssh_key.get_public_key()))
        return fns
