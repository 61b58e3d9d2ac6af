from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


class InstanceClass(Enum):
    T2 = "t2"
    T3 = "t3"
    T3A = "t3a"
    M5 = "m5"
    M6I = "m6i"
    C5 = "c5"
    R5 = "r5"


class InstanceSize(Enum):
    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"
    XLARGE2 = "2xlarge"


class SubnetType(Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    PRIVATE_ISOLATED = "private-isolated"


class EBSVolumeType(Enum):
    GP2 = "gp2"
    GP3 = "gp3"
    STANDARD = "standard"
    IO1 = "io1"
    IO2 = "io2"


class AMIType(Enum):
    UBUNTU_20 = "ubuntu-20.04"
    UBUNTU_22 = "ubuntu-22.04"
    AMAZON_LINUX_2023 = "al2023"


class PeerKind(Enum):
    ANY_IPV4 = "any-ipv4"
    ANY_IPV6 = "any-ipv6"
    IPV4 = "ipv4"
    IPV6 = "ipv6"


class PortProtocol(Enum):
    TCP = "tcp"
    UDP = "udp"
    ALL_TRAFFIC = "all"


@dataclass(frozen=True)
class SecurityGroupPeer:
    kind: PeerKind
    cidr: Optional[str] = None

    @classmethod
    def any_ipv4(cls) -> 'SecurityGroupPeer':
        return cls(PeerKind.ANY_IPV4)

    @classmethod
    def any_ipv6(cls) -> 'SecurityGroupPeer':
        return cls(PeerKind.ANY_IPV6)

    @classmethod
    def ipv4(cls, cidr: str) -> 'SecurityGroupPeer':
        return cls(PeerKind.IPV4, cidr)

    @classmethod
    def ipv6(cls, cidr: str) -> 'SecurityGroupPeer':
        return cls(PeerKind.IPV6, cidr)


@dataclass(frozen=True)
class SecurityGroupPort:
    protocol: PortProtocol
    from_port: Optional[int] = None
    to_port: Optional[int] = None

    @classmethod
    def tcp(cls, port: int) -> 'SecurityGroupPort':
        return cls(PortProtocol.TCP, port, port)

    @classmethod
    def tcp_range(cls, from_port: int, to_port: int) -> 'SecurityGroupPort':
        return cls(PortProtocol.TCP, from_port, to_port)

    @classmethod
    def udp(cls, port: int) -> 'SecurityGroupPort':
        return cls(PortProtocol.UDP, port, port)

    @classmethod
    def udp_range(cls, from_port: int, to_port: int) -> 'SecurityGroupPort':
        return cls(PortProtocol.UDP, from_port, to_port)

    @classmethod
    def all_tcp(cls) -> 'SecurityGroupPort':
        return cls(PortProtocol.TCP)

    @classmethod
    def all_traffic(cls) -> 'SecurityGroupPort':
        return cls(PortProtocol.ALL_TRAFFIC)


@dataclass
class StorageSpec:
    size: int
    name: str
    delete_on_termination: bool = True
    volume_type: Optional[EBSVolumeType] = None
    encrypted: bool = False
    # required by CloudFormation for io1/io2
    iops: Optional[int] = None


@dataclass
class SecurityGroupSpec:
    name: str
    peer: SecurityGroupPeer
    port: SecurityGroupPort
    allow_from_self: bool = False


@dataclass
class SSHKeySpecs:
    name: str
    public_key: Optional[str] = None


@dataclass
class VPCSpec:
    vpc_id: Optional[str] = None
    name: Optional[str] = None
    region: Optional[str] = None
    is_default: Optional[bool] = None


@dataclass
class InstanceSpec:
    instance_class: InstanceClass
    instance_size: InstanceSize
    subnet_type: SubnetType
    ami: Optional[AMIType] = None
    vpc: Optional[VPCSpec] = None
    associate_public_ip: bool = False
    storage_specs: List[StorageSpec] = field(default_factory=list)
    security_group_specs: List[SecurityGroupSpec] = field(default_factory=list)
    bash_user_data: List[str] = field(default_factory=list)
    user_data_causes_replacement: bool = False

    def clone(self, n: int) -> List['InstanceSpec']:
        """Return ``n`` independent copies of this spec.

        Nested lists and records are copied per clone, so changing one
        clone's storage or rules never leaks into another. Peers and ports
        are frozen and shared.
        """
        if n < 0:
            raise ValueError(f"clone count must be non-negative, got {n}")

        return [self._copy() for _ in range(n)]

    def _copy(self) -> 'InstanceSpec':
        return replace(
            self,
            vpc=replace(self.vpc) if self.vpc is not None else None,
            storage_specs=[replace(s) for s in self.storage_specs],
            security_group_specs=[replace(s) for s in self.security_group_specs],
            bash_user_data=list(self.bash_user_data),
        )


@dataclass(frozen=True)
class IngressRuleInfo:
    description: str
    port: SecurityGroupPort
    # None when the rule admits traffic from the group itself
    peer: Optional[SecurityGroupPeer] = None

    @property
    def from_self(self) -> bool:
        return self.peer is None
