from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ..instance.types import (
    IngressRuleInfo,
    PeerKind,
    PortProtocol,
    SecurityGroupPeer,
    SecurityGroupPort,
    SecurityGroupSpec,
)


ALLOW_FROM_SELF_DESCRIPTION = "allow from self"


def as_peer(peer: SecurityGroupPeer) -> ec2.IPeer:
    if peer.kind == PeerKind.ANY_IPV4:
        return ec2.Peer.any_ipv4()
    elif peer.kind == PeerKind.ANY_IPV6:
        return ec2.Peer.any_ipv6()
    elif peer.kind == PeerKind.IPV4:
        assert peer.cidr is not None
        return ec2.Peer.ipv4(peer.cidr)
    elif peer.kind == PeerKind.IPV6:
        assert peer.cidr is not None
        return ec2.Peer.ipv6(peer.cidr)
    else:
        raise ValueError(f"Unsupported peer kind {peer.kind}")


def as_port(port: SecurityGroupPort) -> ec2.Port:
    if port.from_port is None and port.to_port is not None:
        raise ValueError(f"Port range without start: {port}")

    if port.protocol == PortProtocol.ALL_TRAFFIC:
        return ec2.Port.all_traffic()

    if port.protocol == PortProtocol.TCP:
        if port.from_port is None:
            return ec2.Port.all_tcp()
        if port.to_port is None or port.to_port == port.from_port:
            return ec2.Port.tcp(port.from_port)
        return ec2.Port.tcp_range(port.from_port, port.to_port)

    if port.protocol == PortProtocol.UDP:
        if port.from_port is None:
            return ec2.Port.all_udp()
        if port.to_port is None or port.to_port == port.from_port:
            return ec2.Port.udp(port.from_port)
        return ec2.Port.udp_range(port.from_port, port.to_port)

    raise ValueError(f"Unsupported port protocol {port.protocol}")


def create_security_group(scope: Construct, construct_id: str, vpc: ec2.IVpc, security_group_name: str) -> ec2.SecurityGroup:
    return ec2.SecurityGroup(
        scope,
        construct_id,
        vpc=vpc,
        allow_all_outbound=True,
        allow_all_ipv6_outbound=True,
        description=security_group_name,
        security_group_name=security_group_name,
    )


def add_ingress_rule(security_group: ec2.SecurityGroup, spec: SecurityGroupSpec, index: int) -> IngressRuleInfo:
    description = f"{spec.name}-{index}"
    security_group.add_ingress_rule(as_peer(spec.peer), as_port(spec.port), description)
    return IngressRuleInfo(description=description, port=spec.port, peer=spec.peer)


def add_self_ingress_rule(security_group: ec2.SecurityGroup) -> IngressRuleInfo:
    security_group.add_ingress_rule(security_group, ec2.Port.all_traffic(), ALLOW_FROM_SELF_DESCRIPTION)
    return IngressRuleInfo(description=ALLOW_FROM_SELF_DESCRIPTION, port=SecurityGroupPort.all_traffic())
