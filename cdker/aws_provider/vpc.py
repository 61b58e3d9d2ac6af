from typing import Optional

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ..instance.types import VPCSpec


def as_vpc_lookup_kwargs(vpc_spec: Optional[VPCSpec]) -> dict:
    if vpc_spec is None:
        return dict(is_default=True)

    kwargs = dict()
    if vpc_spec.vpc_id:
        kwargs['vpc_id'] = vpc_spec.vpc_id
    if vpc_spec.name:
        kwargs['vpc_name'] = vpc_spec.name
    if vpc_spec.region:
        kwargs['region'] = vpc_spec.region
    if vpc_spec.is_default is not None:
        kwargs['is_default'] = vpc_spec.is_default

    # an all-empty selector falls back to the default VPC
    if not kwargs:
        kwargs['is_default'] = True

    return kwargs


def lookup_vpc(scope: Construct, construct_id: str, vpc_spec: Optional[VPCSpec]) -> ec2.IVpc:
    return ec2.Vpc.from_lookup(scope, construct_id, **as_vpc_lookup_kwargs(vpc_spec))
