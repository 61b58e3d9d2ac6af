from typing import Optional

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ..instance.types import SSHKeySpecs


def import_key_pair(scope: Construct, key: SSHKeySpecs) -> Optional[ec2.CfnKeyPair]:
    """Create a key pair resource from the public key material, if any.

    Without material the name refers to a key that already exists in the
    account and nothing is created.
    """
    if not key.public_key:
        return None

    return ec2.CfnKeyPair(scope, key.name, key_name=key.name, public_key_material=key.public_key)


def reference_key_pair(scope: Construct, construct_id: str, key_name: str) -> ec2.IKeyPair:
    return ec2.KeyPair.from_key_pair_name(scope, construct_id, key_name)
