"""
cdker

Declarative EC2 fleets on top of the AWS CDK. Describe instances as plain
data, hand them to ``Instances`` and let ``StackApp`` synthesize the stack.

Usage:
    from cdker import Instances, InstanceSpec, StackApp, with_credentials, with_instance_specs

    app = StackApp.new().set_stack("example-stack", with_credentials("123456789012", "eu-west-1"))
    app.deploy_resources(Instances.new(app.get_stack(), with_instance_specs(specs)))

CLI:
    python -m cdker.instance -c fleet.toml
"""

__version__ = "0.1.0"

from .instance.types import (
    AMIType,
    EBSVolumeType,
    IngressRuleInfo,
    InstanceClass,
    InstanceSize,
    InstanceSpec,
    SSHKeySpecs,
    SecurityGroupPeer,
    SecurityGroupPort,
    SecurityGroupSpec,
    StorageSpec,
    SubnetType,
    VPCSpec,
)
from .instance.instance_config import (
    InstancesOptions,
    default_options,
    with_instance_specs,
    with_name_prefix,
    with_ssh_key,
)
from .instance.instances import Instances
from .instance.provision_config import FleetConfig
from .stack.stack import (
    Deployable,
    StackApp,
    StackSettings,
    with_caller_identity,
    with_credentials,
    with_tags,
)
