from typing import List, Optional

from aws_cdk import aws_ec2 as ec2
from constructs import Construct
from loguru import logger

from ..aws_provider.image import lookup_machine_image
from ..aws_provider.instance import add_ip_outputs, create_instance
from ..aws_provider.key_pair import import_key_pair, reference_key_pair
from ..aws_provider.security_group import add_ingress_rule, add_self_ingress_rule, create_security_group
from ..aws_provider.vpc import as_vpc_lookup_kwargs, lookup_vpc
from .instance_config import InstancesOptions, OptionFn, build_options
from .types import AMIType, IngressRuleInfo, InstanceSpec, VPCSpec


class Instances:
    """A fleet of EC2 instances sharing one VPC and one security group.

    Shared resources are resolved lazily on the first spec and reused for
    every later spec. A different ``VPCSpec`` on a later spec is ignored.
    """

    def __init__(self, scope: Construct, opts: InstancesOptions):
        self.scope = scope
        self.opts = opts

        self._instances: List[ec2.Instance] = []
        self._ingress_rules: List[IngressRuleInfo] = []
        self._vpc: Optional[ec2.IVpc] = None
        self._vpc_spec: Optional[VPCSpec] = None
        self._security_group: Optional[ec2.SecurityGroup] = None
        self._key_pair: Optional[ec2.IKeyPair] = None
        self._imported_key: Optional[ec2.CfnKeyPair] = None
        self._deployed = False

    @classmethod
    def new(cls, scope: Construct, *option_fns: OptionFn) -> 'Instances':
        return cls(scope, build_options(*option_fns))

    @property
    def name_prefix(self) -> str:
        return self.opts.instance_name_prefix

    def deploy(self):
        if self._deployed:
            raise RuntimeError(f"Instances {self.name_prefix} already deployed")
        self._deployed = True

        if self.opts.ssh_key_specs is not None:
            self._imported_key = import_key_pair(self.scope, self.opts.ssh_key_specs)
            if self._imported_key is not None:
                logger.info(f"Import KeyPair {self.opts.ssh_key_specs.name}")

        self._deploy_ec2_instances()
        add_ip_outputs(self.scope, self.name_prefix, self._instances)

        logger.success(f"{len(self._instances)} instances of {self.name_prefix} added to {self.scope.node.path}")

    def set_instance_name(self, name: str):
        self._warn_if_deployed("set_instance_name")
        self.opts.instance_name_prefix = name

    def set_instances_spec(self, specs: List[InstanceSpec]):
        self._warn_if_deployed("set_instances_spec")
        self.opts.instance_specs = list(specs)

    def get_instances(self) -> List[ec2.Instance]:
        return list(self._instances)

    def get_ingress_rules(self) -> List[IngressRuleInfo]:
        return list(self._ingress_rules)

    def _warn_if_deployed(self, method: str):
        if self._deployed:
            logger.warning(f"{method} called on {self.name_prefix} after deploy, existing instances are unchanged")

    def _deploy_ec2_instances(self):
        for ind, spec in enumerate(self.opts.instance_specs):
            name = f"{self.name_prefix}-{ind}"
            vpc = self._get_vpc(spec.vpc)

            instance = create_instance(
                self.scope,
                name,
                spec,
                vpc=vpc,
                machine_image=self._get_ami(spec.ami),
                security_group=self._get_security_group(vpc),
                key_pair=self._get_key_pair(),
            )
            if self._imported_key is not None:
                instance.node.add_dependency(self._imported_key)

            logger.info(f"Add instance {name}: {spec.instance_class.value}.{spec.instance_size.value} in {spec.subnet_type.value} subnet")
            self._instances.append(instance)

    def _get_vpc(self, vpc_spec: Optional[VPCSpec]) -> ec2.IVpc:
        if self._vpc is not None:
            if as_vpc_lookup_kwargs(vpc_spec) != as_vpc_lookup_kwargs(self._vpc_spec):
                logger.warning(f"VPC {vpc_spec} ignored, {self.name_prefix} already uses {self._vpc_spec or 'the default VPC'}")
            return self._vpc

        self._vpc_spec = vpc_spec
        self._vpc = lookup_vpc(self.scope, f"{self.name_prefix}-vpc", vpc_spec)
        logger.info(f"Lookup VPC {vpc_spec or 'default'} for {self.name_prefix}")
        return self._vpc

    def _get_ami(self, ami: Optional[AMIType]) -> ec2.IMachineImage:
        return lookup_machine_image(ami)

    def _get_key_pair(self) -> Optional[ec2.IKeyPair]:
        if self.opts.ssh_key_specs is None:
            return None

        if self._key_pair is None:
            self._key_pair = reference_key_pair(self.scope, f"{self.name_prefix}-key-pair", self.opts.ssh_key_specs.name)
        return self._key_pair

    def _get_security_group(self, vpc: ec2.IVpc) -> ec2.SecurityGroup:
        if self._security_group is not None:
            return self._security_group

        security_group_name = f"{self.name_prefix}-secgroup"
        self._security_group = create_security_group(self.scope, security_group_name, vpc, security_group_name)
        logger.info(f"Create Security Group {security_group_name}")

        allow_from_self = False
        for spec in self.opts.instance_specs:
            for ind, rule in enumerate(spec.security_group_specs):
                info = add_ingress_rule(self._security_group, rule, ind)
                logger.debug(f"Add ingress rule {info.description} to {security_group_name}: {rule.peer} {rule.port}")
                self._ingress_rules.append(info)
                allow_from_self = allow_from_self or rule.allow_from_self

        if allow_from_self:
            self._ingress_rules.append(add_self_ingress_rule(self._security_group))
            logger.debug(f"Add ingress rule allow from self to {security_group_name}")

        return self._security_group
