from typing import List, Optional

from aws_cdk import CfnOutput
from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ..instance.types import EBSVolumeType, InstanceClass, InstanceSize, InstanceSpec, StorageSpec, SubnetType


_INSTANCE_CLASSES = {
    InstanceClass.T2: ec2.InstanceClass.T2,
    InstanceClass.T3: ec2.InstanceClass.T3,
    InstanceClass.T3A: ec2.InstanceClass.T3A,
    InstanceClass.M5: ec2.InstanceClass.M5,
    InstanceClass.M6I: ec2.InstanceClass.M6I,
    InstanceClass.C5: ec2.InstanceClass.C5,
    InstanceClass.R5: ec2.InstanceClass.R5,
}

_INSTANCE_SIZES = {
    InstanceSize.MICRO: ec2.InstanceSize.MICRO,
    InstanceSize.SMALL: ec2.InstanceSize.SMALL,
    InstanceSize.MEDIUM: ec2.InstanceSize.MEDIUM,
    InstanceSize.LARGE: ec2.InstanceSize.LARGE,
    InstanceSize.XLARGE: ec2.InstanceSize.XLARGE,
    InstanceSize.XLARGE2: ec2.InstanceSize.XLARGE2,
}

_SUBNET_TYPES = {
    SubnetType.PUBLIC: ec2.SubnetType.PUBLIC,
    SubnetType.PRIVATE: ec2.SubnetType.PRIVATE_WITH_EGRESS,
    SubnetType.PRIVATE_ISOLATED: ec2.SubnetType.PRIVATE_ISOLATED,
}

_VOLUME_TYPES = {
    EBSVolumeType.GP2: ec2.EbsDeviceVolumeType.GP2,
    EBSVolumeType.GP3: ec2.EbsDeviceVolumeType.GP3,
    EBSVolumeType.STANDARD: ec2.EbsDeviceVolumeType.STANDARD,
    EBSVolumeType.IO1: ec2.EbsDeviceVolumeType.IO1,
    EBSVolumeType.IO2: ec2.EbsDeviceVolumeType.IO2,
}


def as_instance_type(instance_class: InstanceClass, instance_size: InstanceSize) -> ec2.InstanceType:
    return ec2.InstanceType.of(_INSTANCE_CLASSES[instance_class], _INSTANCE_SIZES[instance_size])


def as_subnet_type(subnet_type: SubnetType) -> ec2.SubnetType:
    return _SUBNET_TYPES[subnet_type]


def as_volume_type(volume_type: Optional[EBSVolumeType]) -> Optional[ec2.EbsDeviceVolumeType]:
    if volume_type is None:
        return None
    return _VOLUME_TYPES[volume_type]


def as_block_device(storage: StorageSpec) -> ec2.BlockDevice:
    return ec2.BlockDevice(
        device_name=storage.name,
        volume=ec2.BlockDeviceVolume.ebs(
            storage.size,
            delete_on_termination=storage.delete_on_termination,
            volume_type=as_volume_type(storage.volume_type),
            encrypted=storage.encrypted,
            iops=storage.iops,
        ),
    )


def get_block_devices(spec: InstanceSpec) -> List[ec2.BlockDevice]:
    return [as_block_device(storage) for storage in spec.storage_specs]


def build_user_data(commands: List[str]) -> Optional[ec2.MultipartUserData]:
    """Wrap the boot commands into a single shell-script part.

    Returns None when there is nothing but blank lines to run, so the
    instance keeps the image default.
    """
    commands = [cmd for cmd in commands if cmd.strip()]
    if not commands:
        return None

    script = ec2.UserData.for_linux()
    script.add_commands(*commands)

    user_data = ec2.MultipartUserData()
    user_data.add_user_data_part(script, ec2.MultipartBody.SHELL_SCRIPT, True)
    return user_data


def create_instance(
    scope: Construct,
    name: str,
    spec: InstanceSpec,
    *,
    vpc: ec2.IVpc,
    machine_image: ec2.IMachineImage,
    security_group: ec2.ISecurityGroup,
    key_pair: Optional[ec2.IKeyPair],
) -> ec2.Instance:
    user_data = build_user_data(spec.bash_user_data)

    return ec2.Instance(
        scope,
        name,
        instance_type=as_instance_type(spec.instance_class, spec.instance_size),
        machine_image=machine_image,
        vpc=vpc,
        associate_public_ip_address=spec.associate_public_ip,
        key_pair=key_pair,
        instance_name=name,
        propagate_tags_to_volume_on_creation=True,
        security_group=security_group,
        ssm_session_permissions=True,
        vpc_subnets=ec2.SubnetSelection(subnet_type=as_subnet_type(spec.subnet_type)),
        block_devices=get_block_devices(spec),
        user_data=user_data,
        user_data_causes_replacement=spec.user_data_causes_replacement if user_data is not None else None,
    )


def add_ip_outputs(scope: Construct, name_prefix: str, instances: List[ec2.Instance]) -> List[CfnOutput]:
    outputs = []

    for ind, instance in enumerate(instances):
        outputs.append(CfnOutput(
            scope,
            f"{name_prefix}-{ind}-public-ip",
            value=instance.instance_public_ip,
            description="instance public ip address",
            export_name=f"{name_prefix}-{ind}-pub",
        ))

    for ind, instance in enumerate(instances):
        outputs.append(CfnOutput(
            scope,
            f"{name_prefix}-{ind}-private-ip",
            value=instance.instance_private_ip,
            description="instance private ip address",
            export_name=f"{name_prefix}-{ind}-priv",
        ))

    return outputs
