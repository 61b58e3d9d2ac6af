from typing import Optional

from aws_cdk import aws_ec2 as ec2

from ..instance.types import AMIType


CANONICAL_OWNER_ID = "099720109477"

UBUNTU_IMAGE_NAMES = {
    AMIType.UBUNTU_20: "ubuntu/images/hvm-ssd/ubuntu-focal-20.04-amd64-server-*",
    AMIType.UBUNTU_22: "ubuntu/images/hvm-ssd/ubuntu-jammy-22.04-amd64-server-*",
}


def lookup_machine_image(ami: Optional[AMIType]) -> ec2.IMachineImage:
    if ami is None:
        ami = AMIType.UBUNTU_20

    if ami in UBUNTU_IMAGE_NAMES:
        return ec2.MachineImage.lookup(
            name=UBUNTU_IMAGE_NAMES[ami],
            owners=[CANONICAL_OWNER_ID],
            filters={'virtualization-type': ['hvm']},
        )
    elif ami == AMIType.AMAZON_LINUX_2023:
        return ec2.MachineImage.latest_amazon_linux2023()
    else:
        raise ValueError(f"Unsupported AMI type {ami}")
