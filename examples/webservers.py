"""Two public web servers behind one security group, synthesized with cdker"""

from dotenv import load_dotenv

from cdker import (
    EBSVolumeType,
    InstanceClass,
    InstanceSize,
    InstanceSpec,
    Instances,
    SecurityGroupPeer,
    SecurityGroupPort,
    SecurityGroupSpec,
    StackApp,
    StorageSpec,
    SubnetType,
    with_credentials,
    with_instance_specs,
    with_name_prefix,
    with_ssh_key,
)
from utils.logger import configure_logger


def web_servers(app: StackApp) -> Instances:
    # default image is ubuntu 20.04 in the default VPC
    web_server = InstanceSpec(
        instance_class=InstanceClass.T3,
        instance_size=InstanceSize.SMALL,
        subnet_type=SubnetType.PUBLIC,
        associate_public_ip=True,
        storage_specs=[
            StorageSpec(size=30, name="/dev/sdf", delete_on_termination=True, volume_type=EBSVolumeType.GP2, encrypted=False),
        ],
        security_group_specs=[
            SecurityGroupSpec(name="http", peer=SecurityGroupPeer.any_ipv4(), port=SecurityGroupPort.tcp(80)),
            SecurityGroupSpec(name="https", peer=SecurityGroupPeer.any_ipv4(), port=SecurityGroupPort.tcp(443)),
        ],
        bash_user_data=[
            "apt-get update -y",
            "apt-get install -y nginx",
        ],
    )

    return Instances.new(
        app.get_stack(),
        with_name_prefix("example"),
        # already imported in the account, referenced by name only
        with_ssh_key("devops"),
        with_instance_specs(web_server.clone(2)),
    )


def main():
    load_dotenv()
    configure_logger()

    app = StackApp.new().set_stack("example-stack", with_credentials("123456789012", "eu-west-1"))
    app.deploy_resources(web_servers(app))


if __name__ == "__main__":
    main()
