import argparse
import os
import sys
from typing import List, Optional

import aws_cdk as cdk
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from ..stack.stack import StackApp, StackOptionFn, with_caller_identity, with_credentials, with_tags
from .instances import Instances
from .provision_config import FleetConfig


def stack_option_fns(config: FleetConfig, caller_identity: bool) -> List[StackOptionFn]:
    fns = [with_tags(config.tags)]

    if config.account is not None and config.region is not None:
        fns.append(with_credentials(config.account, config.region))
    elif config.account is not None or config.region is not None:
        logger.warning("Fleet file must set account and region together, falling back to environment")

    if caller_identity:
        fns.append(with_caller_identity())

    return fns


def synth_fleet(config: FleetConfig, output_dir: Optional[str] = None, caller_identity: bool = False):
    app = StackApp.new(cdk.App(outdir=output_dir))
    app.set_stack(config.stack_name, *stack_option_fns(config, caller_identity))

    instances = Instances.new(app.get_stack(), *config.instance_option_fns())
    logger.info(f"Plan {config.total_instances} instances with prefix {config.name_prefix}")

    return app.deploy_resources(instances)


def make_parser():
    parser = argparse.ArgumentParser(description="Synthesize an EC2 fleet described in a TOML file")
    parser.add_argument(
        "-c", "--fleet-config",
        type=str,
        default="./fleet.toml",
        help="fleet description file"
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=str,
        default=None,
        help="cloud assembly directory, defaults to CDK_OUTDIR or cdk.out"
    )
    parser.add_argument(
        "--caller-identity",
        action="store_true",
        help="fill missing account/region from the active AWS profile"
    )
    return parser


if __name__ == "__main__":
    parser = make_parser()
    args = parser.parse_args()

    load_dotenv()

    from utils.logger import configure_logger
    configure_logger(os.getenv("CDKER_LOG_LEVEL", "INFO"))

    try:
        config = FleetConfig.load(args.fleet_config)
    except FileNotFoundError:
        logger.error(f"{args.fleet_config} not found, aborting")
        sys.exit(1)
    except ValidationError as e:
        logger.error(f"Invalid fleet file {args.fleet_config}: {e}")
        sys.exit(1)

    synth_fleet(config, args.output_dir, args.caller_identity)
