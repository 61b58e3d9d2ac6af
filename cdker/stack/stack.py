from dataclasses import dataclass, field
import os
from typing import Callable, Dict, Optional, Protocol

import aws_cdk as cdk
import boto3
from loguru import logger
from mypy_boto3_sts.client import STSClient


ACCOUNT_ENV_VAR = "CDK_DEFAULT_ACCOUNT"
REGION_ENV_VAR = "CDK_DEFAULT_REGION"


class Deployable(Protocol):
    """Anything that adds its constructs to a stack when asked."""

    def deploy(self) -> None:
        ...


@dataclass
class StackSettings:
    account: Optional[str] = None
    region: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> 'StackSettings':
        return cls(account=os.getenv(ACCOUNT_ENV_VAR) or None, region=os.getenv(REGION_ENV_VAR) or None)

    def as_environment(self) -> cdk.Environment:
        return cdk.Environment(account=self.account, region=self.region)


StackOptionFn = Callable[[StackSettings], None]


def with_credentials(account_id: str, region: str) -> StackOptionFn:
    def _apply(settings: StackSettings):
        settings.account = account_id
        settings.region = region
    return _apply


def with_tags(tags: Dict[str, str]) -> StackOptionFn:
    def _apply(settings: StackSettings):
        settings.tags.update(tags)
    return _apply


def with_caller_identity(session: Optional[boto3.Session] = None) -> StackOptionFn:
    """Fill whatever the environment left unset from the active AWS profile."""
    def _apply(settings: StackSettings):
        sess = session or boto3.Session()
        if settings.region is None:
            settings.region = sess.region_name
        if settings.account is None:
            client: STSClient = sess.client('sts')
            settings.account = client.get_caller_identity()['Account']
            logger.debug(f"Resolved account {settings.account} from caller identity")
    return _apply


def flush_logs():
    logger.complete()


class StackApp:
    """The CDK app plus the one stack every resource module writes into."""

    def __init__(self, app: cdk.App, release: Callable[[], None] = flush_logs):
        self.app = app
        self.stack: Optional[cdk.Stack] = None
        self._release = release

    @classmethod
    def new(cls, app: Optional[cdk.App] = None, release: Optional[Callable[[], None]] = None) -> 'StackApp':
        return cls(app if app is not None else cdk.App(), release or flush_logs)

    def set_stack(self, name: str, *option_fns: StackOptionFn) -> 'StackApp':
        settings = StackSettings.from_env()
        for fn in option_fns:
            fn(settings)

        self.stack = cdk.Stack(self.app, name, env=settings.as_environment(), tags=settings.tags or None)
        logger.info(f"Stack {name} set for account={settings.account} region={settings.region}")
        return self

    def get_stack(self) -> cdk.Stack:
        if self.stack is None:
            raise RuntimeError("Stack not set, call set_stack first")
        return self.stack

    def deploy_resources(self, *resources: Deployable):
        try:
            for resource in resources:
                resource.deploy()

            assembly = self.app.synth()
            logger.success(f"Synthesized cloud assembly into {assembly.directory}")
            return assembly
        finally:
            self._release()
