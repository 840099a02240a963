#!/usr/bin/env python3
import logging
import os

import aws_cdk as cdk

from ecs_fargate.components import EcsFargateStack
from ecs_fargate.config import config
from ecs_fargate.config.settings import Settings

settings = Settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

env = cdk.Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"), region=os.getenv("CDK_DEFAULT_REGION")
)

app = cdk.App()
EcsFargateStack(app, config.STACK_ID, settings=settings, env=env)
app.synth()
