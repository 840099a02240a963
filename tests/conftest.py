from types import SimpleNamespace

import aws_cdk as cdk
import pytest

from ecs_fargate.fargate.cluster.infrastructure import EcsFargateClusterConstruct
from ecs_fargate.fargate.service.infrastructure import EcsFargateServiceConstruct
from ecs_fargate.load_balancer.alb.infrastructure import (
    ApplicationLoadBalancerConstruct,
)
from ecs_fargate.networking.vpc.infrastructure import VpcConstruct


@pytest.fixture
def stack():
    app = cdk.App()
    return cdk.Stack(app, "TestStack")


@pytest.fixture
def network(stack):
    return VpcConstruct(
        stack,
        "Vpc",
        max_azs=2,
        cidr="10.0.0.0/16",
        ports=[80, 443],
        nat_gateways=1,
    )


@pytest.fixture
def base(stack, network):
    """Network, load balancer and cluster, the upstream handles of a service."""
    load_balancer = ApplicationLoadBalancerConstruct(
        stack,
        "ApplicationLoadBalancer",
        vpc=network.vpc,
        security_grp=network.security_grp,
        listener_port=80,
        public_load_balancer=True,
        open_listener=False,
    )
    cluster = EcsFargateClusterConstruct(
        stack, "Cluster", vpc=network.vpc, cluster_name="test-cluster"
    )
    return SimpleNamespace(
        stack=stack, network=network, load_balancer=load_balancer, cluster=cluster
    )


@pytest.fixture
def service(base):
    return EcsFargateServiceConstruct(
        base.stack,
        "Api",
        vpc=base.network.vpc,
        cluster=base.cluster.cluster,
        alb=base.load_balancer.alb,
        load_balancer_listener=base.load_balancer.load_balancer_listener,
        code_location="nginx:latest",
        container_port=8080,
        host_port=8080,
        desired_count=2,
        health_check_path="/health",
        priority=5,
        path_pattern="/api*",
        runtime_env="staging",
        container_name="api",
    )
