import logging
import os
from typing import Optional

from aws_cdk import CfnOutput, RemovalPolicy
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from aws_cdk import aws_logs as logs
from constructs import Construct

from ecs_fargate.config import config

log = logging.getLogger(__name__)


def container_image(code_location: str) -> ecs.ContainerImage:
    """
    A local directory is built as a Docker image asset, anything else is
    treated as an image reference pulled from a registry.
    """
    if os.path.isdir(code_location):
        return ecs.ContainerImage.from_asset(code_location)
    return ecs.ContainerImage.from_registry(code_location)


class EcsFargateServiceConstruct(Construct):
    def __init__(
        self,
        scope: Construct,
        id_: str,
        vpc: ec2.IVpc,
        cluster: ecs.ICluster,
        alb: elbv2.IApplicationLoadBalancer,
        load_balancer_listener: elbv2.ApplicationListener,
        code_location: str,
        container_port: int,
        host_port: int,
        desired_count: int,
        health_check_path: str,
        priority: int,
        path_pattern: str,
        no_nat_vpc: bool = False,
        cpu: int = config.TASK_CPU,
        memory_limit_mib: int = config.TASK_MEMORY_MIB,
        runtime_env: Optional[str] = None,
        container_name: Optional[str] = None,
    ):
        super().__init__(scope, id_)

        self.container_name = container_name or id_

        self.log_group = logs.LogGroup(
            self,
            "LogGroup",
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=RemovalPolicy.DESTROY,
        )

        self.task_definition = ecs.FargateTaskDefinition(
            self,
            "TaskDefinition",
            cpu=cpu,
            memory_limit_mib=memory_limit_mib,
        )

        environment = {}
        if runtime_env:
            environment["RUNTIME_ENV"] = runtime_env

        self.container = self.task_definition.add_container(
            self.container_name,
            container_name=self.container_name,
            image=container_image(code_location),
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=config.LOG_STREAM_PREFIX, log_group=self.log_group
            ),
            environment=environment,
        )
        self.container.add_port_mappings(
            ecs.PortMapping(
                container_port=container_port,
                host_port=host_port,
                protocol=ecs.Protocol.TCP,
            )
        )

        # Without NAT the tasks need a public IP to pull images
        subnet_type = (
            ec2.SubnetType.PUBLIC
            if no_nat_vpc
            else ec2.SubnetType.PRIVATE_WITH_EGRESS
        )
        log.info(
            "Declaring Fargate service %s (%d task(s), %s subnets)",
            id_,
            desired_count,
            subnet_type.name,
        )
        self.security_group = ec2.SecurityGroup(
            self,
            "SecurityGroup",
            vpc=vpc,
            description=f"Security group for the {id_} service",
            allow_all_outbound=True,
        )

        self.fargate_service = ecs.FargateService(
            self,
            "Service",
            cluster=cluster,
            task_definition=self.task_definition,
            desired_count=desired_count,
            assign_public_ip=no_nat_vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=subnet_type),
            security_groups=[self.security_group],
        )

        self.target_group = load_balancer_listener.add_targets(
            f"{id_}Targets",
            port=container_port,
            protocol=elbv2.ApplicationProtocol.HTTP,
            targets=[
                self.fargate_service.load_balancer_target(
                    container_name=self.container_name,
                    container_port=container_port,
                )
            ],
            priority=priority,
            conditions=[elbv2.ListenerCondition.path_patterns([path_pattern])],
            health_check=elbv2.HealthCheck(path=health_check_path),
        )

        CfnOutput(
            self,
            "ServiceEndpoint",
            value=f"{alb.load_balancer_dns_name}{path_pattern.rstrip('*')}",
        )
