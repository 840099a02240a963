import logging
from typing import Dict, List, NamedTuple, Optional

from aws_cdk import Stack, Tags
from constructs import Construct

from ecs_fargate.cicd.pipeline.infrastructure import CiCdPipelineConstruct
from ecs_fargate.config import config
from ecs_fargate.config.services import DEFAULT_SERVICES, ServiceDefinition
from ecs_fargate.config.settings import Settings
from ecs_fargate.exceptions import InfrastructureConfigError
from ecs_fargate.fargate.autoscaler.infrastructure import FargateAutoscalerConstruct
from ecs_fargate.fargate.cluster.infrastructure import EcsFargateClusterConstruct
from ecs_fargate.fargate.service.infrastructure import EcsFargateServiceConstruct
from ecs_fargate.load_balancer.alb.infrastructure import (
    ApplicationLoadBalancerConstruct,
)
from ecs_fargate.networking.vpc.infrastructure import VpcConstruct, VpcNoNatConstruct

log = logging.getLogger(__name__)


class ServiceComponents(NamedTuple):
    service: EcsFargateServiceConstruct
    pipeline: Optional[CiCdPipelineConstruct]
    autoscaler: FargateAutoscalerConstruct


def check_services(settings: Settings, services: List[ServiceDefinition]) -> None:
    """
    Checks the service definitions can share one VPC, load balancer listener
    and cluster.

    :raises InfrastructureConfigError: on duplicate names or listener
        priorities, or a private service in a VPC without NAT gateways
    """
    if not services:
        raise InfrastructureConfigError("At least one service must be defined")

    seen_names = set()
    seen_priorities = {}
    for service in services:
        if service.name in seen_names:
            raise InfrastructureConfigError(f"Duplicate service name: {service.name}")
        seen_names.add(service.name)

        if service.priority in seen_priorities:
            raise InfrastructureConfigError(
                f"Services {seen_priorities[service.priority]} and {service.name} "
                f"share listener priority {service.priority}"
            )
        seen_priorities[service.priority] = service.name

        if settings.nat_gateways == 0 and not service.no_nat_vpc:
            raise InfrastructureConfigError(
                f"Service {service.name} needs private subnets with egress but the "
                "VPC has no NAT gateway, set no_nat_vpc on the service"
            )


class EcsFargateStack(Stack):
    """
    VPC0: 0 NAT gateway, public/isolated subnets only
    VPC1: >= 1 NAT gateway, public/private/isolated subnets

    Every service gets a listener rule on the shared load balancer, a task
    family on the shared cluster, a build pipeline and an autoscaler.
    """

    def __init__(
        self,
        scope: Construct,
        id_: str,
        settings: Settings,
        services: Optional[List[ServiceDefinition]] = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, id_, **kwargs)

        services = DEFAULT_SERVICES if services is None else services
        check_services(settings, services)

        # Step 1. VPC
        vpc_construct = VpcNoNatConstruct if settings.nat_gateways == 0 else VpcConstruct
        self.vpc = vpc_construct(
            self,
            config.VPC_CONSTRUCT_ID,
            max_azs=settings.max_azs,
            cidr=settings.cidr,
            ports=settings.public_ports,
            nat_gateways=settings.nat_gateways,
            use_default_vpc=settings.use_default_vpc,
            vpc_id=settings.vpc_id,
            use_exist_vpc=settings.use_exist_vpc,
        )

        # Step 2. Application Load Balancer
        self.load_balancer = ApplicationLoadBalancerConstruct(
            self,
            config.LOAD_BALANCER_CONSTRUCT_ID,
            vpc=self.vpc.vpc,
            security_grp=self.vpc.security_grp,
            listener_port=settings.listener_port,
            public_load_balancer=settings.public_load_balancer,
            route53_hosted_zone=settings.route53_hosted_zone,
            route53_hosted_zone_record_name=settings.route53_hosted_zone_record_name,
            route53_hosted_zone_id=settings.route53_hosted_zone_id,
            acm_arn=settings.acm_arn,
            # The VPC security group already opens the public ports
            open_listener=settings.listener_port not in settings.public_ports,
            open_redirect=config.HTTP_PORT not in settings.public_ports,
        )

        # Step 3. ECS Cluster
        self.cluster = EcsFargateClusterConstruct(
            self,
            config.ECS_CLUSTER_CONSTRUCT_ID,
            vpc=self.vpc.vpc,
            cluster_name=settings.cluster_name,
            container_insights=settings.container_insights,
        )

        self.services: Dict[str, ServiceComponents] = {}
        for service in services:
            self.services[service.name] = self._add_service(settings, service)

        Tags.of(self).add("Project", config.PROJECT_TAG)
        Tags.of(self).add("Environment", settings.deploy_env)

    def _add_service(
        self, settings: Settings, service: ServiceDefinition
    ) -> ServiceComponents:
        prefix = service.name.capitalize()
        log.info("Wiring service %s on %s", service.name, service.path_pattern)

        # Step 4. ECS Service & Task
        fargate_service = EcsFargateServiceConstruct(
            self,
            prefix + config.ECS_SERVICE_CONSTRUCT_ID,
            vpc=self.vpc.vpc,
            cluster=self.cluster.cluster,
            alb=self.load_balancer.alb,
            load_balancer_listener=self.load_balancer.load_balancer_listener,
            code_location=service.code_location,
            container_port=service.container_port,
            host_port=service.host_port,
            desired_count=service.desired_count,
            health_check_path=service.health_check_path,
            priority=service.priority,
            path_pattern=service.path_pattern,
            no_nat_vpc=service.no_nat_vpc,
            cpu=service.cpu,
            memory_limit_mib=service.memory_limit_mib,
            runtime_env=settings.runtime_env,
            container_name=service.name,
        )

        # Step 5. CI/CD Pipeline
        pipeline = None
        if service.repo_name:
            pipeline = CiCdPipelineConstruct(
                self,
                prefix + config.CICD_PIPELINE_CONSTRUCT_ID,
                ecs_service=fargate_service.fargate_service,
                container_name=fargate_service.container_name,
                artifact_bucket=self.cluster.artifact_bucket,
                repo_name=service.repo_name,
                branch=settings.source_branch,
                docker_username=settings.docker_username,
                docker_credential_secret_arn=settings.docker_credential_secret_arn,
                runtime_env=settings.runtime_env,
            )

        # Step 6. ECS Autoscaler
        autoscaler = FargateAutoscalerConstruct(
            self,
            prefix + config.FARGATE_AUTOSCALER_CONSTRUCT_ID,
            cluster=self.cluster.cluster,
            ecs_service=fargate_service.fargate_service,
            max_capacity=service.max_capacity,
            min_capacity=service.min_capacity,
            cpu_target_value=service.cpu_target_value,
            memory_target_value=service.memory_target_value,
            scale_in_cooldown=service.scale_in_cooldown,
            scale_out_cooldown=service.scale_out_cooldown,
            alb=self.load_balancer.alb if service.connection_scaling else None,
            scale_out_avg_period=service.scale_out_avg_period,
            scale_out_avg_number=service.scale_out_avg_number,
            scale_in_avg_period=service.scale_in_avg_period,
            scale_in_avg_number=service.scale_in_avg_number,
        )

        return ServiceComponents(fargate_service, pipeline, autoscaler)
