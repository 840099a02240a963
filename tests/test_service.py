from aws_cdk import aws_ecs as ecs
from aws_cdk.assertions import Match, Template

from ecs_fargate.fargate.cluster.infrastructure import EcsFargateClusterConstruct
from ecs_fargate.fargate.service.infrastructure import (
    EcsFargateServiceConstruct,
    container_image,
)
from ecs_fargate.load_balancer.alb.infrastructure import (
    ApplicationLoadBalancerConstruct,
)
from ecs_fargate.networking.vpc.infrastructure import VpcNoNatConstruct


def test_task_definition_and_container(base, service):
    template = Template.from_stack(base.stack)
    template.has_resource_properties(
        "AWS::ECS::TaskDefinition",
        {
            "Cpu": "256",
            "Memory": "512",
            "RequiresCompatibilities": ["FARGATE"],
            "ContainerDefinitions": [
                Match.object_like(
                    {
                        "Name": "api",
                        "Image": "nginx:latest",
                        "PortMappings": [
                            {"ContainerPort": 8080, "HostPort": 8080, "Protocol": "tcp"}
                        ],
                        "Environment": [{"Name": "RUNTIME_ENV", "Value": "staging"}],
                        "LogConfiguration": Match.object_like({"LogDriver": "awslogs"}),
                    }
                )
            ],
        },
    )
    template.resource_count_is("AWS::Logs::LogGroup", 1)
    assert service.container_name == "api"


def test_service_in_private_subnets(base, service):
    template = Template.from_stack(base.stack)
    template.has_resource_properties(
        "AWS::ECS::Service",
        {
            "DesiredCount": 2,
            "LaunchType": "FARGATE",
            "Cluster": {"Ref": Match.any_value()},
            "NetworkConfiguration": {
                "AwsvpcConfiguration": Match.object_like({"AssignPublicIp": "DISABLED"})
            },
        },
    )


def test_listener_rule_routes_path_to_target_group(base, service):
    template = Template.from_stack(base.stack)
    template.has_resource_properties(
        "AWS::ElasticLoadBalancingV2::ListenerRule",
        {
            "Priority": 5,
            "Conditions": [
                {"Field": "path-pattern", "PathPatternConfig": {"Values": ["/api*"]}}
            ],
            "Actions": [Match.object_like({"Type": "forward"})],
        },
    )
    template.has_resource_properties(
        "AWS::ElasticLoadBalancingV2::TargetGroup",
        {
            "Port": 8080,
            "Protocol": "HTTP",
            "TargetType": "ip",
            "HealthCheckPath": "/health",
        },
    )
    assert service.target_group is not None


def test_load_balancer_may_reach_container_port(base, service):
    Template.from_stack(base.stack).has_resource_properties(
        "AWS::EC2::SecurityGroupIngress",
        {"IpProtocol": "tcp", "FromPort": 8080, "ToPort": 8080},
    )


def test_no_nat_service_runs_in_public_subnets(stack):
    network = VpcNoNatConstruct(stack, "Vpc", max_azs=2, cidr="10.0.0.0/16", ports=[80])
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
    EcsFargateServiceConstruct(
        stack,
        "Web",
        vpc=network.vpc,
        cluster=cluster.cluster,
        alb=load_balancer.alb,
        load_balancer_listener=load_balancer.load_balancer_listener,
        code_location="nginx:latest",
        container_port=80,
        host_port=80,
        desired_count=1,
        health_check_path="/",
        priority=1,
        path_pattern="/web*",
        no_nat_vpc=True,
    )
    template = Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::ECS::Service",
        {
            "NetworkConfiguration": {
                "AwsvpcConfiguration": Match.object_like({"AssignPublicIp": "ENABLED"})
            }
        },
    )
    # Container name falls back to the construct id
    template.has_resource_properties(
        "AWS::ECS::TaskDefinition",
        {"ContainerDefinitions": [Match.object_like({"Name": "Web"})]},
    )


def test_container_image_from_directory_or_registry(tmp_path):
    (tmp_path / "Dockerfile").write_text("FROM nginx:stable\n")
    assert isinstance(container_image(str(tmp_path)), ecs.AssetImage)
    assert not isinstance(container_image("nginx:latest"), ecs.AssetImage)
