import logging

from aws_cdk import RemovalPolicy
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_s3 as s3
from constructs import Construct

log = logging.getLogger(__name__)


class EcsFargateClusterConstruct(Construct):
    def __init__(
        self,
        scope: Construct,
        id_: str,
        vpc: ec2.IVpc,
        cluster_name: str,
        container_insights: bool = True,
    ):
        super().__init__(scope, id_)

        log.info("Declaring ECS cluster %s", cluster_name)
        self.cluster = ecs.Cluster(
            self,
            "Cluster",
            vpc=vpc,
            cluster_name=cluster_name,
            container_insights_v2=(
                ecs.ContainerInsights.ENABLED
                if container_insights
                else ecs.ContainerInsights.DISABLED
            ),
        )

        # Shared by every service pipeline
        self.artifact_bucket = s3.Bucket(
            self,
            "ArtifactBucket",
            versioned=True,
            removal_policy=RemovalPolicy.DESTROY,
        )
