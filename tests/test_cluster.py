from aws_cdk.assertions import Match, Template

from ecs_fargate.fargate.cluster.infrastructure import EcsFargateClusterConstruct


def test_cluster_with_container_insights(stack, network):
    EcsFargateClusterConstruct(
        stack, "Cluster", vpc=network.vpc, cluster_name="jobs-cluster"
    )
    Template.from_stack(stack).has_resource_properties(
        "AWS::ECS::Cluster",
        {
            "ClusterName": "jobs-cluster",
            "ClusterSettings": Match.array_with(
                [{"Name": "containerInsights", "Value": "enabled"}]
            ),
        },
    )


def test_container_insights_disabled(stack, network):
    EcsFargateClusterConstruct(
        stack,
        "Cluster",
        vpc=network.vpc,
        cluster_name="jobs-cluster",
        container_insights=False,
    )
    Template.from_stack(stack).has_resource_properties(
        "AWS::ECS::Cluster",
        {
            "ClusterSettings": Match.array_with(
                [{"Name": "containerInsights", "Value": "disabled"}]
            ),
        },
    )


def test_versioned_artifact_bucket(stack, network):
    construct = EcsFargateClusterConstruct(
        stack, "Cluster", vpc=network.vpc, cluster_name="jobs-cluster"
    )
    template = Template.from_stack(stack)
    template.resource_count_is("AWS::S3::Bucket", 1)
    template.has_resource(
        "AWS::S3::Bucket",
        {
            "Properties": {"VersioningConfiguration": {"Status": "Enabled"}},
            "DeletionPolicy": "Delete",
        },
    )
    assert construct.artifact_bucket is not None
