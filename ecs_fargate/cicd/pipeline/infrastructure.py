import logging
from typing import Dict, Optional

from aws_cdk import RemovalPolicy
from aws_cdk import aws_codebuild as codebuild
from aws_cdk import aws_codecommit as codecommit
from aws_cdk import aws_codepipeline as codepipeline
from aws_cdk import aws_codepipeline_actions as codepipeline_actions
from aws_cdk import aws_ecr as ecr
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_s3 as s3
from constructs import Construct

from ecs_fargate.config import config

log = logging.getLogger(__name__)


def image_build_spec(docker_login: bool) -> Dict:
    """
    Build spec that builds the service image, pushes it to ECR and writes
    the image definitions file the ECS deploy action consumes.

    :param docker_login: Also log in to Docker Hub with DOCKER_USERNAME and
        DOCKER_PASSWORD before building, to avoid anonymous pull limits
    :return: Build spec as a dictionary
    """
    pre_build = [
        "aws ecr get-login-password --region $AWS_DEFAULT_REGION"
        " | docker login --username AWS --password-stdin $REPOSITORY_URI",
        "COMMIT_HASH=$(echo $CODEBUILD_RESOLVED_SOURCE_VERSION | cut -c 1-7)",
        "IMAGE_TAG=${COMMIT_HASH:=latest}",
    ]
    if docker_login:
        pre_build.append(
            'echo "$DOCKER_PASSWORD" | docker login --username "$DOCKER_USERNAME" --password-stdin'
        )

    return {
        "version": "0.2",
        "phases": {
            "pre_build": {"commands": pre_build},
            "build": {
                "commands": [
                    "docker build --build-arg RUNTIME_ENV=$RUNTIME_ENV -t $REPOSITORY_URI:latest .",
                    "docker tag $REPOSITORY_URI:latest $REPOSITORY_URI:$IMAGE_TAG",
                ]
            },
            "post_build": {
                "commands": [
                    "docker push $REPOSITORY_URI:latest",
                    "docker push $REPOSITORY_URI:$IMAGE_TAG",
                    "printf '[{\"name\":\"%s\",\"imageUri\":\"%s\"}]' "
                    f"$CONTAINER_NAME $REPOSITORY_URI:$IMAGE_TAG > {config.IMAGE_DEFINITIONS_FILE}",
                ]
            },
        },
        "artifacts": {"files": [config.IMAGE_DEFINITIONS_FILE]},
    }


class CiCdPipelineConstruct(Construct):
    def __init__(
        self,
        scope: Construct,
        id_: str,
        ecs_service: ecs.IBaseService,
        container_name: str,
        artifact_bucket: s3.IBucket,
        repo_name: str,
        branch: str = config.SOURCE_BRANCH,
        docker_username: Optional[str] = None,
        docker_credential_secret_arn: Optional[str] = None,
        runtime_env: Optional[str] = None,
    ):
        super().__init__(scope, id_)

        self.source_repository = codecommit.Repository.from_repository_name(
            self, "SourceRepository", repository_name=repo_name
        )

        self.ecr_repository = ecr.Repository(
            self,
            "ImageRepository",
            removal_policy=RemovalPolicy.DESTROY,
            empty_on_delete=True,
        )

        environment_variables = {
            "REPOSITORY_URI": codebuild.BuildEnvironmentVariable(
                value=self.ecr_repository.repository_uri
            ),
            "CONTAINER_NAME": codebuild.BuildEnvironmentVariable(value=container_name),
            "RUNTIME_ENV": codebuild.BuildEnvironmentVariable(value=runtime_env or ""),
        }

        docker_login = bool(docker_username and docker_credential_secret_arn)
        if docker_login:
            environment_variables["DOCKER_USERNAME"] = codebuild.BuildEnvironmentVariable(
                value=docker_username
            )
            environment_variables["DOCKER_PASSWORD"] = codebuild.BuildEnvironmentVariable(
                value=docker_credential_secret_arn,
                type=codebuild.BuildEnvironmentVariableType.SECRETS_MANAGER,
            )

        self.build_project = codebuild.PipelineProject(
            self,
            "BuildProject",
            environment=codebuild.BuildEnvironment(
                build_image=codebuild.LinuxBuildImage.STANDARD_7_0,
                # Required to run the Docker daemon
                privileged=True,
            ),
            environment_variables=environment_variables,
            build_spec=codebuild.BuildSpec.from_object(image_build_spec(docker_login)),
        )
        self.ecr_repository.grant_pull_push(self.build_project)

        source_output = codepipeline.Artifact("SourceOutput")
        build_output = codepipeline.Artifact("BuildOutput")

        log.info("Declaring pipeline for %s from %s@%s", container_name, repo_name, branch)
        self.pipeline = codepipeline.Pipeline(
            self,
            "Pipeline",
            artifact_bucket=artifact_bucket,
            restart_execution_on_update=True,
            stages=[
                codepipeline.StageProps(
                    stage_name="Source",
                    actions=[
                        codepipeline_actions.CodeCommitSourceAction(
                            action_name="Source",
                            repository=self.source_repository,
                            branch=branch,
                            output=source_output,
                        )
                    ],
                ),
                codepipeline.StageProps(
                    stage_name="Build",
                    actions=[
                        codepipeline_actions.CodeBuildAction(
                            action_name="Build",
                            project=self.build_project,
                            input=source_output,
                            outputs=[build_output],
                        )
                    ],
                ),
                codepipeline.StageProps(
                    stage_name="Deploy",
                    actions=[
                        codepipeline_actions.EcsDeployAction(
                            action_name="Deploy",
                            service=ecs_service,
                            input=build_output,
                        )
                    ],
                ),
            ],
        )
