from typing import List, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ecs_fargate.config import config


class Settings(BaseSettings):
    """
    Deploy time configuration. Every field can be overridden through an
    environment variable prefixed with ECS_FARGATE_, e.g.
    ECS_FARGATE_NAT_GATEWAYS=0 or ECS_FARGATE_PUBLIC_PORTS='[80]'.
    """

    model_config = SettingsConfigDict(env_prefix="ECS_FARGATE_")

    deploy_env: str = "dev"
    log_level: str = "INFO"

    # VPC and Networking
    max_azs: int = Field(default=config.MAX_AZS, ge=1)
    cidr: str = config.VPC_CIDR
    public_ports: List[int] = config.PUBLIC_PORTS
    nat_gateways: int = Field(default=config.NAT_GATEWAYS, ge=0)
    use_default_vpc: bool = False
    use_exist_vpc: bool = False
    vpc_id: Optional[str] = None

    # Load Balancer
    listener_port: int = config.LISTENER_PORT
    public_load_balancer: bool = config.PUBLIC_LOAD_BALANCER
    route53_hosted_zone: Optional[str] = None
    route53_hosted_zone_id: Optional[str] = None
    route53_hosted_zone_record_name: Optional[str] = None
    acm_arn: Optional[str] = None

    # ECS Cluster
    cluster_name: str = config.CLUSTER_NAME
    container_insights: bool = config.CONTAINER_INSIGHTS

    # CI/CD Pipeline
    source_branch: str = config.SOURCE_BRANCH
    docker_username: Optional[str] = None
    docker_credential_secret_arn: Optional[str] = None
    runtime_env: Optional[str] = None

    @model_validator(mode="after")
    def check_vpc_and_dns(self) -> "Settings":
        if self.use_default_vpc and self.use_exist_vpc:
            raise ValueError("use_default_vpc and use_exist_vpc are mutually exclusive")
        if self.use_exist_vpc and not self.vpc_id:
            raise ValueError("vpc_id is required when use_exist_vpc is set")
        if self.route53_hosted_zone_record_name and not self.route53_hosted_zone:
            raise ValueError(
                "route53_hosted_zone is required when a record name is given"
            )
        if self.route53_hosted_zone_id and not self.route53_hosted_zone:
            raise ValueError(
                "route53_hosted_zone is required when a hosted zone id is given"
            )
        return self
