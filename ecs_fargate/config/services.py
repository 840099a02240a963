from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ecs_fargate.config import config


class ServiceDefinition(BaseModel):
    """
    A containerised service routed from the shared load balancer. Each
    definition produces one Fargate service, an optional CI/CD pipeline and
    an autoscaler.
    """

    name: str = Field(min_length=1)
    code_location: str = config.DEFAULT_IMAGE
    container_port: int = config.CONTAINER_PORT
    host_port: Optional[int] = None
    desired_count: int = Field(default=config.DESIRED_COUNT, ge=0)
    cpu: int = config.TASK_CPU
    memory_limit_mib: int = config.TASK_MEMORY_MIB
    health_check_path: str = config.HEALTH_CHECK_PATH
    priority: int = Field(ge=1, le=50000)
    path_pattern: str
    no_nat_vpc: bool = False

    # Source repository for the build pipeline, no pipeline when unset
    repo_name: Optional[str] = None

    min_capacity: int = Field(default=config.MIN_CAPACITY, ge=0)
    max_capacity: int = Field(default=config.MAX_CAPACITY, ge=1)
    cpu_target_value: Optional[float] = None
    memory_target_value: Optional[float] = None
    scale_in_cooldown: int = config.SCALE_IN_COOLDOWN
    scale_out_cooldown: int = config.SCALE_OUT_COOLDOWN
    connection_scaling: bool = False
    scale_out_avg_period: int = config.SCALE_OUT_AVG_PERIOD
    scale_out_avg_number: float = config.SCALE_OUT_AVG_NUMBER
    scale_in_avg_period: int = config.SCALE_IN_AVG_PERIOD
    scale_in_avg_number: float = config.SCALE_IN_AVG_NUMBER

    @model_validator(mode="after")
    def check_ports_and_capacity(self) -> "ServiceDefinition":
        if self.host_port is None:
            self.host_port = self.container_port
        if self.min_capacity > self.max_capacity:
            raise ValueError(
                f"min_capacity ({self.min_capacity}) must not exceed "
                f"max_capacity ({self.max_capacity})"
            )
        if self.connection_scaling and self.scale_in_avg_number >= self.scale_out_avg_number:
            raise ValueError(
                "scale_in_avg_number must be lower than scale_out_avg_number"
            )
        return self


# /web   ==> frontend, scaled on load balancer connections
# /crawl ==> crawl backend, scaled on memory
# /sync  ==> sync backend, scaled on memory
DEFAULT_SERVICES: List[ServiceDefinition] = [
    ServiceDefinition(
        name="web",
        priority=1,
        path_pattern="/web*",
        health_check_path="/",
        no_nat_vpc=True,
        repo_name="job4u-web",
        connection_scaling=True,
    ),
    ServiceDefinition(
        name="crawl",
        priority=2,
        path_pattern="/crawl*",
        health_check_path="/crawl",
        repo_name="job4u-crawl",
        memory_target_value=config.MEMORY_TARGET_VALUE,
    ),
    ServiceDefinition(
        name="sync",
        priority=3,
        path_pattern="/sync*",
        health_check_path="/sync",
        repo_name="job4u-sync",
        memory_target_value=config.MEMORY_TARGET_VALUE,
    ),
]
