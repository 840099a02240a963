"""
Constants that are used throughout the CDK repository, including ids, names
and resource specific defaults. If you want to change or add a new value,
please use this config file to ensure uniformity.
"""

### Stack ###
STACK_ID = "EcsFargateStack"
PROJECT_TAG = "ecs-fargate"

### Networking ###
VPC_CONSTRUCT_ID = "Vpc"
VPC_ID = "vpc"
VPC_CIDR = "10.0.0.0/16"
MAX_AZS = 2
NAT_GATEWAYS = 1
PUBLIC_PORTS = [80, 443]

PUBLIC_SUBNET_NAME = "Public"
PUBLIC_SUBNET_CIDR_MASK = 24

PRIVATE_SUBNET_NAME = "Private"
PRIVATE_SUBNET_CIDR_MASK = 24

ISOLATED_SUBNET_NAME = "Isolated"
ISOLATED_SUBNET_CIDR_MASK = 28

SECURITY_GROUP_ID = "PublicSecurityGroup"

### Load Balancer ###
LOAD_BALANCER_CONSTRUCT_ID = "ApplicationLoadBalancer"
LISTENER_PORT = 80
HTTP_PORT = 80
PUBLIC_LOAD_BALANCER = True
NOT_FOUND_MESSAGE = "Not Found"

### ECS Cluster ###
ECS_CLUSTER_CONSTRUCT_ID = "EcsFargateCluster"
CLUSTER_NAME = "ecs-fargate-cluster"
CONTAINER_INSIGHTS = True

### ECS Service ###
ECS_SERVICE_CONSTRUCT_ID = "EcsFargateService"
CONTAINER_PORT = 80
DESIRED_COUNT = 1
TASK_CPU = 256
TASK_MEMORY_MIB = 512
HEALTH_CHECK_PATH = "/"
LOG_STREAM_PREFIX = "ecs"
DEFAULT_IMAGE = "public.ecr.aws/docker/library/nginx:stable"

### CI/CD Pipeline ###
CICD_PIPELINE_CONSTRUCT_ID = "CiCdPipeline"
SOURCE_BRANCH = "main"
IMAGE_DEFINITIONS_FILE = "imagedefinitions.json"

### Autoscaler ###
FARGATE_AUTOSCALER_CONSTRUCT_ID = "FargateAutoscaler"
MIN_CAPACITY = 1
MAX_CAPACITY = 4
CPU_TARGET_VALUE = 50
MEMORY_TARGET_VALUE = 50
# Seconds
SCALE_IN_COOLDOWN = 60
SCALE_OUT_COOLDOWN = 60
# Minutes / average active connections
SCALE_OUT_AVG_PERIOD = 1
SCALE_OUT_AVG_NUMBER = 500
SCALE_IN_AVG_PERIOD = 5
SCALE_IN_AVG_NUMBER = 100
