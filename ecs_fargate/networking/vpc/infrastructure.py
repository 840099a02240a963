import logging
from typing import List, Optional

import aws_cdk.aws_ec2 as ec2
from constructs import Construct

from ecs_fargate.config import config
from ecs_fargate.exceptions import InfrastructureConfigError

log = logging.getLogger(__name__)


def _import_or_declare_vpc(
    scope: Construct,
    max_azs: int,
    cidr: str,
    nat_gateways: int,
    subnet_configuration: List[ec2.SubnetConfiguration],
    use_default_vpc: bool,
    vpc_id: Optional[str],
    use_exist_vpc: bool,
) -> ec2.IVpc:
    # Lookups need an explicit account/region on the stack
    if use_default_vpc:
        log.info("Looking up the default VPC")
        return ec2.Vpc.from_lookup(scope, config.VPC_ID, is_default=True)
    if use_exist_vpc:
        log.info("Looking up existing VPC %s", vpc_id)
        return ec2.Vpc.from_lookup(scope, config.VPC_ID, vpc_id=vpc_id)

    log.info(
        "Declaring VPC %s across %d AZs with %d NAT gateway(s)",
        cidr,
        max_azs,
        nat_gateways,
    )
    return ec2.Vpc(
        scope,
        config.VPC_ID,
        ip_addresses=ec2.IpAddresses.cidr(cidr),
        max_azs=max_azs,
        subnet_configuration=subnet_configuration,
        nat_gateways=nat_gateways,
    )


def _public_security_group(
    scope: Construct, vpc: ec2.IVpc, ports: List[int]
) -> ec2.SecurityGroup:
    security_group = ec2.SecurityGroup(
        scope,
        config.SECURITY_GROUP_ID,
        vpc=vpc,
        description="Allow inbound traffic on public ports",
        allow_all_outbound=True,
    )
    for port in ports:
        security_group.add_ingress_rule(
            peer=ec2.Peer.any_ipv4(),
            connection=ec2.Port.tcp(port),
            description=f"Allow inbound traffic on port {port}",
        )
    return security_group


class VpcConstruct(Construct):
    """
    Network with public, private (NAT egress) and isolated subnets in every
    availability zone, plus a security group open on the public ports.
    """

    def __init__(
        self,
        scope: Construct,
        id_: str,
        max_azs: int,
        cidr: str,
        ports: List[int],
        nat_gateways: int,
        use_default_vpc: bool = False,
        vpc_id: Optional[str] = None,
        use_exist_vpc: bool = False,
    ):
        super().__init__(scope, id_)

        if nat_gateways < 1:
            raise InfrastructureConfigError(
                "VpcConstruct needs at least one NAT gateway, "
                "use VpcNoNatConstruct for a VPC without NAT"
            )

        self.vpc = _import_or_declare_vpc(
            self,
            max_azs=max_azs,
            cidr=cidr,
            nat_gateways=nat_gateways,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PUBLIC,
                    name=config.PUBLIC_SUBNET_NAME,
                    cidr_mask=config.PUBLIC_SUBNET_CIDR_MASK,
                ),
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    name=config.PRIVATE_SUBNET_NAME,
                    cidr_mask=config.PRIVATE_SUBNET_CIDR_MASK,
                ),
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
                    name=config.ISOLATED_SUBNET_NAME,
                    cidr_mask=config.ISOLATED_SUBNET_CIDR_MASK,
                ),
            ],
            use_default_vpc=use_default_vpc,
            vpc_id=vpc_id,
            use_exist_vpc=use_exist_vpc,
        )
        self.security_grp = _public_security_group(self, self.vpc, ports)


class VpcNoNatConstruct(Construct):
    """
    Network without NAT gateways: public and isolated subnets only. Services
    must run in the public subnets with a public IP to reach the internet.
    """

    def __init__(
        self,
        scope: Construct,
        id_: str,
        max_azs: int,
        cidr: str,
        ports: List[int],
        nat_gateways: int = 0,
        use_default_vpc: bool = False,
        vpc_id: Optional[str] = None,
        use_exist_vpc: bool = False,
    ):
        super().__init__(scope, id_)

        if nat_gateways:
            log.warning(
                "Ignoring nat_gateways=%d for a VPC without NAT", nat_gateways
            )

        self.vpc = _import_or_declare_vpc(
            self,
            max_azs=max_azs,
            cidr=cidr,
            nat_gateways=0,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PUBLIC,
                    name=config.PUBLIC_SUBNET_NAME,
                    cidr_mask=config.PUBLIC_SUBNET_CIDR_MASK,
                ),
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
                    name=config.ISOLATED_SUBNET_NAME,
                    cidr_mask=config.ISOLATED_SUBNET_CIDR_MASK,
                ),
            ],
            use_default_vpc=use_default_vpc,
            vpc_id=vpc_id,
            use_exist_vpc=use_exist_vpc,
        )
        self.security_grp = _public_security_group(self, self.vpc, ports)
