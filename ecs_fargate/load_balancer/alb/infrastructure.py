import logging
from typing import Optional

from aws_cdk import CfnOutput
from aws_cdk import aws_certificatemanager as acm
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from aws_cdk import aws_route53 as route53
from aws_cdk import aws_route53_targets as route53_targets
from constructs import Construct

from ecs_fargate.config import config

log = logging.getLogger(__name__)


class ApplicationLoadBalancerConstruct(Construct):
    def __init__(
        self,
        scope: Construct,
        id_: str,
        vpc: ec2.IVpc,
        security_grp: ec2.ISecurityGroup,
        listener_port: int,
        public_load_balancer: bool,
        route53_hosted_zone: Optional[str] = None,
        route53_hosted_zone_record_name: Optional[str] = None,
        route53_hosted_zone_id: Optional[str] = None,
        acm_arn: Optional[str] = None,
        open_listener: bool = True,
        open_redirect: bool = True,
    ):
        super().__init__(scope, id_)

        self.alb = elbv2.ApplicationLoadBalancer(
            self,
            "LoadBalancer",
            vpc=vpc,
            internet_facing=public_load_balancer,
            security_group=security_grp,
        )

        # Requests that match no service rule get a 404
        default_action = elbv2.ListenerAction.fixed_response(
            404, content_type="text/plain", message_body=config.NOT_FOUND_MESSAGE
        )

        if acm_arn:
            log.info("Declaring HTTPS listener on port %d", listener_port)
            self.certificate = acm.Certificate.from_certificate_arn(
                self, "Certificate", acm_arn
            )
            self.load_balancer_listener = self.alb.add_listener(
                "HttpsListener",
                port=listener_port,
                protocol=elbv2.ApplicationProtocol.HTTPS,
                certificates=[
                    elbv2.ListenerCertificate.from_certificate_manager(
                        self.certificate
                    )
                ],
                default_action=default_action,
                open=open_listener,
            )
            if listener_port != config.HTTP_PORT:
                self.alb.add_redirect(
                    source_protocol=elbv2.ApplicationProtocol.HTTP,
                    source_port=config.HTTP_PORT,
                    target_protocol=elbv2.ApplicationProtocol.HTTPS,
                    target_port=listener_port,
                    open=open_redirect,
                )
        else:
            log.info("Declaring HTTP listener on port %d", listener_port)
            self.load_balancer_listener = self.alb.add_listener(
                "HttpListener",
                port=listener_port,
                protocol=elbv2.ApplicationProtocol.HTTP,
                default_action=default_action,
                open=open_listener,
            )

        self.record = None
        if route53_hosted_zone:
            if route53_hosted_zone_id:
                self.hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
                    self,
                    "HostedZone",
                    hosted_zone_id=route53_hosted_zone_id,
                    zone_name=route53_hosted_zone,
                )
            else:
                self.hosted_zone = route53.HostedZone.from_lookup(
                    self, "HostedZone", domain_name=route53_hosted_zone
                )

            log.info(
                "Declaring alias record %s in zone %s",
                route53_hosted_zone_record_name or route53_hosted_zone,
                route53_hosted_zone,
            )
            self.record = route53.ARecord(
                self,
                "AliasRecord",
                zone=self.hosted_zone,
                record_name=route53_hosted_zone_record_name,
                target=route53.RecordTarget.from_alias(
                    route53_targets.LoadBalancerTarget(self.alb)
                ),
            )

        CfnOutput(
            self,
            "LoadBalancerDnsName",
            value=self.alb.load_balancer_dns_name,
        )
