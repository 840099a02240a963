import logging
from typing import Optional

from aws_cdk import Duration
from aws_cdk import aws_applicationautoscaling as appscaling
from aws_cdk import aws_cloudwatch as cloudwatch
from aws_cdk import aws_cloudwatch_actions as cloudwatch_actions
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from constructs import Construct

from ecs_fargate.config import config

log = logging.getLogger(__name__)


class FargateAutoscalerConstruct(Construct):
    """
    Scales the desired task count of a Fargate service on CPU and memory
    utilisation targets and, when a load balancer is given, on the average
    number of active connections it holds.
    """

    def __init__(
        self,
        scope: Construct,
        id_: str,
        cluster: ecs.ICluster,
        ecs_service: ecs.BaseService,
        max_capacity: int,
        min_capacity: int,
        cpu_target_value: Optional[float] = None,
        memory_target_value: Optional[float] = None,
        scale_in_cooldown: int = config.SCALE_IN_COOLDOWN,
        scale_out_cooldown: int = config.SCALE_OUT_COOLDOWN,
        alb: Optional[elbv2.IApplicationLoadBalancer] = None,
        scale_out_avg_period: int = config.SCALE_OUT_AVG_PERIOD,
        scale_out_avg_number: float = config.SCALE_OUT_AVG_NUMBER,
        scale_in_avg_period: int = config.SCALE_IN_AVG_PERIOD,
        scale_in_avg_number: float = config.SCALE_IN_AVG_NUMBER,
    ):
        super().__init__(scope, id_)

        # Declared directly rather than through auto_scale_task_count: the
        # connection scale out and scale in steps alarm on different periods
        # with their own cooldowns, so each needs a StepScalingAction on this
        # target, which ScalableTaskCount does not expose.
        self.scalable_target = appscaling.ScalableTarget(
            self,
            "ScalableTarget",
            service_namespace=appscaling.ServiceNamespace.ECS,
            resource_id=f"service/{cluster.cluster_name}/{ecs_service.service_name}",
            scalable_dimension="ecs:service:DesiredCount",
            min_capacity=min_capacity,
            max_capacity=max_capacity,
        )
        # The service must exist before its desired count can be registered
        self.scalable_target.node.add_dependency(ecs_service)

        if cpu_target_value is not None:
            log.info("Tracking CPU utilisation at %s%%", cpu_target_value)
            self.scalable_target.scale_to_track_metric(
                "CpuScaling",
                target_value=cpu_target_value,
                predefined_metric=appscaling.PredefinedMetric.ECS_SERVICE_AVERAGE_CPU_UTILIZATION,
                scale_in_cooldown=Duration.seconds(scale_in_cooldown),
                scale_out_cooldown=Duration.seconds(scale_out_cooldown),
            )

        if memory_target_value is not None:
            log.info("Tracking memory utilisation at %s%%", memory_target_value)
            self.scalable_target.scale_to_track_metric(
                "MemoryScaling",
                target_value=memory_target_value,
                predefined_metric=appscaling.PredefinedMetric.ECS_SERVICE_AVERAGE_MEMORY_UTILIZATION,
                scale_in_cooldown=Duration.seconds(scale_in_cooldown),
                scale_out_cooldown=Duration.seconds(scale_out_cooldown),
            )

        if alb is not None:
            log.info(
                "Scaling on connections: out at %s over %d min, in at %s over %d min",
                scale_out_avg_number,
                scale_out_avg_period,
                scale_in_avg_number,
                scale_in_avg_period,
            )
            self._add_connection_step(
                "ScaleOut",
                alb,
                period=scale_out_avg_period,
                threshold=scale_out_avg_number,
                cooldown=scale_out_cooldown,
                adjustment=1,
            )
            self._add_connection_step(
                "ScaleIn",
                alb,
                period=scale_in_avg_period,
                threshold=scale_in_avg_number,
                cooldown=scale_in_cooldown,
                adjustment=-1,
            )

    def _add_connection_step(
        self,
        name: str,
        alb: elbv2.IApplicationLoadBalancer,
        period: int,
        threshold: float,
        cooldown: int,
        adjustment: int,
    ) -> cloudwatch.Alarm:
        """
        Adds one task (adjustment > 0) when the average connection count is at
        or above the threshold, or removes one (adjustment < 0) when it is at
        or below it.
        """
        metric = cloudwatch.Metric(
            namespace="AWS/ApplicationELB",
            metric_name="ActiveConnectionCount",
            statistic="Average",
            period=Duration.minutes(period),
            dimensions_map={"LoadBalancer": alb.load_balancer_full_name},
        )

        action = appscaling.StepScalingAction(
            self,
            f"{name}Action",
            scaling_target=self.scalable_target,
            adjustment_type=appscaling.AdjustmentType.CHANGE_IN_CAPACITY,
            cooldown=Duration.seconds(cooldown),
            metric_aggregation_type=appscaling.MetricAggregationType.AVERAGE,
        )

        if adjustment > 0:
            action.add_adjustment(adjustment=adjustment, lower_bound=0)
            comparison_operator = (
                cloudwatch.ComparisonOperator.GREATER_THAN_OR_EQUAL_TO_THRESHOLD
            )
        else:
            action.add_adjustment(adjustment=adjustment, upper_bound=0)
            comparison_operator = (
                cloudwatch.ComparisonOperator.LESS_THAN_OR_EQUAL_TO_THRESHOLD
            )

        alarm = cloudwatch.Alarm(
            self,
            f"{name}Alarm",
            metric=metric,
            threshold=threshold,
            evaluation_periods=1,
            comparison_operator=comparison_operator,
            alarm_description=f"{name} when average active connections cross {threshold}",
        )
        alarm.add_alarm_action(cloudwatch_actions.ApplicationScalingAction(action))
        return alarm
