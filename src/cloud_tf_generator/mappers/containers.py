#!/usr/bin/env python3
"""
ECS and EKS Resource Mappers
"""

import json
import logging
from typing import Any, Dict, List

from ..models import (
    TerraformLifecycle, escape_template_sequences, is_sensitive_field, to_terraform_identifier,
)
from .base import ResourceMapper, last_segment, set_if

logger = logging.getLogger(__name__)


def escape_literals(value: Any) -> Any:
    """Copy a JSON-like structure with template sequences in every string disabled"""
    if isinstance(value, str):
        return escape_template_sequences(value)
    if isinstance(value, list):
        return [escape_literals(item) for item in value]
    if isinstance(value, dict):
        return {escape_literals(k) if isinstance(k, str) else k: escape_literals(v)
                for k, v in value.items()}
    return value


class ECSClusterMapper(ResourceMapper):
    source_type = 'AWS::ECS::Cluster'
    terraform_type = 'aws_ecs_cluster'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('clusterName') or resource.display_name)

        insights = next((s for s in props.get('settings') or []
                         if s.get('name') == 'containerInsights'), None)
        if insights and insights.get('value'):
            attributes['setting'] = self.create_block({
                'name': 'containerInsights',
                'value': insights['value'],
            })

        exec_config = (props.get('configuration') or {}).get('executeCommandConfiguration')
        if exec_config:
            exec_attrs: Dict[str, Any] = {}
            set_if(exec_attrs, 'kms_key_id', exec_config.get('kmsKeyId'))
            set_if(exec_attrs, 'logging', exec_config.get('logging'))
            log_config = exec_config.get('logConfiguration') or {}
            log_attrs: Dict[str, Any] = {}
            set_if(log_attrs, 'cloud_watch_log_group_name', log_config.get('cloudWatchLogGroupName'))
            set_if(log_attrs, 's3_bucket_name', log_config.get('s3BucketName'))
            set_if(log_attrs, 's3_key_prefix', log_config.get('s3KeyPrefix'))
            if log_attrs:
                exec_attrs['log_configuration'] = self.create_block(log_attrs)
            if exec_attrs:
                attributes['configuration'] = self.create_block({
                    'execute_command_configuration': self.create_block(exec_attrs),
                })

        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('clusterName') or resource.id

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'arn', 'arn', 'ARN of ECS cluster'),
            self.output(resource, 'id', 'id', 'ID of ECS cluster'),
        ]


class ECSServiceMapper(ResourceMapper):
    source_type = 'AWS::ECS::Service'
    terraform_type = 'aws_ecs_service'

    def map(self, resource, context):
        props = resource.properties
        if not props.get('serviceName'):
            return None

        attributes: Dict[str, Any] = {'name': props['serviceName']}
        cluster_arn = props.get('clusterArn')
        if cluster_arn:
            attributes['cluster'] = self.resource_reference(context, cluster_arn, cluster_arn)
        set_if(attributes, 'task_definition', props.get('taskDefinition'))
        if props.get('desiredCount') is not None:
            attributes['desired_count'] = props['desiredCount']
        set_if(attributes, 'launch_type', props.get('launchType'))
        set_if(attributes, 'platform_version', props.get('platformVersion'))
        set_if(attributes, 'scheduling_strategy', props.get('schedulingStrategy'))
        if props.get('enableExecuteCommand') is not None:
            attributes['enable_execute_command'] = bool(props['enableExecuteCommand'])
        if props.get('healthCheckGracePeriodSeconds') is not None:
            attributes['health_check_grace_period_seconds'] = props['healthCheckGracePeriodSeconds']

        awsvpc = (props.get('networkConfiguration') or {}).get('awsvpcConfiguration')
        if awsvpc:
            net_attrs: Dict[str, Any] = {}
            set_if(net_attrs, 'subnets', awsvpc.get('subnets'))
            set_if(net_attrs, 'security_groups', awsvpc.get('securityGroups'))
            if awsvpc.get('assignPublicIp'):
                net_attrs['assign_public_ip'] = awsvpc['assignPublicIp'] == 'ENABLED'
            attributes['network_configuration'] = self.create_block(net_attrs)

        load_balancers = []
        for lb in props.get('loadBalancers') or []:
            lb_attrs: Dict[str, Any] = {}
            set_if(lb_attrs, 'target_group_arn', lb.get('targetGroupArn'))
            set_if(lb_attrs, 'container_name', lb.get('containerName'))
            if lb.get('containerPort') is not None:
                lb_attrs['container_port'] = lb['containerPort']
            if lb_attrs:
                load_balancers.append(self.create_block(lb_attrs))
        set_if(attributes, 'load_balancer', load_balancers)

        deploy = props.get('deploymentConfiguration') or {}
        deploy_attrs: Dict[str, Any] = {}
        if deploy.get('maximumPercent') is not None:
            deploy_attrs['deployment_maximum_percent'] = deploy['maximumPercent']
        if deploy.get('minimumHealthyPercent') is not None:
            deploy_attrs['deployment_minimum_healthy_percent'] = deploy['minimumHealthyPercent']
        attributes.update(deploy_attrs)

        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(ignore_changes=['task_definition', 'desired_count']),
        )

    def get_import_id(self, resource):
        props = resource.properties
        cluster_name = last_segment(props.get('clusterArn')) or 'default'
        return f"{cluster_name}/{props.get('serviceName', '')}"


class ECSTaskDefinitionMapper(ResourceMapper):
    source_type = 'AWS::ECS::TaskDefinition'
    terraform_type = 'aws_ecs_task_definition'

    def map(self, resource, context):
        props = resource.properties
        containers = props.get('containerDefinitions')
        if not props.get('family') or not containers:
            return None

        attributes: Dict[str, Any] = {
            'family': props['family'],
            'container_definitions': json.dumps(
                self._container_definitions(props['family'], containers, context),
                separators=(',', ':'),
            ),
        }
        set_if(attributes, 'cpu', props.get('cpu'))
        set_if(attributes, 'memory', props.get('memory'))
        set_if(attributes, 'network_mode', props.get('networkMode'))
        set_if(attributes, 'requires_compatibilities', props.get('requiresCompatibilities'))
        set_if(attributes, 'execution_role_arn', props.get('executionRoleArn'))
        set_if(attributes, 'task_role_arn', props.get('taskRoleArn'))
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def _container_definitions(self, family: str, containers: List[Dict[str, Any]],
                               context) -> List[Any]:
        """
        Escape literal template sequences and move credential-like environment
        values into sensitive variables interpolated into the JSON document
        """
        definitions = escape_literals(containers)
        for original, container in zip(containers, definitions):
            if not isinstance(container, dict):
                continue
            container_name = to_terraform_identifier(original.get('name') or 'container')
            for source_entry, entry in zip(original.get('environment') or [],
                                           container.get('environment') or []):
                if not isinstance(entry, dict):
                    continue
                key = source_entry.get('name') or ''
                if key and is_sensitive_field(key) and source_entry.get('value'):
                    logger.debug(f"Moving environment variable {key} of {family}/{container_name} "
                                 f"into a sensitive variable")
                    reference = context.mark_sensitive(
                        f"ecs_{to_terraform_identifier(family)}_{container_name}_"
                        f"{to_terraform_identifier(key)}",
                        source_entry['value'],
                        f"Environment variable {key} of container {container_name} in task {family}",
                    )
                    entry['value'] = f"${{{reference.value}}}"
        return definitions

    def get_import_id(self, resource):
        return resource.arn or resource.id


class EKSClusterMapper(ResourceMapper):
    source_type = 'AWS::EKS::Cluster'
    terraform_type = 'aws_eks_cluster'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('name'))
        role_arn = props.get('roleArn')
        if role_arn:
            attributes['role_arn'] = self.resource_reference(context, role_arn, role_arn, attribute='arn')
        set_if(attributes, 'version', props.get('version'))

        vpc = props.get('resourcesVpcConfig')
        if vpc:
            vpc_attrs: Dict[str, Any] = {}
            set_if(vpc_attrs, 'subnet_ids', vpc.get('subnetIds'))
            set_if(vpc_attrs, 'security_group_ids', vpc.get('securityGroupIds'))
            if vpc.get('endpointPublicAccess') is not None:
                vpc_attrs['endpoint_public_access'] = bool(vpc['endpointPublicAccess'])
            if vpc.get('endpointPrivateAccess') is not None:
                vpc_attrs['endpoint_private_access'] = bool(vpc['endpointPrivateAccess'])
            set_if(vpc_attrs, 'public_access_cidrs', vpc.get('publicAccessCidrs'))
            attributes['vpc_config'] = self.create_block(vpc_attrs)

        # Only the first encryption configuration is representable
        encryption = (props.get('encryptionConfig') or [None])[0]
        if encryption:
            enc_attrs: Dict[str, Any] = {}
            key_arn = (encryption.get('provider') or {}).get('keyArn')
            if key_arn:
                enc_attrs['provider'] = self.create_block({'key_arn': key_arn})
            set_if(enc_attrs, 'resources', encryption.get('resources'))
            if enc_attrs:
                attributes['encryption_config'] = self.create_block(enc_attrs)

        k8s_net = props.get('kubernetesNetworkConfig') or {}
        net_attrs: Dict[str, Any] = {}
        set_if(net_attrs, 'service_ipv4_cidr', k8s_net.get('serviceIpv4Cidr'))
        set_if(net_attrs, 'ip_family', k8s_net.get('ipFamily'))
        if net_attrs:
            attributes['kubernetes_network_config'] = self.create_block(net_attrs)

        log_types = [t for entry in (props.get('logging') or {}).get('clusterLogging') or []
                     if entry.get('enabled') for t in entry.get('types') or []]
        set_if(attributes, 'enabled_cluster_log_types', log_types)
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('name') or resource.id

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'endpoint', 'endpoint', 'Endpoint of EKS cluster'),
            self.output(resource, 'arn', 'arn', 'ARN of EKS cluster'),
            self.output(resource, 'certificate_authority', 'certificate_authority[0].data',
                        'Certificate authority data of EKS cluster', sensitive=True),
        ]


class EKSNodeGroupMapper(ResourceMapper):
    source_type = 'AWS::EKS::Nodegroup'
    terraform_type = 'aws_eks_node_group'

    def map(self, resource, context):
        props = resource.properties
        if not props.get('clusterName') or not props.get('nodegroupName'):
            return None

        attributes: Dict[str, Any] = {
            'cluster_name': props['clusterName'],
            'node_group_name': props['nodegroupName'],
        }
        set_if(attributes, 'node_role_arn', props.get('nodeRole'))
        set_if(attributes, 'subnet_ids', props.get('subnets'))
        set_if(attributes, 'instance_types', props.get('instanceTypes'))
        set_if(attributes, 'ami_type', props.get('amiType'))
        set_if(attributes, 'capacity_type', props.get('capacityType'))
        set_if(attributes, 'disk_size', props.get('diskSize'))
        set_if(attributes, 'labels', props.get('labels'))

        scaling = props.get('scalingConfig')
        if scaling:
            attributes['scaling_config'] = self.create_block({
                'desired_size': scaling.get('desiredSize', scaling.get('minSize', 1)),
                'max_size': scaling.get('maxSize', 1),
                'min_size': scaling.get('minSize', 1),
            })

        taints = []
        for taint in props.get('taints') or []:
            taint_attrs: Dict[str, Any] = {}
            for key in ('key', 'value', 'effect'):
                set_if(taint_attrs, key, taint.get(key))
            if taint_attrs:
                taints.append(self.create_block(taint_attrs))
        set_if(attributes, 'taint', taints)

        remote = props.get('remoteAccess') or {}
        remote_attrs: Dict[str, Any] = {}
        set_if(remote_attrs, 'ec2_ssh_key', remote.get('ec2SshKey'))
        set_if(remote_attrs, 'source_security_group_ids', remote.get('sourceSecurityGroups'))
        if remote_attrs:
            attributes['remote_access'] = self.create_block(remote_attrs)

        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(ignore_changes=['scaling_config[0].desired_size']),
        )

    def get_import_id(self, resource):
        props = resource.properties
        return f"{props.get('clusterName', '')}:{props.get('nodegroupName', '')}"


def get_container_mappers() -> List[ResourceMapper]:
    return [
        ECSClusterMapper(),
        ECSServiceMapper(),
        ECSTaskDefinitionMapper(),
        EKSClusterMapper(),
        EKSNodeGroupMapper(),
    ]
