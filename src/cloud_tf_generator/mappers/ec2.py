#!/usr/bin/env python3
"""
EC2 Resource Mappers

Maps EC2 instances, volumes, security groups, launch templates, key pairs and
elastic IPs to Terraform configuration.
"""

import logging
from typing import Any, Dict, List, Optional

from ..context import MappingContext
from ..models import (
    DiscoveredResource, TerraformLifecycle, TerraformOutput, TerraformResource,
    TerraformVariable,
)
from .base import ResourceMapper, name_from_arn, set_if

logger = logging.getLogger(__name__)


def subnet_arn(resource: DiscoveredResource, subnet_id: str) -> str:
    owner = resource.properties.get('ownerId', '')
    return f"arn:aws:ec2:{resource.region}:{owner}:subnet/{subnet_id}"


def security_group_arn(resource: DiscoveredResource, group_id: str) -> str:
    owner = resource.properties.get('ownerId', '')
    return f"arn:aws:ec2:{resource.region}:{owner}:security-group/{group_id}"


class EC2InstanceMapper(ResourceMapper):
    source_type = 'AWS::EC2::Instance'
    terraform_type = 'aws_instance'

    def map(self, resource: DiscoveredResource,
            context: MappingContext) -> Optional[TerraformResource]:
        props = resource.properties
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'ami', props.get('imageId'))
        set_if(attributes, 'instance_type', props.get('instanceType'))
        set_if(attributes, 'key_name', props.get('keyName'))

        subnet_id = props.get('subnetId')
        if subnet_id:
            attributes['subnet_id'] = self.resource_reference(
                context, subnet_arn(resource, subnet_id), subnet_id)

        group_ids = [sg.get('groupId') for sg in props.get('securityGroups') or []
                     if sg.get('groupId')]
        if group_ids:
            attributes['vpc_security_group_ids'] = [
                self.resource_reference(context, security_group_arn(resource, gid), gid)
                for gid in group_ids
            ]

        profile = props.get('iamInstanceProfile') or {}
        profile_name = name_from_arn(profile.get('arn'), 'instance-profile')
        set_if(attributes, 'iam_instance_profile', profile_name)

        if props.get('ebsOptimized'):
            attributes['ebs_optimized'] = True

        monitoring = props.get('monitoring')
        if isinstance(monitoring, dict):
            monitoring = monitoring.get('state')
        if monitoring == 'enabled':
            attributes['monitoring'] = True

        metadata = props.get('metadataOptions')
        if metadata:
            attributes['metadata_options'] = self.create_block({
                'http_endpoint': metadata.get('httpEndpoint') or 'enabled',
                'http_tokens': metadata.get('httpTokens') or 'optional',
                'http_put_response_hop_limit': metadata.get('httpPutResponseHopLimit') or 1,
            })

        root_device = props.get('rootBlockDevice')
        if root_device:
            root_attrs: Dict[str, Any] = {}
            set_if(root_attrs, 'volume_size', root_device.get('volumeSize'))
            set_if(root_attrs, 'volume_type', root_device.get('volumeType'))
            set_if(root_attrs, 'encrypted', root_device.get('encrypted'))
            if root_attrs:
                attributes['root_block_device'] = self.create_block(root_attrs)

        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(ignore_changes=['ami', 'user_data']),
        )

    def get_suggested_outputs(self, resource: DiscoveredResource) -> List[TerraformOutput]:
        return [
            self.output(resource, 'id', 'id', 'ID of EC2 instance'),
            self.output(resource, 'private_ip', 'private_ip', 'Private IP of EC2 instance'),
        ]


class EBSVolumeMapper(ResourceMapper):
    source_type = 'AWS::EC2::Volume'
    terraform_type = 'aws_ebs_volume'

    def map(self, resource, context):
        props = resource.properties
        if not props.get('availabilityZone'):
            logger.debug(f"Volume {resource.id} has no availability zone")
            return None

        attributes: Dict[str, Any] = {'availability_zone': props['availabilityZone']}
        set_if(attributes, 'size', props.get('size'))
        set_if(attributes, 'type', props.get('volumeType'))
        set_if(attributes, 'iops', props.get('iops'))
        set_if(attributes, 'throughput', props.get('throughput'))
        if props.get('encrypted'):
            attributes['encrypted'] = True
        set_if(attributes, 'kms_key_id', props.get('kmsKeyId'))
        set_if(attributes, 'snapshot_id', props.get('snapshotId'))
        if props.get('multiAttachEnabled'):
            attributes['multi_attach_enabled'] = True
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)


class SecurityGroupMapper(ResourceMapper):
    source_type = 'AWS::EC2::SecurityGroup'
    terraform_type = 'aws_security_group'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'name', props.get('groupName'))
        set_if(attributes, 'description', props.get('description'))
        vpc_id = props.get('vpcId')
        if vpc_id:
            owner = props.get('ownerId', '')
            attributes['vpc_id'] = self.resource_reference(
                context, f"arn:aws:ec2:{resource.region}:{owner}:vpc/{vpc_id}", vpc_id)

        ingress = [self._rule_block(rule) for rule in props.get('ingressRules') or []]
        egress = [self._rule_block(rule) for rule in props.get('egressRules') or []]
        set_if(attributes, 'ingress', ingress)
        set_if(attributes, 'egress', egress)
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(create_before_destroy=True),
        )

    def _rule_block(self, rule: Dict[str, Any]):
        attrs: Dict[str, Any] = {
            'from_port': rule.get('fromPort') or 0,
            'to_port': rule.get('toPort') or 0,
            'protocol': rule.get('ipProtocol') or '-1',
        }
        ip_ranges = rule.get('ipRanges') or []
        set_if(attrs, 'cidr_blocks', [r['cidrIp'] for r in ip_ranges if r.get('cidrIp')])
        set_if(attrs, 'ipv6_cidr_blocks',
               [r['cidrIpv6'] for r in rule.get('ipv6Ranges') or [] if r.get('cidrIpv6')])
        set_if(attrs, 'security_groups',
               [g['groupId'] for g in rule.get('securityGroups') or [] if g.get('groupId')])
        description = next((r['description'] for r in ip_ranges if r.get('description')), None)
        set_if(attrs, 'description', description)
        return self.create_block(attrs)


class LaunchTemplateMapper(ResourceMapper):
    source_type = 'AWS::EC2::LaunchTemplate'
    terraform_type = 'aws_launch_template'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('launchTemplateName'))

        data = props.get('launchTemplateData') or {}
        set_if(attributes, 'image_id', data.get('imageId'))
        set_if(attributes, 'instance_type', data.get('instanceType'))
        set_if(attributes, 'key_name', data.get('keyName'))
        set_if(attributes, 'vpc_security_group_ids', data.get('securityGroupIds'))
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)


class KeyPairMapper(ResourceMapper):
    source_type = 'AWS::EC2::KeyPair'
    terraform_type = 'aws_key_pair'

    def map(self, resource, context):
        props = resource.properties
        name = self.generate_resource_name(resource)
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'key_name', props.get('keyName'))

        # Public key material is not returned by the API
        var_name = context.add_variable(TerraformVariable(
            name=f"key_pair_{name}_public_key",
            type='string',
            description=f"Public key for key pair {props.get('keyName') or name}",
        ))
        attributes['public_key'] = self.create_reference(f"var.{var_name}")
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('keyName') or resource.id


class ElasticIPMapper(ResourceMapper):
    source_type = 'AWS::EC2::EIP'
    terraform_type = 'aws_eip'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {'domain': props.get('domain') or 'vpc'}

        instance_id = props.get('instanceId')
        if instance_id:
            owner = props.get('ownerId', '')
            attributes['instance'] = self.resource_reference(
                context, f"arn:aws:ec2:{resource.region}:{owner}:instance/{instance_id}",
                instance_id)
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(prevent_destroy=True),
        )

    def get_import_id(self, resource):
        return resource.properties.get('allocationId') or resource.id

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'public_ip', 'public_ip', 'Public IP of elastic IP')]


def get_ec2_mappers() -> List[ResourceMapper]:
    return [
        EC2InstanceMapper(),
        EBSVolumeMapper(),
        SecurityGroupMapper(),
        LaunchTemplateMapper(),
        KeyPairMapper(),
        ElasticIPMapper(),
    ]
