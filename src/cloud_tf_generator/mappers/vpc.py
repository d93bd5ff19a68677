#!/usr/bin/env python3
"""
VPC Resource Mappers

Maps VPCs, subnets, route tables, gateways, endpoints and network ACLs.
"""

from typing import Any, Dict, List

from ..models import escape_template_sequences
from .base import ResourceMapper, set_if


def vpc_arn(resource, vpc_id: str) -> str:
    owner = resource.properties.get('ownerId', '')
    return f"arn:aws:ec2:{resource.region}:{owner}:vpc/{vpc_id}"


class VPCMapper(ResourceMapper):
    source_type = 'AWS::EC2::VPC'
    terraform_type = 'aws_vpc'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'cidr_block', props.get('cidrBlock'))
        tenancy = props.get('instanceTenancy')
        if tenancy and tenancy != 'default':
            attributes['instance_tenancy'] = tenancy
        attributes['enable_dns_support'] = props.get('enableDnsSupport', True)
        attributes['enable_dns_hostnames'] = props.get('enableDnsHostnames', True)
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'id', 'id', 'ID of VPC'),
            self.output(resource, 'cidr_block', 'cidr_block', 'CIDR block of VPC'),
        ]


class SubnetMapper(ResourceMapper):
    source_type = 'AWS::EC2::Subnet'
    terraform_type = 'aws_subnet'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        vpc_id = props.get('vpcId')
        if vpc_id:
            attributes['vpc_id'] = self.resource_reference(context, vpc_arn(resource, vpc_id), vpc_id)
        set_if(attributes, 'cidr_block', props.get('cidrBlock'))
        set_if(attributes, 'availability_zone', props.get('availabilityZone'))
        if props.get('mapPublicIpOnLaunch') is not None:
            attributes['map_public_ip_on_launch'] = bool(props['mapPublicIpOnLaunch'])
        if props.get('assignIpv6AddressOnCreation') is not None:
            attributes['assign_ipv6_address_on_creation'] = bool(props['assignIpv6AddressOnCreation'])
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'id', 'id', 'ID of subnet')]


class RouteTableMapper(ResourceMapper):
    source_type = 'AWS::EC2::RouteTable'
    terraform_type = 'aws_route_table'

    ROUTE_TARGETS = [
        ('gatewayId', 'gateway_id'),
        ('natGatewayId', 'nat_gateway_id'),
        ('transitGatewayId', 'transit_gateway_id'),
        ('vpcPeeringConnectionId', 'vpc_peering_connection_id'),
        ('networkInterfaceId', 'network_interface_id'),
    ]

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        vpc_id = props.get('vpcId')
        if vpc_id:
            attributes['vpc_id'] = self.resource_reference(context, vpc_arn(resource, vpc_id), vpc_id)

        routes = []
        for route in props.get('routes') or []:
            # The implicit local route cannot be managed
            if route.get('gatewayId') == 'local':
                continue
            route_attrs: Dict[str, Any] = {}
            set_if(route_attrs, 'cidr_block', route.get('destinationCidrBlock'))
            set_if(route_attrs, 'ipv6_cidr_block', route.get('destinationIpv6CidrBlock'))
            for source_key, target_key in self.ROUTE_TARGETS:
                set_if(route_attrs, target_key, route.get(source_key))
            if len(route_attrs) > 1:
                routes.append(self.create_block(route_attrs))

        set_if(attributes, 'route', routes)
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)


class InternetGatewayMapper(ResourceMapper):
    source_type = 'AWS::EC2::InternetGateway'
    terraform_type = 'aws_internet_gateway'

    def map(self, resource, context):
        attributes: Dict[str, Any] = {}
        attachments = resource.properties.get('attachments') or []
        if attachments and attachments[0].get('vpcId'):
            vpc_id = attachments[0]['vpcId']
            attributes['vpc_id'] = self.resource_reference(context, vpc_arn(resource, vpc_id), vpc_id)
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)


class NatGatewayMapper(ResourceMapper):
    source_type = 'AWS::EC2::NatGateway'
    terraform_type = 'aws_nat_gateway'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'subnet_id', props.get('subnetId'))
        set_if(attributes, 'connectivity_type', props.get('connectivityType'))
        addresses = props.get('natGatewayAddresses') or []
        if addresses:
            set_if(attributes, 'allocation_id', addresses[0].get('allocationId'))
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)


class VPCEndpointMapper(ResourceMapper):
    source_type = 'AWS::EC2::VPCEndpoint'
    terraform_type = 'aws_vpc_endpoint'

    def map(self, resource, context):
        props = resource.properties
        if not props.get('serviceName'):
            return None

        attributes: Dict[str, Any] = {}
        set_if(attributes, 'vpc_id', props.get('vpcId'))
        attributes['service_name'] = props['serviceName']
        set_if(attributes, 'vpc_endpoint_type', props.get('vpcEndpointType'))
        set_if(attributes, 'route_table_ids', props.get('routeTableIds'))
        set_if(attributes, 'subnet_ids', props.get('subnetIds'))
        set_if(attributes, 'security_group_ids',
               [sg['groupId'] for sg in props.get('securityGroups') or [] if sg.get('groupId')])
        if props.get('privateDnsEnabled') is not None:
            attributes['private_dns_enabled'] = bool(props['privateDnsEnabled'])
        if isinstance(props.get('policyDocument'), str):
            attributes['policy'] = escape_template_sequences(props['policyDocument'])
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)


class NetworkAclMapper(ResourceMapper):
    source_type = 'AWS::EC2::NetworkAcl'
    terraform_type = 'aws_network_acl'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'vpc_id', props.get('vpcId'))
        set_if(attributes, 'subnet_ids',
               [a['subnetId'] for a in props.get('associations') or [] if a.get('subnetId')])

        ingress, egress = [], []
        for entry in props.get('entries') or []:
            rule: Dict[str, Any] = {
                'rule_no': entry.get('ruleNumber'),
                'protocol': entry.get('protocol'),
                'action': entry.get('ruleAction'),
            }
            set_if(rule, 'cidr_block', entry.get('cidrBlock'))
            set_if(rule, 'ipv6_cidr_block', entry.get('ipv6CidrBlock'))
            port_range = entry.get('portRange')
            if isinstance(port_range, dict):
                rule['from_port'] = port_range.get('From') or port_range.get('from') or 0
                rule['to_port'] = port_range.get('To') or port_range.get('to') or 0
            (egress if entry.get('egress') else ingress).append(self.create_block(rule))

        set_if(attributes, 'ingress', ingress)
        set_if(attributes, 'egress', egress)
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)


def get_vpc_mappers() -> List[ResourceMapper]:
    return [
        VPCMapper(),
        SubnetMapper(),
        RouteTableMapper(),
        InternetGatewayMapper(),
        NatGatewayMapper(),
        VPCEndpointMapper(),
        NetworkAclMapper(),
    ]
