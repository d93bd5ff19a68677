#!/usr/bin/env python3
"""
IAM Resource Mappers

Maps IAM roles, managed policies, users, groups, instance profiles and policy
attachments. Policy documents are emitted as compact JSON strings.
"""

import json
from typing import Any, Dict, List, Optional

from ..models import escape_template_sequences
from .base import ResourceMapper, set_if


def policy_json(document: Any) -> Optional[str]:
    if not document:
        return None
    if not isinstance(document, str):
        document = json.dumps(document, separators=(',', ':'))
    # IAM policy variables such as ${aws:username} are not Terraform interpolation
    return escape_template_sequences(document)


def set_path(attributes: Dict[str, Any], path: Optional[str]) -> None:
    if path and path != '/':
        attributes['path'] = path


class IAMRoleMapper(ResourceMapper):
    source_type = 'AWS::IAM::Role'
    terraform_type = 'aws_iam_role'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'name', props.get('roleName'))
        set_path(attributes, props.get('path'))
        set_if(attributes, 'description', props.get('description'))
        set_if(attributes, 'assume_role_policy', policy_json(props.get('assumeRolePolicyDocument')))
        set_if(attributes, 'max_session_duration', props.get('maxSessionDuration'))
        set_if(attributes, 'permissions_boundary', props.get('permissionsBoundary'))
        set_if(attributes, 'managed_policy_arns',
               [p['policyArn'] for p in props.get('attachedManagedPolicies') or []
                if p.get('policyArn')])

        inline = [
            self.create_block({'name': p['policyName'], 'policy': policy_json(p['policyDocument'])})
            for p in props.get('inlinePolicies') or []
            if p.get('policyName') and p.get('policyDocument')
        ]
        set_if(attributes, 'inline_policy', inline)
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('roleName') or resource.id

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'arn', 'arn', 'ARN of IAM role')]


class IAMPolicyMapper(ResourceMapper):
    source_type = 'AWS::IAM::ManagedPolicy'
    terraform_type = 'aws_iam_policy'

    def map(self, resource, context):
        props = resource.properties
        document = policy_json(props.get('policyDocument'))
        if not document:
            return None

        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('policyName'))
        set_path(attributes, props.get('path'))
        set_if(attributes, 'description', props.get('description'))
        attributes['policy'] = document
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.arn or resource.id

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'arn', 'arn', 'ARN of IAM policy')]


class IAMUserMapper(ResourceMapper):
    source_type = 'AWS::IAM::User'
    terraform_type = 'aws_iam_user'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('userName') or resource.display_name)
        set_path(attributes, props.get('path'))
        set_if(attributes, 'permissions_boundary', props.get('permissionsBoundary'))
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('userName') or resource.id


class IAMGroupMapper(ResourceMapper):
    source_type = 'AWS::IAM::Group'
    terraform_type = 'aws_iam_group'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('groupName') or resource.display_name)
        set_path(attributes, props.get('path'))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('groupName') or resource.id


class IAMInstanceProfileMapper(ResourceMapper):
    source_type = 'AWS::IAM::InstanceProfile'
    terraform_type = 'aws_iam_instance_profile'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('instanceProfileName'))
        set_path(attributes, props.get('path'))

        # An instance profile holds at most one role
        roles = props.get('roles') or []
        if roles and roles[0].get('roleName'):
            role = roles[0]
            attributes['role'] = self.resource_reference(
                context, role.get('arn'), role['roleName'], attribute='name')
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('instanceProfileName') or resource.id


class IAMRolePolicyAttachmentMapper(ResourceMapper):
    source_type = 'AWS::IAM::RolePolicyAttachment'
    terraform_type = 'aws_iam_role_policy_attachment'

    def map(self, resource, context):
        props = resource.properties
        if not props.get('roleName') or not props.get('policyArn'):
            return None
        return self.build(resource, {
            'role': props['roleName'],
            'policy_arn': props['policyArn'],
        })

    def get_import_id(self, resource):
        props = resource.properties
        return f"{props.get('roleName', '')}/{props.get('policyArn', '')}"


def get_iam_mappers() -> List[ResourceMapper]:
    return [
        IAMRoleMapper(),
        IAMPolicyMapper(),
        IAMUserMapper(),
        IAMGroupMapper(),
        IAMInstanceProfileMapper(),
        IAMRolePolicyAttachmentMapper(),
    ]
