#!/usr/bin/env python3
"""
Lambda Resource Mappers

Deployment packages cannot be recovered from the API, so every function and
layer gets a ``filename`` variable pointing at a local archive. Environment
variables whose names look like credentials are moved into sensitive
variables.
"""

import logging
from typing import Any, Dict, List

from ..models import (
    TerraformLifecycle, TerraformVariable, is_sensitive_field, to_terraform_identifier,
)
from .base import ResourceMapper, set_if

logger = logging.getLogger(__name__)

CODE_IGNORE_CHANGES = ['filename', 'source_code_hash']


class LambdaFunctionMapper(ResourceMapper):
    source_type = 'AWS::Lambda::Function'
    terraform_type = 'aws_lambda_function'

    def map(self, resource, context):
        props = resource.properties
        name = self.generate_resource_name(resource)
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'function_name', props.get('functionName'))
        set_if(attributes, 'runtime', props.get('runtime'))
        set_if(attributes, 'handler', props.get('handler'))
        role = props.get('role')
        if role:
            attributes['role'] = self.resource_reference(context, role, role, attribute='arn')
        set_if(attributes, 'memory_size', props.get('memorySize'))
        set_if(attributes, 'timeout', props.get('timeout'))
        set_if(attributes, 'description', props.get('description'))

        code_var = context.add_variable(TerraformVariable(
            name=f"lambda_{name}_filename",
            type='string',
            description=f"Path to deployment package for Lambda function {name}",
            default='placeholder.zip',
        ))
        attributes['filename'] = self.create_reference(f"var.{code_var}")

        set_if(attributes, 'package_type', props.get('packageType'))
        set_if(attributes, 'architectures', props.get('architectures'))
        set_if(attributes, 'layers', props.get('layers'))
        if props.get('reservedConcurrentExecutions') is not None:
            attributes['reserved_concurrent_executions'] = props['reservedConcurrentExecutions']

        env_vars = (props.get('environment') or {}).get('variables') or {}
        if env_vars:
            attributes['environment'] = self.create_block({
                'variables': self._environment(name, env_vars, context),
            })

        vpc = props.get('vpcConfig') or {}
        if vpc.get('subnetIds') or vpc.get('securityGroupIds'):
            vpc_attrs: Dict[str, Any] = {}
            set_if(vpc_attrs, 'subnet_ids', vpc.get('subnetIds'))
            set_if(vpc_attrs, 'security_group_ids', vpc.get('securityGroupIds'))
            attributes['vpc_config'] = self.create_block(vpc_attrs)

        target_arn = (props.get('deadLetterConfig') or {}).get('targetArn')
        if target_arn:
            attributes['dead_letter_config'] = self.create_block({'target_arn': target_arn})

        tracing_mode = (props.get('tracingConfig') or {}).get('mode')
        if tracing_mode:
            attributes['tracing_config'] = self.create_block({'mode': tracing_mode})

        storage_size = (props.get('ephemeralStorage') or {}).get('size')
        if storage_size:
            attributes['ephemeral_storage'] = self.create_block({'size': storage_size})

        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(ignore_changes=list(CODE_IGNORE_CHANGES)),
        )

    def _environment(self, name: str, env_vars: Dict[str, str], context) -> Dict[str, Any]:
        variables: Dict[str, Any] = {}
        for key, value in env_vars.items():
            if is_sensitive_field(key) and value:
                logger.debug(f"Moving environment variable {key} of {name} into a sensitive variable")
                variables[key] = context.mark_sensitive(
                    f"lambda_{name}_{to_terraform_identifier(key)}", value,
                    f"Environment variable {key} of Lambda function {name}",
                )
            else:
                variables[key] = value
        return variables

    def get_import_id(self, resource):
        return resource.properties.get('functionName') or resource.id

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'arn', 'arn', 'ARN of Lambda function'),
            self.output(resource, 'invoke_arn', 'invoke_arn', 'Invoke ARN of Lambda function'),
        ]


class LambdaLayerMapper(ResourceMapper):
    source_type = 'AWS::Lambda::LayerVersion'
    terraform_type = 'aws_lambda_layer_version'

    def map(self, resource, context):
        props = resource.properties
        name = self.generate_resource_name(resource)
        attributes: Dict[str, Any] = {
            'layer_name': props.get('layerName') or resource.display_name,
        }
        set_if(attributes, 'description', props.get('description'))
        set_if(attributes, 'compatible_runtimes', props.get('compatibleRuntimes'))
        set_if(attributes, 'compatible_architectures', props.get('compatibleArchitectures'))

        code_var = context.add_variable(TerraformVariable(
            name=f"lambda_layer_{name}_filename",
            type='string',
            description=f"Path to deployment package for Lambda layer {name}",
            default='placeholder.zip',
        ))
        attributes['filename'] = self.create_reference(f"var.{code_var}")

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(ignore_changes=list(CODE_IGNORE_CHANGES)),
        )

    def get_import_id(self, resource):
        return resource.arn or resource.id


class LambdaPermissionMapper(ResourceMapper):
    source_type = 'AWS::Lambda::Permission'
    terraform_type = 'aws_lambda_permission'

    def map(self, resource, context):
        props = resource.properties
        if not props.get('functionName') or not props.get('principal'):
            return None

        attributes: Dict[str, Any] = {}
        set_if(attributes, 'statement_id', props.get('statementId'))
        attributes['action'] = props.get('action') or 'lambda:InvokeFunction'
        attributes['function_name'] = props['functionName']
        attributes['principal'] = props['principal']
        set_if(attributes, 'source_arn', props.get('sourceArn'))
        set_if(attributes, 'source_account', props.get('sourceAccount'))
        set_if(attributes, 'qualifier', props.get('qualifier'))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        props = resource.properties
        return f"{props.get('functionName', '')}/{props.get('statementId', '')}"


def get_lambda_mappers() -> List[ResourceMapper]:
    return [
        LambdaFunctionMapper(),
        LambdaLayerMapper(),
        LambdaPermissionMapper(),
    ]
