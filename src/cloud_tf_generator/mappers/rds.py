#!/usr/bin/env python3
"""
RDS Resource Mappers

Maps DB instances, Aurora clusters, subnet groups and parameter groups.
Master credentials never appear as literals: usernames become variables and
passwords become sensitive variables.
"""

from typing import Any, Dict, List, Optional

from ..models import (
    Reference, TerraformLifecycle, TerraformVariable, to_snake_case,
)
from .base import ResourceMapper, set_if

PASSWORD_FIELDS = ('masterUserPassword', 'masterPassword')


def credential_references(mapper: ResourceMapper, resource, context, prefix: str,
                          kind: str):
    """
    Build username and password references for a database resource

    Returns:
        Tuple of (username reference or None, password reference)
    """
    props = resource.properties
    name = mapper.generate_resource_name(resource)

    username: Optional[Reference] = None
    if props.get('masterUsername'):
        var_name = context.add_variable(TerraformVariable(
            name=f"{prefix}_{name}_username",
            type='string',
            description=f"Master username for {kind} {name}",
        ))
        username = mapper.create_reference(f"var.{var_name}")

    for field_name in PASSWORD_FIELDS:
        if props.get(field_name):
            password = context.mark_sensitive(
                f"{prefix}_{name}_{to_snake_case(field_name)}", props[field_name],
                f"Master password for {kind} {name}",
            )
            return username, password

    var_name = context.add_variable(TerraformVariable(
        name=f"{prefix}_{name}_password",
        type='string',
        description=f"Master password for {kind} {name}",
        sensitive=True,
    ))
    return username, mapper.create_reference(f"var.{var_name}")


class RDSInstanceMapper(ResourceMapper):
    source_type = 'AWS::RDS::DBInstance'
    terraform_type = 'aws_db_instance'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'identifier', props.get('dbInstanceIdentifier'))
        set_if(attributes, 'instance_class', props.get('dbInstanceClass'))
        set_if(attributes, 'engine', props.get('engine'))
        set_if(attributes, 'engine_version', props.get('engineVersion'))
        set_if(attributes, 'allocated_storage', props.get('allocatedStorage'))
        set_if(attributes, 'storage_type', props.get('storageType'))
        set_if(attributes, 'iops', props.get('iops'))
        if props.get('storageEncrypted'):
            attributes['storage_encrypted'] = True
        set_if(attributes, 'kms_key_id', props.get('kmsKeyId'))
        set_if(attributes, 'db_subnet_group_name', props.get('dbSubnetGroupName'))
        set_if(attributes, 'vpc_security_group_ids',
               [sg['vpcSecurityGroupId'] for sg in props.get('vpcSecurityGroups') or []
                if sg.get('vpcSecurityGroupId')])
        if props.get('publiclyAccessible') is not None:
            attributes['publicly_accessible'] = bool(props['publiclyAccessible'])
        set_if(attributes, 'port', props.get('port'))
        set_if(attributes, 'db_name', props.get('dbName'))

        username, password = credential_references(self, resource, context, 'db', 'RDS instance')
        set_if(attributes, 'username', username)
        attributes['password'] = password

        set_if(attributes, 'parameter_group_name', props.get('dbParameterGroupName'))
        set_if(attributes, 'option_group_name', props.get('optionGroupName'))
        if props.get('backupRetentionPeriod') is not None:
            attributes['backup_retention_period'] = props['backupRetentionPeriod']
        set_if(attributes, 'backup_window', props.get('preferredBackupWindow'))
        set_if(attributes, 'maintenance_window', props.get('preferredMaintenanceWindow'))
        if props.get('multiAZ') is not None:
            attributes['multi_az'] = bool(props['multiAZ'])
        if props.get('autoMinorVersionUpgrade') is not None:
            attributes['auto_minor_version_upgrade'] = bool(props['autoMinorVersionUpgrade'])
        if props.get('performanceInsightsEnabled'):
            attributes['performance_insights_enabled'] = True
            set_if(attributes, 'performance_insights_kms_key_id',
                   props.get('performanceInsightsKMSKeyId'))
            set_if(attributes, 'performance_insights_retention_period',
                   props.get('performanceInsightsRetentionPeriod'))
        set_if(attributes, 'monitoring_interval', props.get('monitoringInterval'))
        set_if(attributes, 'monitoring_role_arn', props.get('monitoringRoleArn'))
        if props.get('deletionProtection') is not None:
            attributes['deletion_protection'] = bool(props['deletionProtection'])
        attributes['skip_final_snapshot'] = True
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(ignore_changes=['password']),
        )

    def get_import_id(self, resource):
        return resource.properties.get('dbInstanceIdentifier') or resource.id

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'endpoint', 'endpoint', 'Endpoint of RDS instance'),
            self.output(resource, 'arn', 'arn', 'ARN of RDS instance'),
        ]


class RDSClusterMapper(ResourceMapper):
    source_type = 'AWS::RDS::DBCluster'
    terraform_type = 'aws_rds_cluster'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'cluster_identifier', props.get('dbClusterIdentifier'))
        set_if(attributes, 'engine', props.get('engine'))
        set_if(attributes, 'engine_version', props.get('engineVersion'))
        set_if(attributes, 'engine_mode', props.get('engineMode'))
        set_if(attributes, 'database_name', props.get('databaseName'))

        username, password = credential_references(
            self, resource, context, 'cluster', 'Aurora cluster')
        set_if(attributes, 'master_username', username)
        attributes['master_password'] = password

        set_if(attributes, 'db_subnet_group_name', props.get('dbSubnetGroupName'))
        set_if(attributes, 'vpc_security_group_ids', props.get('vpcSecurityGroupIds'))
        set_if(attributes, 'port', props.get('port'))
        set_if(attributes, 'db_cluster_parameter_group_name',
               props.get('dbClusterParameterGroupName'))
        if props.get('storageEncrypted'):
            attributes['storage_encrypted'] = True
        set_if(attributes, 'kms_key_id', props.get('kmsKeyId'))
        if props.get('backupRetentionPeriod') is not None:
            attributes['backup_retention_period'] = props['backupRetentionPeriod']
        set_if(attributes, 'preferred_backup_window', props.get('preferredBackupWindow'))
        set_if(attributes, 'preferred_maintenance_window', props.get('preferredMaintenanceWindow'))
        if props.get('deletionProtection') is not None:
            attributes['deletion_protection'] = bool(props['deletionProtection'])
        if props.get('iamDatabaseAuthenticationEnabled') is not None:
            attributes['iam_database_authentication_enabled'] = bool(
                props['iamDatabaseAuthenticationEnabled'])
        attributes['skip_final_snapshot'] = True
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(
            resource, attributes,
            lifecycle=TerraformLifecycle(ignore_changes=['master_password']),
        )

    def get_import_id(self, resource):
        return resource.properties.get('dbClusterIdentifier') or resource.id

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'endpoint', 'endpoint', 'Writer endpoint of Aurora cluster'),
            self.output(resource, 'reader_endpoint', 'reader_endpoint',
                        'Reader endpoint of Aurora cluster'),
        ]


class RDSSubnetGroupMapper(ResourceMapper):
    source_type = 'AWS::RDS::DBSubnetGroup'
    terraform_type = 'aws_db_subnet_group'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('dbSubnetGroupName'))
        set_if(attributes, 'description', props.get('dbSubnetGroupDescription'))
        set_if(attributes, 'subnet_ids',
               [s['subnetIdentifier'] for s in props.get('subnets') or []
                if s.get('subnetIdentifier')])
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('dbSubnetGroupName') or resource.id


class RDSParameterGroupMapper(ResourceMapper):
    source_type = 'AWS::RDS::DBParameterGroup'
    terraform_type = 'aws_db_parameter_group'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}
        set_if(attributes, 'name', props.get('dbParameterGroupName'))
        set_if(attributes, 'family', props.get('dbParameterGroupFamily'))
        set_if(attributes, 'description', props.get('description'))

        parameters = []
        for param in props.get('parameters') or []:
            if not param.get('parameterName') or param.get('parameterValue') is None:
                continue
            param_attrs: Dict[str, Any] = {
                'name': param['parameterName'],
                'value': str(param['parameterValue']),
            }
            set_if(param_attrs, 'apply_method', param.get('applyMethod'))
            parameters.append(self.create_block(param_attrs))

        set_if(attributes, 'parameter', parameters)
        set_if(attributes, 'tags', self.map_tags(resource.tags))
        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('dbParameterGroupName') or resource.id


def get_rds_mappers() -> List[ResourceMapper]:
    return [
        RDSInstanceMapper(),
        RDSClusterMapper(),
        RDSSubnetGroupMapper(),
        RDSParameterGroupMapper(),
    ]
