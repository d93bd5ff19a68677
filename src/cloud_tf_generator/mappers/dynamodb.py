#!/usr/bin/env python3
"""
DynamoDB Resource Mappers
"""

from typing import Any, Dict, List

from .base import ResourceMapper, set_if


def apply_key_schema(attributes: Dict[str, Any], key_schema: List[Dict[str, Any]],
                     include_hash: bool = True) -> None:
    for key in key_schema or []:
        if key.get('keyType') == 'HASH' and include_hash:
            set_if(attributes, 'hash_key', key.get('attributeName'))
        elif key.get('keyType') == 'RANGE':
            set_if(attributes, 'range_key', key.get('attributeName'))


def apply_projection(attributes: Dict[str, Any], projection: Dict[str, Any]) -> None:
    if projection:
        attributes['projection_type'] = projection.get('projectionType') or 'ALL'
        set_if(attributes, 'non_key_attributes', projection.get('nonKeyAttributes'))


def apply_throughput(attributes: Dict[str, Any], throughput: Dict[str, Any]) -> None:
    throughput = throughput or {}
    if throughput.get('readCapacityUnits') is not None:
        attributes['read_capacity'] = throughput['readCapacityUnits']
    if throughput.get('writeCapacityUnits') is not None:
        attributes['write_capacity'] = throughput['writeCapacityUnits']


class DynamoDBTableMapper(ResourceMapper):
    source_type = 'AWS::DynamoDB::Table'
    terraform_type = 'aws_dynamodb_table'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {}

        set_if(attributes, 'name', props.get('tableName'))
        set_if(attributes, 'billing_mode', (props.get('billingModeSummary') or {}).get('billingMode'))
        if attributes.get('billing_mode') != 'PAY_PER_REQUEST':
            apply_throughput(attributes, props.get('provisionedThroughput'))
        apply_key_schema(attributes, props.get('keySchema'))

        if 'hash_key' not in attributes:
            return None

        attributes['attribute'] = [
            self.create_block({'name': a['attributeName'], 'type': a['attributeType']})
            for a in props.get('attributeDefinitions') or []
            if a.get('attributeName') and a.get('attributeType')
        ]
        if not attributes['attribute']:
            del attributes['attribute']

        gsi_blocks = []
        for gsi in props.get('globalSecondaryIndexes') or []:
            gsi_attrs: Dict[str, Any] = {}
            set_if(gsi_attrs, 'name', gsi.get('indexName'))
            apply_key_schema(gsi_attrs, gsi.get('keySchema'))
            apply_projection(gsi_attrs, gsi.get('projection'))
            apply_throughput(gsi_attrs, gsi.get('provisionedThroughput'))
            if gsi_attrs:
                gsi_blocks.append(self.create_block(gsi_attrs))
        set_if(attributes, 'global_secondary_index', gsi_blocks)

        lsi_blocks = []
        for lsi in props.get('localSecondaryIndexes') or []:
            lsi_attrs: Dict[str, Any] = {}
            set_if(lsi_attrs, 'name', lsi.get('indexName'))
            apply_key_schema(lsi_attrs, lsi.get('keySchema'), include_hash=False)
            apply_projection(lsi_attrs, lsi.get('projection'))
            if lsi_attrs:
                lsi_blocks.append(self.create_block(lsi_attrs))
        set_if(attributes, 'local_secondary_index', lsi_blocks)

        ttl = props.get('timeToLiveDescription') or {}
        if ttl.get('timeToLiveStatus') == 'ENABLED' and ttl.get('attributeName'):
            attributes['ttl'] = self.create_block({
                'enabled': True,
                'attribute_name': ttl['attributeName'],
            })

        stream = props.get('streamSpecification') or {}
        if stream.get('streamEnabled'):
            attributes['stream_enabled'] = True
            set_if(attributes, 'stream_view_type', stream.get('streamViewType'))

        sse = props.get('sseDescription') or {}
        if sse.get('status') == 'ENABLED':
            sse_attrs: Dict[str, Any] = {'enabled': True}
            set_if(sse_attrs, 'kms_key_arn', sse.get('kmsMasterKeyArn'))
            attributes['server_side_encryption'] = self.create_block(sse_attrs)

        pitr = props.get('pointInTimeRecoveryDescription') or {}
        if pitr.get('pointInTimeRecoveryStatus') == 'ENABLED':
            attributes['point_in_time_recovery'] = self.create_block({'enabled': True})

        replicas = []
        for replica in props.get('replicas') or []:
            replica_attrs: Dict[str, Any] = {}
            set_if(replica_attrs, 'region_name', replica.get('regionName'))
            set_if(replica_attrs, 'kms_key_arn', replica.get('kmsKeyArn'))
            if replica_attrs:
                replicas.append(self.create_block(replica_attrs))
        set_if(attributes, 'replica', replicas)

        set_if(attributes, 'table_class', props.get('tableClass'))
        if props.get('deletionProtectionEnabled') is not None:
            attributes['deletion_protection_enabled'] = bool(props['deletionProtectionEnabled'])
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('tableName') or resource.id

    def get_suggested_outputs(self, resource):
        return [self.output(resource, 'arn', 'arn', 'ARN of DynamoDB table')]


def get_dynamodb_mappers() -> List[ResourceMapper]:
    return [DynamoDBTableMapper()]
