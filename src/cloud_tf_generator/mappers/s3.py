#!/usr/bin/env python3
"""
S3 Resource Mappers
"""

from typing import Any, Dict, List

from .base import ResourceMapper, set_if


class S3BucketMapper(ResourceMapper):
    """
    Maps S3 buckets

    Versioning, encryption and lifecycle rules are separate resources in
    provider v5 and are not generated here.
    """

    source_type = 'AWS::S3::Bucket'
    terraform_type = 'aws_s3_bucket'

    def map(self, resource, context):
        props = resource.properties
        attributes: Dict[str, Any] = {
            'bucket': props.get('bucketName') or resource.id,
        }
        if props.get('objectLockEnabled'):
            attributes['object_lock_enabled'] = True
        set_if(attributes, 'tags', self.map_tags(resource.tags))

        return self.build(resource, attributes)

    def get_import_id(self, resource):
        return resource.properties.get('bucketName') or resource.id

    def get_suggested_outputs(self, resource):
        return [
            self.output(resource, 'arn', 'arn', 'ARN of S3 bucket'),
            self.output(resource, 'bucket_domain_name', 'bucket_domain_name',
                        'Domain name of S3 bucket'),
        ]


def get_s3_mappers() -> List[ResourceMapper]:
    return [S3BucketMapper()]
