#!/usr/bin/env python3
"""
Mapper Registry

Lookup table from source resource type to the mapper that converts it, plus
the service classification used to split generated resources across files.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from .base import ResourceMapper
from .cloudfront import get_cloudfront_mappers
from .containers import get_container_mappers
from .dynamodb import get_dynamodb_mappers
from .ec2 import get_ec2_mappers
from .gcp import get_gcp_mappers
from .iam import get_iam_mappers
from .lambda_ import get_lambda_mappers
from .rds import get_rds_mappers
from .s3 import get_s3_mappers
from .vpc import get_vpc_mappers

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ('aws', 'google')

DEFAULT_SERVICE = 'misc'

# Exact matches win over prefix matches
TERRAFORM_TYPE_SERVICES: Dict[str, str] = {
    'aws_instance': 'ec2',
    'aws_ebs_volume': 'ec2',
    'aws_security_group': 'ec2',
    'aws_launch_template': 'ec2',
    'aws_key_pair': 'ec2',
    'aws_eip': 'ec2',
    'aws_vpc': 'vpc',
    'aws_subnet': 'vpc',
    'aws_route_table': 'vpc',
    'aws_internet_gateway': 'vpc',
    'aws_nat_gateway': 'vpc',
    'aws_vpc_endpoint': 'vpc',
    'aws_network_acl': 'vpc',
    'aws_db_instance': 'rds',
    'aws_db_subnet_group': 'rds',
    'aws_db_parameter_group': 'rds',
    'aws_rds_cluster': 'rds',
    'google_compute_instance': 'compute',
    'google_compute_disk': 'compute',
    'google_compute_network': 'network',
    'google_compute_subnetwork': 'network',
    'google_compute_firewall': 'network',
    'google_container_cluster': 'gke',
    'google_service_account': 'iam',
}

TERRAFORM_PREFIX_SERVICES = (
    ('aws_s3_', 's3'),
    ('aws_iam_', 'iam'),
    ('aws_lambda_', 'lambda'),
    ('aws_dynamodb_', 'dynamodb'),
    ('aws_ecs_', 'ecs'),
    ('aws_eks_', 'eks'),
    ('aws_cloudfront_', 'cloudfront'),
    ('google_storage_', 'storage'),
    ('google_cloudfunctions', 'functions'),
)


def get_service_for_terraform_type(terraform_type: str) -> str:
    """
    Classify a Terraform resource type into a service bucket

    Args:
        terraform_type: Resource type such as ``aws_instance``

    Returns:
        Service name used as the output file stem, ``misc`` when unknown
    """
    if terraform_type in TERRAFORM_TYPE_SERVICES:
        return TERRAFORM_TYPE_SERVICES[terraform_type]
    for prefix, service in TERRAFORM_PREFIX_SERVICES:
        if terraform_type.startswith(prefix) or terraform_type == prefix.rstrip('_'):
            return service
    return DEFAULT_SERVICE


class MapperRegistry:
    """Source type to mapper lookup, in registration order"""

    def __init__(self, mappers: Optional[List[ResourceMapper]] = None):
        self._mappers: 'OrderedDict[str, ResourceMapper]' = OrderedDict()
        for mapper in mappers or []:
            self.register(mapper)

    def register(self, mapper: ResourceMapper) -> None:
        if mapper.source_type in self._mappers:
            logger.warning(f"Replacing mapper for {mapper.source_type}")
        self._mappers[mapper.source_type] = mapper

    def get(self, source_type: str) -> Optional[ResourceMapper]:
        return self._mappers.get(source_type)

    def has(self, source_type: str) -> bool:
        return source_type in self._mappers

    def get_all(self) -> List[ResourceMapper]:
        return list(self._mappers.values())

    def supported_types(self) -> List[str]:
        return list(self._mappers.keys())

    def __len__(self):
        return len(self._mappers)

    def __contains__(self, source_type):
        return self.has(source_type)


def create_mapper_registry(provider: Optional[str] = None,
                           project: Optional[str] = None) -> MapperRegistry:
    """
    Build the registry of built-in mappers

    Args:
        provider: ``aws`` or ``google`` to restrict the table, None for both
        project: GCP project used in google import ids

    Returns:
        Populated MapperRegistry
    """
    if provider is not None and provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported provider: {provider}")

    mappers: List[ResourceMapper] = []
    if provider in (None, 'aws'):
        for factory in (get_ec2_mappers, get_vpc_mappers, get_s3_mappers, get_iam_mappers,
                        get_lambda_mappers, get_rds_mappers, get_dynamodb_mappers,
                        get_container_mappers, get_cloudfront_mappers):
            mappers.extend(factory())
    if provider in (None, 'google'):
        mappers.extend(get_gcp_mappers(project))

    registry = MapperRegistry(mappers)
    logger.debug(f"Mapper registry built with {len(registry)} mappers")
    return registry


_default_registry: Optional[MapperRegistry] = None


def _registry() -> MapperRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = create_mapper_registry()
    return _default_registry


def get_terraform_type_for_source_type(source_type: str) -> Optional[str]:
    mapper = _registry().get(source_type)
    return mapper.terraform_type if mapper else None


def is_source_type_supported(source_type: str) -> bool:
    return _registry().has(source_type)
