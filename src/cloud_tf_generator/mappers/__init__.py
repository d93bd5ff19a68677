"""
Resource mappers and the registry that selects them
"""

from .base import ResourceMapper
from .registry import (
    MapperRegistry,
    create_mapper_registry,
    get_service_for_terraform_type,
    get_terraform_type_for_source_type,
    is_source_type_supported,
)

__all__ = [
    "ResourceMapper",
    "MapperRegistry",
    "create_mapper_registry",
    "get_service_for_terraform_type",
    "get_terraform_type_for_source_type",
    "is_source_type_supported",
]
