#!/usr/bin/env python3
"""
Terraform Data Model

This module defines the discovered-resource input record and the generic
Terraform value/block model shared by the mappers, the mapping context, the
HCL formatter and the generator.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union


@dataclass
class DiscoveredResource:
    """A cloud resource produced by an external discovery scan"""
    id: str
    type: str
    region: str = ""
    arn: Optional[str] = None
    name: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    properties: Dict[str, Any] = field(default_factory=dict)
    relationships: List[Any] = field(default_factory=list)
    discovered_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def __post_init__(self):
        if not self.name:
            self.name = self.id

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiscoveredResource":
        """
        Build a resource from a dictionary record

        Both camelCase (``discoveredAt``, ``selfLink``) and snake_case keys are
        accepted so scanner exports can be fed in unchanged.
        """
        arn = data.get('arn') or data.get('selfLink') or data.get('self_link')
        kwargs = {
            'id': str(data['id']),
            'type': data['type'],
            'region': data.get('region') or "",
            'arn': arn,
            'name': data.get('name'),
            'tags': dict(data.get('tags') or {}),
            'properties': dict(data.get('properties') or {}),
            'relationships': list(data.get('relationships') or []),
        }
        discovered_at = data.get('discoveredAt') or data.get('discovered_at')
        if discovered_at:
            kwargs['discovered_at'] = str(discovered_at)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'arn': self.arn,
            'region': self.region,
            'name': self.name,
            'tags': self.tags,
            'properties': self.properties,
            'relationships': self.relationships,
            'discoveredAt': self.discovered_at,
        }


@dataclass(frozen=True)
class Reference:
    """Pointer into another block, e.g. ``aws_vpc.main.id``. Never quoted."""
    value: str


@dataclass(frozen=True)
class Expression:
    """Opaque HCL expression emitted verbatim"""
    value: str


@dataclass
class Block:
    """Nested attribute group such as ``metadata_options { ... }``"""
    attributes: Dict[str, Any] = field(default_factory=dict)


TerraformValue = Union[
    str, int, float, bool, None, List[Any], Dict[str, Any],
    Reference, Expression, Block
]


@dataclass
class TerraformLifecycle:
    """Lifecycle meta-argument of a resource block"""
    create_before_destroy: Optional[bool] = None
    prevent_destroy: Optional[bool] = None
    ignore_changes: Optional[Union[List[str], str]] = None  # list or "all"
    replace_triggered_by: List[str] = field(default_factory=list)


@dataclass
class TerraformResource:
    """A single ``resource "type" "name" { ... }`` block"""
    type: str
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    lifecycle: Optional[TerraformLifecycle] = None
    depends_on: List[str] = field(default_factory=list)
    provider: Optional[str] = None
    count: Optional[Union[int, str]] = None
    for_each: Optional[str] = None
    source_resource: Optional[DiscoveredResource] = None

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"


@dataclass
class TerraformValidation:
    condition: str
    error_message: str


@dataclass
class TerraformVariable:
    """Input variable declaration"""
    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    default: Any = None
    sensitive: bool = False
    nullable: Optional[bool] = None
    validation: List[TerraformValidation] = field(default_factory=list)


@dataclass
class TerraformOutput:
    """Output declaration; ``value`` is a raw reference or expression string"""
    name: str
    value: str
    description: Optional[str] = None
    sensitive: bool = False
    depends_on: List[str] = field(default_factory=list)


@dataclass
class TerraformImport:
    """Import block binding an existing object to a resource address"""
    to: str
    id: str
    provider: Optional[str] = None


@dataclass
class TerraformDataSource:
    type: str
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    provider: Optional[str] = None


@dataclass
class TerraformProvider:
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    alias: Optional[str] = None


@dataclass
class TerraformFileContent:
    """Sections of one generated .tf file, rendered in a fixed order"""
    terraform: Optional[Block] = None
    providers: List[TerraformProvider] = field(default_factory=list)
    variables: List[TerraformVariable] = field(default_factory=list)
    locals: Dict[str, Any] = field(default_factory=dict)
    data_sources: List[TerraformDataSource] = field(default_factory=list)
    imports: List[TerraformImport] = field(default_factory=list)
    resources: List[TerraformResource] = field(default_factory=list)
    outputs: List[TerraformOutput] = field(default_factory=list)


# Field names treated as credentials
SENSITIVE_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r'password', r'secret', r'key', r'token',
        r'credential', r'api_key', r'private', r'auth',
    )
]

# Read-only attributes reported by cloud APIs that never belong in configuration
EXCLUDED_FIELDS = {
    'arn', 'id', 'owner_id', 'create_time', 'creation_date',
    'last_modified', 'status', 'state',
}


def is_sensitive_field(field_name: str) -> bool:
    return any(pattern.search(field_name) for pattern in SENSITIVE_PATTERNS)


def is_excluded_field(field_name: str) -> bool:
    return to_snake_case(field_name) in EXCLUDED_FIELDS


def to_terraform_identifier(name: str) -> str:
    """
    Convert an arbitrary display name into a valid Terraform identifier

    Args:
        name: Resource display name, id or key

    Returns:
        Lowercase identifier made of letters, digits and underscores
    """
    identifier = re.sub(r'[^a-zA-Z0-9_]', '_', str(name))
    if re.match(r'^[0-9]', identifier):
        identifier = '_' + identifier
    identifier = re.sub(r'_+', '_', identifier)
    identifier = identifier.rstrip('_').lower()
    return identifier or 'resource'


def to_snake_case(name: str) -> str:
    """Convert camelCase or PascalCase keys to snake_case"""
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    return name.replace('-', '_').lower()


def escape_template_sequences(text: str) -> str:
    """Disable ``${`` and ``%{`` so a literal survives inside a Terraform string"""
    return text.replace('${', '$${').replace('%{', '%%{')
