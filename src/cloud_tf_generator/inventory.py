#!/usr/bin/env python3
"""
Resource Inventory Loading

Reads discovered-resource exports from JSON or YAML files. A document is
either a list of resource records or an object with a ``resources`` list, as
written by discovery scanners.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from .models import DiscoveredResource

logger = logging.getLogger(__name__)

RESOURCE_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": ["string", "integer"], "minLength": 1},
        "type": {"type": "string", "minLength": 1},
        "arn": {"type": ["string", "null"]},
        "selfLink": {"type": ["string", "null"]},
        "region": {"type": ["string", "null"]},
        "name": {"type": ["string", "null"]},
        "tags": {
            "type": ["object", "null"],
            "additionalProperties": {"type": ["string", "number", "boolean", "null"]}
        },
        "properties": {"type": ["object", "null"]},
        "relationships": {"type": ["array", "null"]},
        "discoveredAt": {"type": ["string", "null"]}
    },
    "required": ["id", "type"]
}

INVENTORY_SCHEMA = {
    "oneOf": [
        {"type": "array", "items": RESOURCE_SCHEMA},
        {
            "type": "object",
            "properties": {
                "resources": {"type": "array", "items": RESOURCE_SCHEMA}
            },
            "required": ["resources"]
        }
    ]
}


class InventoryError(Exception):
    """Raised when an inventory file cannot be read or is malformed"""


def normalize_timestamps(document: Any) -> Any:
    """
    Render YAML timestamps as ISO 8601 strings

    PyYAML loads unquoted timestamps as datetime objects, while scanners
    export them as strings.
    """
    records = document.get('resources') if isinstance(document, dict) else document
    if not isinstance(records, list):
        return document

    normalized = []
    for record in records:
        if isinstance(record, dict):
            record = {key: value.isoformat()
                      if key in ('discoveredAt', 'discovered_at') and isinstance(value, date)
                      else value
                      for key, value in record.items()}
        normalized.append(record)

    if isinstance(document, dict):
        return dict(document, resources=normalized)
    return normalized


def parse_resources(document: Any, source: str = "<inventory>") -> List[DiscoveredResource]:
    """
    Validate a parsed inventory document and build resources from it

    Args:
        document: Parsed JSON/YAML content
        source: Name used in error messages

    Returns:
        List of DiscoveredResource in document order
    """
    document = normalize_timestamps(document)
    error = best_match(Draft7Validator(INVENTORY_SCHEMA).iter_errors(document))
    if error is not None:
        location = "/".join(str(p) for p in error.absolute_path) or "document"
        raise InventoryError(f"Invalid inventory {source} at {location}: {error.message}")

    records = document['resources'] if isinstance(document, dict) else document
    resources = []
    for record in records:
        tags = record.get('tags') or {}
        record = dict(record, tags={k: '' if v is None else str(v) for k, v in tags.items()})
        resources.append(DiscoveredResource.from_dict(record))

    logger.info(f"Loaded {len(resources)} resources from {source}")
    return resources


def load_resources(path: Union[str, Path]) -> List[DiscoveredResource]:
    """
    Load discovered resources from a JSON or YAML file

    Raises:
        InventoryError: If the file is missing, unparsable or fails validation
    """
    inventory_path = Path(path).expanduser()
    if not inventory_path.is_file():
        raise InventoryError(f"Inventory file not found: {path}")

    try:
        with open(inventory_path, 'r') as f:
            if inventory_path.suffix.lower() in ['.yaml', '.yml']:
                document = yaml.safe_load(f)
            else:
                document = json.load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise InventoryError(f"Failed to read inventory {path}: {str(e)}") from e

    if document is None:
        raise InventoryError(f"Inventory {path} is empty")

    return parse_resources(document, source=str(path))


def dump_resources(resources: List[DiscoveredResource]) -> Dict[str, Any]:
    """Inverse of parse_resources, for exporting fixtures or cached scans"""
    return {'resources': [resource.to_dict() for resource in resources]}
