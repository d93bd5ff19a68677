"""
Cloud Inventory to Terraform Generator

Converts discovered AWS and GCP resources into Terraform configuration with
import blocks, an import script, variables and outputs.
"""

__version__ = "1.0.0"

from .context import MappingContext
from .formatter import HCLFormatter
from .generator import GeneratedFiles, GenerationSummary, TerraformGenerator
from .inventory import InventoryError, load_resources
from .mappers import MapperRegistry, create_mapper_registry
from .models import DiscoveredResource
from .writer import write_generated_files

__all__ = [
    "MappingContext",
    "HCLFormatter",
    "GeneratedFiles",
    "GenerationSummary",
    "TerraformGenerator",
    "InventoryError",
    "load_resources",
    "MapperRegistry",
    "create_mapper_registry",
    "DiscoveredResource",
    "write_generated_files",
]
