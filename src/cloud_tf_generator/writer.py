#!/usr/bin/env python3
"""
Generated File Writer

Writes a GeneratedFiles bundle to an output directory. The engine itself never
touches the filesystem.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Union

from .generator import GeneratedFiles
from .models import escape_template_sequences

logger = logging.getLogger(__name__)

IMPORT_SCRIPT_NAME = "import.sh"
SENSITIVE_VALUES_NAME = "sensitive.auto.tfvars"
GITIGNORE_NAME = ".gitignore"

GITIGNORE_ENTRIES = [
    SENSITIVE_VALUES_NAME,
    "*.tfstate",
    "*.tfstate.*",
    ".terraform/",
]


def format_tfvars_string(value: str) -> str:
    """Quote a literal for a .tfvars file, disabling template sequences"""
    return escape_template_sequences(json.dumps(value))


def write_generated_files(result: GeneratedFiles,
                          output_dir: Union[str, Path],
                          overwrite: bool = False,
                          write_sensitive_values: bool = False) -> List[Path]:
    """
    Write generated files to disk

    Args:
        result: Output of TerraformGenerator.generate
        output_dir: Target directory, created if missing
        overwrite: Allow writing into a non-empty directory
        write_sensitive_values: Also write sensitive.auto.tfvars and a .gitignore
            excluding it

    Returns:
        Paths of the files written

    Raises:
        FileExistsError: If the directory is not empty and overwrite is False
    """
    output_path = Path(output_dir).expanduser()
    if output_path.exists() and not output_path.is_dir():
        raise FileExistsError(f"Output path is not a directory: {output_path}")
    if output_path.is_dir() and any(output_path.iterdir()) and not overwrite:
        raise FileExistsError(f"Output directory is not empty: {output_path} (use overwrite)")

    output_path.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    for file_name, content in result.files.items():
        file_path = output_path / file_name
        with open(file_path, 'w') as f:
            f.write(content)
        written.append(file_path)
        logger.debug(f"Wrote {file_path}")

    if result.import_script:
        script_path = output_path / IMPORT_SCRIPT_NAME
        with open(script_path, 'w') as f:
            f.write(result.import_script)
        os.chmod(script_path, 0o755)
        written.append(script_path)

    if write_sensitive_values and result.sensitive_values:
        values_path = output_path / SENSITIVE_VALUES_NAME
        lines = [f"{name} = {format_tfvars_string(value)}"
                 for name, value in result.sensitive_values.items()]
        # Owner-only from creation; chmod also covers a file left by an earlier run
        fd = os.open(values_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            f.write('\n'.join(lines) + '\n')
        os.chmod(values_path, 0o600)
        written.append(values_path)

        gitignore_path = output_path / GITIGNORE_NAME
        with open(gitignore_path, 'w') as f:
            f.write('\n'.join(GITIGNORE_ENTRIES) + '\n')
        written.append(gitignore_path)
    elif result.sensitive_values:
        logger.warning(f"{len(result.sensitive_values)} sensitive values were not written; "
                       f"supply them via terraform.tfvars or TF_VAR_* variables")

    logger.info(f"Wrote {len(written)} files to {output_path}")
    return written
