"""
Local form descriptor source.

Loads descriptors from JSON or YAML files, either a bare form object or the
service's ``{"message": ..., "form": {...}}`` envelope. Useful for development
and for running the console runner without the remote service.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..schemas.form_schemas import Form, FormDescriptorError, parse_form_descriptor

logger = logging.getLogger(__name__)


class FileFormSource:
    """
    Descriptor source backed by files on disk.

    Either a single file serves every roll number, or ``roll_number_files`` maps
    roll numbers to their own file.
    """

    def __init__(
        self,
        path: Union[str, Path],
        roll_number_files: Optional[Dict[str, Union[str, Path]]] = None,
    ):
        self.path = Path(path)
        self.roll_number_files = {
            roll: Path(file_path) for roll, file_path in (roll_number_files or {}).items()
        }

    def _path_for(self, roll_number: str) -> Path:
        return self.roll_number_files.get(roll_number, self.path)

    @staticmethod
    def load_payload(path: Path) -> Any:
        """Decode a descriptor file by extension (.yaml/.yml or JSON)."""
        if not path.exists():
            raise FormDescriptorError(f"Form descriptor file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                try:
                    return yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise FormDescriptorError(f"Invalid YAML in {path}: {e}") from e
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise FormDescriptorError(f"Invalid JSON in {path}: {e}") from e

    async def get_form(self, roll_number: str) -> Form:
        path = self._path_for(roll_number)
        payload = self.load_payload(path)

        if isinstance(payload, dict) and isinstance(payload.get("form"), dict):
            payload = payload["form"]

        form = parse_form_descriptor(payload)
        logger.info(f"Loaded form '{form.form_id}' v{form.version} from {path} for roll number {roll_number}")
        return form
