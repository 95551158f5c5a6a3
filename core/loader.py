"""
Registry loader
Reads a named JSON document from the data directory
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from config import settings
from config.registries import RegistryConfig, get_registry
from core.errors import RegistryFileNotFoundError, RegistryParseError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Registry:
    """A loaded registry document"""
    name: str
    path: Path
    records: Any  # list of records, or dict for mapping-shaped registries
    total: int = 0  # record count before the chain filter
    config: RegistryConfig | None = field(default=None, repr=False)
    raw: Any = field(default=None, repr=False)  # document as loaded, before the chain filter

    def __post_init__(self):
        if self.raw is None:
            self.raw = self.records

    def __len__(self) -> int:
        return len(self.records)


def resolve_data_dir(data_dir: str | Path | None = None) -> Path:
    return Path(data_dir) if data_dir is not None else settings.DATA_DIR


def load_json_file(file_name: str, data_dir: str | Path | None = None) -> Any:
    """
    Load and parse a JSON document

    Raises:
        RegistryFileNotFoundError: the file does not exist
        RegistryParseError: the file is not valid JSON
    """
    path = resolve_data_dir(data_dir) / file_name
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise RegistryFileNotFoundError(f"Registry file not found: {path}") from e

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise RegistryParseError(f"Invalid JSON in {path}: {e}") from e


def load_registry(
    name: str,
    data_dir: str | Path | None = None,
    apply_chain_filter: bool = True,
) -> Registry:
    """Load a registry by name and apply its production chain allow-list"""
    config = get_registry(name)
    path = resolve_data_dir(data_dir) / config.file_name
    data = load_json_file(config.file_name, data_dir)

    if not isinstance(data, config.root_type):
        raise RegistryParseError(
            f"{path} must contain a JSON {'array' if config.root_type is list else 'object'}"
        )

    raw = data
    total = len(data)
    if isinstance(data, list) and apply_chain_filter:
        data = [r for r in data if not isinstance(r, dict) or config.accepts(r)]

    logger.debug(f"Loaded {name}: {len(data)}/{total} records from {path}")
    return Registry(name=name, path=path, records=data, total=total, config=config, raw=raw)


def load_registries(
    names: Iterable[str],
    data_dir: str | Path | None = None,
) -> dict[str, Registry]:
    """Load several registries, aborting on the first infrastructure error"""
    return {name: load_registry(name, data_dir) for name in names}
