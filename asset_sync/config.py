"""
Configuration for asset_sync.

Settings are loaded from a YAML file and overridden by ``ASSET_SYNC_*``
environment variables, then validated with Pydantic. The resulting
``AssetSyncSettings`` object is passed explicitly to repositories and use
cases; no module keeps credentials or workspace ids as globals.

Example ``~/.config/asset-sync/config.yaml``::

    asset_directory:
      workspace_id: 9639f74b-a7d7-4189-9acb-9a493cbfe46f
      email: automation@example.com
      object_schema_id: "14"
    document_store:
      base_url: https://example.atlassian.net/wiki/rest/api
      space_key: JSMROVO
    attributes:
      ownership_attribute_id: "1567"
    employee_resolver: live
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError

from asset_sync.domain import AssetObject, EmployeeRecord

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/asset-sync/config.yaml"
ASSETS_API_TEMPLATE = (
    "https://api.atlassian.com/jsm/assets/workspace/{workspace_id}/v1"
)

# Environment variable -> (section, key). A section of None is top level.
ENV_OVERRIDES: Dict[str, tuple] = {
    "ASSET_SYNC_WORKSPACE_ID": ("asset_directory", "workspace_id"),
    "ASSET_SYNC_API_BASE_URL": ("asset_directory", "api_base_url"),
    "ASSET_SYNC_EMAIL": ("asset_directory", "email"),
    "ASSET_SYNC_API_TOKEN": ("asset_directory", "api_token"),
    "ASSET_SYNC_SCHEMA_ID": ("asset_directory", "object_schema_id"),
    "ASSET_SYNC_WIKI_BASE_URL": ("document_store", "base_url"),
    "ASSET_SYNC_WIKI_SPACE_KEY": ("document_store", "space_key"),
    "ASSET_SYNC_WIKI_PAGE_TITLE": ("document_store", "page_title"),
    "ASSET_SYNC_EMPLOYEE_RESOLVER": (None, "employee_resolver"),
    "ASSET_SYNC_ROSTER_CACHE_PATH": (None, "roster_cache_path"),
    "ASSET_SYNC_SNAPSHOT_PATH": (None, "snapshot_path"),
    "TEMPORAL_ADDRESS": (None, "temporal_address"),
    "ASSET_SYNC_TASK_QUEUE": (None, "task_queue"),
}


class ConfigurationError(Exception):
    """Raised when the configuration file or environment is invalid."""

    pass


class AttributeMapping(BaseModel):
    """Fixed object type and attribute ids of the directory schema."""

    employee_object_type_id: str = "166"
    employee_name_attribute_id: str = "1552"
    employee_id_attribute_id: str = "1561"
    employee_id_attribute_name: str = Field(
        "Employee ID",
        description="Attribute name used when querying by business key",
    )
    asset_object_type_id: str = "167"
    ownership_attribute_id: str = "1567"

    def employee_from_object(
        self, obj: AssetObject
    ) -> Optional[EmployeeRecord]:
        """Read an employee record out of a directory object.

        Returns None when the object carries no employee id.
        """
        employee_id = obj.first_value(self.employee_id_attribute_id)
        if not employee_id:
            return None
        return EmployeeRecord(
            employee_id=employee_id,
            object_key=obj.object_key,
            username=obj.first_value(self.employee_name_attribute_id),
        )


class AssetDirectorySettings(BaseModel):
    workspace_id: str = ""
    api_base_url: Optional[str] = Field(
        None, description="Overrides the URL derived from workspace_id"
    )
    email: str = ""
    api_token: SecretStr = SecretStr("")
    object_schema_id: str = "14"
    page_size: int = Field(100, gt=0)
    timeout_seconds: float = Field(30.0, gt=0)

    @property
    def base_url(self) -> str:
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        if not self.workspace_id:
            raise ConfigurationError(
                "asset_directory.workspace_id or api_base_url is required"
            )
        return ASSETS_API_TEMPLATE.format(workspace_id=self.workspace_id)


class DocumentStoreSettings(BaseModel):
    base_url: str = ""
    space_key: str = ""
    page_title: Optional[str] = Field(
        None,
        description=(
            "Stable page title to update in place. When unset every publish "
            "creates a new timestamped page."
        ),
    )
    email: Optional[str] = None
    api_token: Optional[SecretStr] = None
    timeout_seconds: float = Field(30.0, gt=0)


class PublishOptions(BaseModel):
    """Serialisable options for one inventory publish run."""

    object_schema_id: str
    space_key: str
    page_title: Optional[str] = None
    write_snapshot: bool = True


class AssetSyncSettings(BaseModel):
    asset_directory: AssetDirectorySettings = Field(
        default_factory=AssetDirectorySettings
    )
    document_store: DocumentStoreSettings = Field(
        default_factory=DocumentStoreSettings
    )
    attributes: AttributeMapping = Field(default_factory=AttributeMapping)
    employee_resolver: Literal["live", "cache"] = "live"
    roster_cache_path: str = "roster.json"
    snapshot_path: Optional[str] = "response.json"
    temporal_address: str = "localhost:7233"
    task_queue: str = "asset-sync-task-queue"

    @property
    def publish_options(self) -> PublishOptions:
        return PublishOptions(
            object_schema_id=self.asset_directory.object_schema_id,
            space_key=self.document_store.space_key,
            page_title=self.document_store.page_title,
            write_snapshot=bool(self.snapshot_path),
        )

    def wiki_credentials(self) -> tuple[str, str]:
        """Wiki credentials, falling back to the asset directory ones."""
        email = self.document_store.email or self.asset_directory.email
        token = self.document_store.api_token
        if token is None:
            token = self.asset_directory.api_token
        return email, token.get_secret_value()


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.info(f"Configuration file not found, using defaults: {path}")
        return {}

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to read configuration from {path}: {e}"
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain a YAML dictionary: {path}"
        )
    return data


def _apply_env_overrides(
    data: Dict[str, Any], environ: Dict[str, str]
) -> Dict[str, Any]:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        if section is None:
            data[key] = value
        else:
            target = data.setdefault(section, {})
            if not isinstance(target, dict):
                raise ConfigurationError(
                    f"Configuration section '{section}' must be a mapping"
                )
            target[key] = value
        logger.debug(
            "Applied environment override",
            extra={"variable": env_name, "section": section, "key": key},
        )
    return data


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Dict[str, str]] = None,
) -> AssetSyncSettings:
    """
    Load settings from YAML and the environment.

    Args:
        config_path: YAML file to read. Defaults to ``ASSET_SYNC_CONFIG`` or
            ``~/.config/asset-sync/config.yaml``; a missing file is allowed.
        environ: Environment mapping, defaults to ``os.environ``.

    Raises:
        ConfigurationError: If the file or the merged values are invalid.
    """
    environ = dict(os.environ if environ is None else environ)
    path = Path(
        config_path or environ.get("ASSET_SYNC_CONFIG") or DEFAULT_CONFIG_PATH
    ).expanduser()

    data = _apply_env_overrides(_read_config_file(path), environ)

    try:
        settings = AssetSyncSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.info(
        "Loaded asset_sync settings",
        extra={
            "config_path": str(path),
            "employee_resolver": settings.employee_resolver,
            "object_schema_id": settings.asset_directory.object_schema_id,
        },
    )
    return settings
