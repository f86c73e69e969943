"""Environment-driven deployment settings.

Settings are read from the process environment after loading an optional
``.env`` file (existing variables win). Recognised variables:

- KUBEFLOW_NAMESPACE: namespace waited on after apply (default: kubeflow)
- TIMEOUT: kubectl wait timeout, e.g. ``300s`` or ``5m`` (default: 300s)
- IMAGE_TAG: fixed image tag overriding version-control tags
- KIND_CLUSTER_NAME: Kind cluster images are loaded into (default: kind)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import DeploymentConstants
from .errors import InvalidSetting

_CONSTANTS = DeploymentConstants()

ENV_VARS: dict[str, str] = {
    "namespace": "KUBEFLOW_NAMESPACE",
    "timeout": "TIMEOUT",
    "image_tag": "IMAGE_TAG",
    "kind_cluster": "KIND_CLUSTER_NAME",
}


class DeploySettings(BaseModel):
    """Validated deployment settings."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(default=_CONSTANTS.DEFAULT_NAMESPACE, min_length=1)
    timeout: str = Field(default=_CONSTANTS.DEFAULT_TIMEOUT, pattern=r"^\d+[smh]?$")
    image_tag: str | None = None
    kind_cluster: str = Field(default=_CONSTANTS.DEFAULT_KIND_CLUSTER, min_length=1)

    @field_validator("image_tag")
    @classmethod
    def _validate_image_tag(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not _CONSTANTS.IMAGE_TAG_PATTERN.match(value):
            raise ValueError(f"invalid image tag {value!r}")
        return value

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        env_file: Path | None = None,
    ) -> DeploySettings:
        """Build settings from environment variables.

        Args:
            environ: Environment mapping (defaults to ``os.environ``)
            env_file: Optional .env file loaded into ``os.environ`` first,
                      without overriding variables that are already set

        Returns:
            Validated DeploySettings

        Raises:
            InvalidSetting: If any variable has an invalid value
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)
        source = os.environ if environ is None else environ

        values = {
            field: source[var].strip()
            for field, var in ENV_VARS.items()
            if source.get(var, "").strip()
        }
        try:
            return cls(**values)
        except ValidationError as e:
            problems = [
                f"{ENV_VARS.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
                for err in e.errors()
            ]
            raise InvalidSetting(
                "Invalid deployment settings", details="\n".join(problems)
            ) from e
