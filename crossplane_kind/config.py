# /*
# Copyright 2026 The crossplane-kind Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Run configuration: settings classes, ActionFlags, resolution and display."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated

import typer
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from rich.panel import Panel

from crossplane_kind import console, logger
from crossplane_kind.constants import (
    DEFAULT_CLUSTER_NAME,
    DEFAULT_CROSSPLANE_VERSION,
    DEFAULT_FUNC_ENVCFG_VERSION,
    DEFAULT_FUNC_PAT_VERSION,
    DEFAULT_KINDEST_NODE_IMAGE,
    DEFAULT_PROVIDER_AZURE_VERSION,
    DEFAULT_WAIT_TIMEOUT,
)
from crossplane_kind.errors import ConfigurationError

_DURATION_RE = re.compile(r"^(\d+)([A-Za-z]*)$")


# ============================================================================
# Duration
# ============================================================================

class DurationUnit(str, Enum):
    """Recognised duration suffixes."""

    MINUTES = "m"


_UNIT_SECONDS = {
    DurationUnit.MINUTES: 60,
}


class Duration(BaseModel):
    """A ``<integer><unit>`` duration such as ``10m``.

    Only minute units are accepted. Seconds or hours suffixes are rejected
    instead of being guessed at.
    """

    model_config = ConfigDict(frozen=True)

    magnitude: int = Field(gt=0)
    unit: DurationUnit

    @classmethod
    def parse(cls, text: str) -> Duration:
        """Parse a duration string.

        Args:
            text: Duration in ``<integer><unit>`` notation (e.g. ``10m``).

        Returns:
            The parsed duration.

        Raises:
            ValueError: If the text is malformed or the unit is unsupported.
        """
        match = _DURATION_RE.match(text.strip())
        if not match:
            raise ValueError(f"invalid duration '{text}', expected <integer><unit> such as '10m'")
        magnitude, suffix = int(match.group(1)), match.group(2)
        try:
            unit = DurationUnit(suffix)
        except ValueError:
            raise ValueError(
                f"unsupported duration unit '{suffix}' in '{text}'; only minutes are accepted (e.g. '10m')"
            ) from None
        if magnitude <= 0:
            raise ValueError(f"duration '{text}' must be greater than zero")
        return cls(magnitude=magnitude, unit=unit)

    @property
    def seconds(self) -> int:
        return self.magnitude * _UNIT_SECONDS[self.unit]

    def __str__(self) -> str:
        return f"{self.magnitude}{self.unit.value}"


# ============================================================================
# Configuration classes
# ============================================================================

class KindConfig(BaseSettings):
    """kind cluster settings, auto-loaded from environment variables.

    Attributes:
        cluster_name: Name of the kind cluster.
        kindest_node_image: Node image passed to ``kind create cluster``.
    """

    model_config = SettingsConfigDict(extra="ignore", frozen=True, str_strip_whitespace=True)

    cluster_name: str = Field(default=DEFAULT_CLUSTER_NAME, min_length=1)
    kindest_node_image: str = Field(default=DEFAULT_KINDEST_NODE_IMAGE, min_length=1)


class CrossplaneConfig(BaseSettings):
    """Crossplane, provider and function versions plus the wait timeout.

    Attributes:
        crossplane_version: Crossplane Helm chart version.
        provider_azure_version: provider-family-azure package version.
        func_pat_version: function-patch-and-transform package version.
        func_envcfg_version: function-environment-configs package version.
        wait_timeout: Deadline for rollouts and package health waits.
    """

    model_config = SettingsConfigDict(extra="ignore", frozen=True, str_strip_whitespace=True)

    crossplane_version: str = Field(default=DEFAULT_CROSSPLANE_VERSION, min_length=1)
    provider_azure_version: str = Field(default=DEFAULT_PROVIDER_AZURE_VERSION, min_length=1)
    func_pat_version: str = Field(default=DEFAULT_FUNC_PAT_VERSION, min_length=1)
    func_envcfg_version: str = Field(default=DEFAULT_FUNC_ENVCFG_VERSION, min_length=1)
    wait_timeout: Annotated[Duration, NoDecode] = Field(default=Duration.parse(DEFAULT_WAIT_TIMEOUT))

    @field_validator("wait_timeout", mode="before")
    @classmethod
    def _parse_wait_timeout(cls, value: object) -> object:
        if isinstance(value, str):
            return Duration.parse(value)
        return value


# ============================================================================
# Action flags
# ============================================================================

@dataclass(frozen=True)
class ActionFlags:
    """Mode flags for a single run.

    Attributes:
        assume_yes: Answer yes to every confirmation prompt.
        dry_run: Print mutating commands instead of running them.
        recreate: Delete an existing cluster of the same name before creating.
        skip_cluster: Use the current kubectl context; never touch kind.
        cleanup: Tear down instead of bootstrapping.
        delete_cluster: With cleanup, also delete the kind cluster.
        force_clean: With cleanup, also delete the package CRDs.
        verbose: Echo every executed command.
    """

    assume_yes: bool = False
    dry_run: bool = False
    recreate: bool = False
    skip_cluster: bool = False
    cleanup: bool = False
    delete_cluster: bool = False
    force_clean: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration for one run, passed to every component."""

    kind: KindConfig
    crossplane: CrossplaneConfig
    flags: ActionFlags


# ============================================================================
# Config resolution
# ============================================================================

def validate_flags(
    cleanup: bool,
    delete_cluster: bool,
    force_clean: bool,
    recreate: bool,
    skip_cluster: bool,
) -> None:
    """Validate flag combinations.

    Args:
        cleanup: Whether cleanup mode is requested.
        delete_cluster: Whether cluster deletion is requested.
        force_clean: Whether CRD removal is requested.
        recreate: Whether cluster recreation is requested.
        skip_cluster: Whether cluster management is skipped.

    Raises:
        typer.BadParameter: If a cleanup-only flag is used without --cleanup.
    """
    if delete_cluster and not cleanup:
        raise typer.BadParameter("--delete-cluster is only valid together with --cleanup")
    if force_clean and not cleanup:
        raise typer.BadParameter("--force-clean is only valid together with --cleanup")

    if cleanup and (recreate or skip_cluster):
        logger.warning("--cleanup is set; --recreate/--skip-cluster will be ignored")
    elif recreate and skip_cluster:
        logger.warning("--skip-cluster is set; --recreate will be ignored")


def _describe_validation_error(err: ValidationError) -> str:
    parts = []
    for item in err.errors():
        field = ".".join(str(loc) for loc in item["loc"]) or "config"
        parts.append(f"{field}: {item['msg']}")
    return "Invalid configuration: " + "; ".join(parts)


def resolve_config(
    *,
    cluster_name: str | None = None,
    kindest_node_image: str | None = None,
    crossplane_version: str | None = None,
    provider_azure_version: str | None = None,
    func_pat_version: str | None = None,
    func_envcfg_version: str | None = None,
    wait_timeout: str | None = None,
    flags: ActionFlags | None = None,
) -> RunConfig:
    """Merge CLI overrides, environment variables, and defaults.

    Resolution priority: CLI arguments > environment variables > defaults.

    Args:
        cluster_name: CLI override for the cluster name, or None.
        kindest_node_image: CLI override for the node image, or None.
        crossplane_version: CLI override for the Crossplane version, or None.
        provider_azure_version: CLI override for the provider version, or None.
        func_pat_version: CLI override for function-patch-and-transform, or None.
        func_envcfg_version: CLI override for function-environment-configs, or None.
        wait_timeout: CLI override for the wait timeout, or None.
        flags: Resolved mode flags, or None for all-off.

    Returns:
        The immutable run configuration.

    Raises:
        ConfigurationError: If any value is empty or malformed.
    """
    kind_overrides = {
        "cluster_name": cluster_name,
        "kindest_node_image": kindest_node_image,
    }
    crossplane_overrides = {
        "crossplane_version": crossplane_version,
        "provider_azure_version": provider_azure_version,
        "func_pat_version": func_pat_version,
        "func_envcfg_version": func_envcfg_version,
        "wait_timeout": wait_timeout,
    }
    try:
        kind_cfg = KindConfig(**{k: v for k, v in kind_overrides.items() if v is not None})
        crossplane_cfg = CrossplaneConfig(**{k: v for k, v in crossplane_overrides.items() if v is not None})
    except ValidationError as err:
        raise ConfigurationError(_describe_validation_error(err)) from err

    return RunConfig(kind=kind_cfg, crossplane=crossplane_cfg, flags=flags or ActionFlags())


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: RunConfig) -> None:
    """Print the resolved settings.

    Args:
        cfg: The run configuration.
    """
    console.print(Panel.fit("Settings", style="bold blue"))
    rows = [
        ("cluster_name", cfg.kind.cluster_name),
        ("kindest_node_image", cfg.kind.kindest_node_image),
        ("crossplane_version", cfg.crossplane.crossplane_version),
        ("provider_azure_version", cfg.crossplane.provider_azure_version),
        ("func_pat_version", cfg.crossplane.func_pat_version),
        ("func_envcfg_version", cfg.crossplane.func_envcfg_version),
        ("wait_timeout", str(cfg.crossplane.wait_timeout)),
        ("recreate", cfg.flags.recreate),
        ("skip_cluster", cfg.flags.skip_cluster),
        ("cleanup", cfg.flags.cleanup),
        ("delete_cluster", cfg.flags.delete_cluster),
        ("force_clean", cfg.flags.force_clean),
        ("dry_run", cfg.flags.dry_run),
        ("verbose", cfg.flags.verbose),
    ]
    for key, value in rows:
        console.print(f"  {key:<23}: {value}")
