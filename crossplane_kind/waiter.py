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

"""Polling for Crossplane package health."""

from __future__ import annotations

import json
import time
from collections.abc import Callable

from tenacity import RetryError, Retrying, retry_if_result, wait_fixed

from crossplane_kind import console, logger
from crossplane_kind.constants import CONDITION_HEALTHY, HEALTH_POLL_INTERVAL_SECONDS
from crossplane_kind.utils import CommandRunner, Policy


def is_healthy(resource: dict) -> bool:
    """Return True if the resource's Healthy condition status is exactly ``True``.

    Args:
        resource: Resource object as returned by ``kubectl get -o json``.
    """
    conditions = (resource.get("status") or {}).get("conditions") or []
    return any(
        cond.get("type") == CONDITION_HEALTHY and cond.get("status") == "True"
        for cond in conditions
    )


def _poll_once(runner: CommandRunner, kind: str, name: str) -> bool:
    result = runner.execute("kubectl", "get", kind, name, "-o", "json", policy=Policy.PROBE, read_only=True)
    if not result.ok:
        return False
    try:
        resource = json.loads(result.stdout)
    except json.JSONDecodeError:
        logger.debug("unparseable status for %s/%s", kind, name)
        return False
    return is_healthy(resource)


def dump_status(runner: CommandRunner, kind: str, name: str) -> None:
    """Print the full resource YAML for diagnostics."""
    result = runner.execute("kubectl", "get", kind, name, "-o", "yaml", policy=Policy.BEST_EFFORT, read_only=True)
    if result.ok:
        console.print(f"[red]Status of {kind}/{name}:[/red]")
        console.print(result.stdout, markup=False, highlight=False)


def wait_healthy(
    runner: CommandRunner,
    kind: str,
    name: str,
    timeout_seconds: float,
    interval_seconds: float = HEALTH_POLL_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll a package resource until it reports Healthy or the deadline passes.

    In dry-run mode nothing is queried and success is reported immediately.
    No poll is issued once the deadline has passed. On timeout the resource
    status is dumped; the caller decides whether that is fatal.

    Args:
        runner: Command runner.
        kind: Fully qualified resource kind (e.g. ``provider.pkg.crossplane.io``).
        name: Resource name.
        timeout_seconds: Deadline measured from the call.
        interval_seconds: Sleep between polls.
        sleep: Sleep function, replaceable in tests.
        clock: Monotonic clock, replaceable in tests.

    Returns:
        True on the first poll that sees Healthy=True, False on timeout.
    """
    if runner.dry_run:
        console.print(f"[dim]+ would wait for {kind}/{name} to become Healthy (timeout {timeout_seconds:g}s)[/dim]")
        return True

    deadline = clock() + timeout_seconds

    def _attempt() -> bool:
        if clock() >= deadline:
            return False
        return _poll_once(runner, kind, name)

    retryer = Retrying(
        stop=lambda _state: clock() >= deadline,
        wait=wait_fixed(interval_seconds),
        retry=retry_if_result(lambda healthy: not healthy),
        sleep=sleep,
    )
    try:
        retryer(_attempt)
    except RetryError:
        console.print(f"[red]❌ {kind}/{name} not Healthy after {timeout_seconds:g}s[/red]")
        dump_status(runner, kind, name)
        return False
    return True
