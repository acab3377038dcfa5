# /*
# Copyright 2026 The Meshex Manager Authors.
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

"""Ordered workflow steps with first-failure reporting."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.panel import Panel

from meshex_manager import console, logger
from meshex_manager.config import MeshExpansionConfig
from meshex_manager.errors import StepFailedError
from meshex_manager.release import istio_dir_for


@dataclass(frozen=True)
class InstallContext:
    """Immutable inputs shared by every workflow step.

    Attributes:
        config: Validated installer configuration.
        workdir: Directory the Istio release is downloaded into.
        terraform_dir: Directory holding the terraform plan.
    """

    config: MeshExpansionConfig
    workdir: Path
    terraform_dir: Path

    @property
    def istio_dir(self) -> Path:
        return istio_dir_for(self.workdir, self.config.istio_version)


@dataclass(frozen=True)
class Step:
    """One named workflow step.

    Attributes:
        name: Short identifier reported when the step fails.
        title: Heading printed before the step runs.
        action: Callable run with the shared context; its return value is recorded.
    """

    name: str
    title: str
    action: Callable[[InstallContext], Any]


@dataclass(frozen=True)
class StepOutcome:
    """Recorded result of a step: a value on success, the exception on failure."""

    name: str
    ok: bool
    value: Any = None
    error: BaseException | None = None


def run_pipeline(steps: list[Step], ctx: InstallContext) -> list[StepOutcome]:
    """Run steps in order, stopping at the first failure.

    Nothing is rolled back; state created by earlier steps is left in place.

    Args:
        steps: Steps to run, in order.
        ctx: Shared immutable context.

    Returns:
        Outcomes of all steps, in order.

    Raises:
        StepFailedError: If a step raises; names the step and chains the cause.
    """
    outcomes: list[StepOutcome] = []
    for index, step in enumerate(steps, start=1):
        console.print(Panel.fit(f"[{index}/{len(steps)}] {step.title}", style="bold blue"))
        logger.debug("Running step %s", step.name)
        try:
            value = step.action(ctx)
        except Exception as err:
            outcomes.append(StepOutcome(name=step.name, ok=False, error=err))
            raise StepFailedError(step.name, err, outcomes) from err
        outcomes.append(StepOutcome(name=step.name, ok=True, value=value))
    return outcomes
