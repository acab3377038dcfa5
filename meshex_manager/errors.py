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

"""Exception types raised by the installer workflow."""

from __future__ import annotations


class MeshExError(RuntimeError):
    """Base class for installer failures that end the run."""


class ConfigurationError(MeshExError):
    """A required setting is unset, empty, or invalid.

    Attributes:
        missing: Upper-case names of the unset settings, in check order.
    """

    def __init__(self, message: str, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


class MissingDependencyError(MeshExError):
    """A required command-line tool is not on PATH."""

    def __init__(self, command: str) -> None:
        super().__init__(f"Required command '{command}' not found. Please install it first.")
        self.command = command


class UnsupportedPlatformError(MeshExError):
    """The host OS has no matching Istio release artifact."""


class IngressNotReadyError(MeshExError):
    """The ingress gateway has no external address or HTTP port yet."""


class StepFailedError(MeshExError):
    """A workflow step failed; carries the step name and the original error.

    Attributes:
        step: Name of the step that failed.
        cause: Exception raised by the step.
        outcomes: Outcomes recorded up to and including the failed step.
    """

    def __init__(self, step: str, cause: BaseException, outcomes: list | None = None) -> None:
        super().__init__(f"Step '{step}' failed: {cause}")
        self.step = step
        self.cause = cause
        self.outcomes = outcomes or []
