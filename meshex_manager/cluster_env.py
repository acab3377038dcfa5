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

"""Parsing and patching of the generated cluster.env descriptor.

``setupMeshEx.sh generateClusterEnv`` writes a ``KEY=value`` file that is
later copied to the expansion VM. The file is parsed into an ordered record
so that a single field can be changed while every other line, including
comments, blank lines and line endings, is written back unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import Path

from meshex_manager import logger
from meshex_manager.constants import AUTH_POLICY_KEY, AUTH_POLICY_MUTUAL_TLS, AUTH_POLICY_NONE

_ASSIGNMENT = re.compile(r"^(?P<prefix>\s*(?:export\s+)?)(?P<key>[A-Za-z_][A-Za-z0-9_]*)=(?P<value>.*)$")
_QUOTES = ("'", '"')


@dataclass(frozen=True)
class EnvLine:
    """One line of an env file.

    Attributes:
        text: Line content without its line ending.
        ending: Line ending as found in the file (may be empty on the last line).
        key: Variable name for assignment lines, else None.
        value: Unquoted value for assignment lines, else None.
        quote: Quote character wrapping the value, or empty string.
        prefix: Leading whitespace and optional ``export`` before the key.
    """

    text: str
    ending: str = ""
    key: str | None = None
    value: str | None = None
    quote: str = ""
    prefix: str = ""

    @classmethod
    def parse(cls, raw: str) -> EnvLine:
        body = raw.rstrip("\r\n")
        ending = raw[len(body):]
        match = _ASSIGNMENT.match(body)
        if match is None:
            return cls(text=body, ending=ending)
        value = match.group("value")
        quote = ""
        if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
            quote, value = value[0], value[1:-1]
        return cls(
            text=body,
            ending=ending,
            key=match.group("key"),
            value=value,
            quote=quote,
            prefix=match.group("prefix"),
        )

    def with_value(self, value: str) -> EnvLine:
        text = f"{self.prefix}{self.key}={self.quote}{value}{self.quote}"
        return replace(self, text=text, value=value)

    def render(self) -> str:
        return self.text + self.ending


@dataclass(frozen=True)
class ClusterEnv:
    """Ordered, immutable view of a cluster.env file."""

    lines: tuple[EnvLine, ...]

    @classmethod
    def parse(cls, content: str) -> ClusterEnv:
        return cls(lines=tuple(EnvLine.parse(raw) for raw in content.splitlines(keepends=True)))

    def get(self, key: str) -> str | None:
        """Return the value of the last assignment to *key*, or None."""
        value = None
        for line in self.lines:
            if line.key == key:
                value = line.value
        return value

    def with_value(self, key: str, value: str, only_if: str | None = None) -> ClusterEnv:
        """Return a copy with every assignment of *key* set to *value*.

        Args:
            key: Variable to change.
            value: New value.
            only_if: If given, only assignments currently equal to this value change.

        Raises:
            KeyError: If *key* is not assigned anywhere in the file.
        """
        if not any(line.key == key for line in self.lines):
            raise KeyError(key)
        return ClusterEnv(lines=tuple(
            line.with_value(value)
            if line.key == key and (only_if is None or line.value == only_if)
            else line
            for line in self.lines
        ))

    def render(self) -> str:
        return "".join(line.render() for line in self.lines)


def load_cluster_env(path: Path) -> ClusterEnv:
    return ClusterEnv.parse(path.read_bytes().decode("utf-8"))


def save_cluster_env(env: ClusterEnv, path: Path) -> None:
    path.write_bytes(env.render().encode("utf-8"))


def disable_control_plane_mtls(path: Path) -> bool:
    """Switch the control-plane auth policy in cluster.env from mutual TLS to none.

    Args:
        path: Path of the generated cluster.env file.

    Returns:
        True if the file was changed, False if no mutual TLS policy was set.

    Raises:
        KeyError: If the file does not assign the auth policy at all.
    """
    env = load_cluster_env(path)
    patched = env.with_value(AUTH_POLICY_KEY, AUTH_POLICY_NONE, only_if=AUTH_POLICY_MUTUAL_TLS)
    if patched == env:
        logger.info("%s in %s is %s; leaving it unchanged", AUTH_POLICY_KEY, path, env.get(AUTH_POLICY_KEY))
        return False
    save_cluster_env(patched, path)
    return True
