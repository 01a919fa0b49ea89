# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Exception hierarchy for fleet loading, manifest generation and compose invocation.
"""
from typing import Optional, Sequence


class SSComposeError(Exception):
    """Base exception for all sscompose errors."""
    pass


class ConfigError(SSComposeError):
    """Raised when fleet or node input is malformed or missing required fields."""
    pass


class DuplicateNameError(ConfigError):
    """
    Raised when two services in one manifest share a container name.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate container name: {name}")


class FileError(SSComposeError):
    """Raised when an input or output file cannot be read, parsed or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ExternalProcessError(SSComposeError):
    """
    Raised when the compose binary cannot be run or exits nonzero.
    Captured output is kept verbatim so the caller can surface it.
    """

    def __init__(self,
                 command: Sequence[str],
                 returncode: Optional[int],
                 stdout: str = "",
                 stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        if returncode is None:
            message = f"Failed to run {' '.join(self.command)}"
        else:
            message = f"{' '.join(self.command)} exited with status {returncode}"
        if stdout:
            message += f"\n{stdout.rstrip()}"
        if stderr:
            message += f"\n{stderr.rstrip()}"
        super().__init__(message)
