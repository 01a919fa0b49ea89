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
Invocation of the external docker-compose binary.
"""
import subprocess
from typing import List

from ..UTILS.exceptions import ExternalProcessError
from ..UTILS.logging import get_logger

logger = get_logger("runners.compose")

DEFAULT_COMPOSE_BIN = "docker-compose"


class ComposeRunner:
    """
    Runs compose commands against one compose file and waits for them to finish.
    """
    def __init__(self, workdir: str = ".", compose_bin: str = DEFAULT_COMPOSE_BIN):
        """
        Initializes the compose runner.

        Args:
            workdir (str): Directory compose runs in; relative file paths resolve against it.
            compose_bin (str): The compose executable.
        """
        self.workdir = workdir
        self.compose_bin = compose_bin

    def up(self, compose_file: str) -> str:
        """
        Starts the stack in the background (`up -d`).

        Returns:
            str: Captured stdout of the compose command.
        """
        return self.run(["-f", compose_file, "up", "-d"])

    def down(self, compose_file: str) -> str:
        """
        Stops and removes the stack (`down`).

        Returns:
            str: Captured stdout of the compose command.
        """
        return self.run(["-f", compose_file, "down"])

    def run(self, args: List[str]) -> str:
        """
        Runs the compose binary with args and waits for it. There is no timeout.

        Args:
            args (List[str]): Arguments after the executable.

        Returns:
            str: Captured stdout.

        Raises:
            ExternalProcessError: If the binary cannot be started or exits nonzero.
        """
        command = [self.compose_bin] + args
        logger.info(f"Running {' '.join(command)} in {self.workdir}")
        try:
            result = subprocess.run(
                command,
                cwd=self.workdir,
                capture_output=True,
                text=True,
                shell=False
            )
        except OSError as e:
            raise ExternalProcessError(command, None, stderr=str(e)) from e

        if result.returncode != 0:
            logger.error(f"{self.compose_bin} exited with status {result.returncode}")
            raise ExternalProcessError(command, result.returncode, result.stdout, result.stderr)

        logger.debug(result.stdout)
        return result.stdout
