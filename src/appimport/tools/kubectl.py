from dataclasses import dataclass
import os
from pathlib import Path
import shlex
import subprocess

import yaml
from loguru import logger

from appimport.tools.types import Manifest


@dataclass
class KubectlError(Exception):
    statuscode: int
    stderr: str | None = None

    def __str__(self) -> str:
        if self.stderr and self.stderr.strip():
            return self.stderr.strip().removeprefix("error: ")
        return f"Kubectl command failed with status code {self.statuscode}"


class Kubectl:
    """
    Wrapper for interfacing with `kubectl`.
    """

    def __init__(self, kubeconfig: Path | None = None, context: str | None = None) -> None:
        self.env: dict[str, str] = {}
        self.context = context
        if kubeconfig is not None:
            self.env["KUBECONFIG"] = str(kubeconfig)

    def _command(self, *args: str) -> list[str]:
        command = ["kubectl", *args]
        if self.context:
            command.extend(["--context", self.context])
        return command

    def create(self, manifest: Manifest, namespace: str | None = None, output: str | None = None) -> str:
        """
        Create a single object in the cluster. Returns the standard output of `kubectl`, which is the object
        reference if *output* is `"name"`.

        Raises:
            KubectlError: If `kubectl` exits with a non-zero status code. The error carries `kubectl`'s stderr.
        """

        command = self._command("create", "-f", "-")
        if namespace:
            command.extend(["--namespace", namespace])
        if output:
            command.extend(["-o", output])

        logger.debug("Creating object with command: $ {command}", command=" ".join(map(shlex.quote, command)))
        status = subprocess.run(
            command,
            input=yaml.safe_dump(manifest),
            text=True,
            capture_output=True,
            env={**os.environ, **self.env},
        )
        if status.returncode:
            raise KubectlError(status.returncode, status.stderr)
        return status.stdout

