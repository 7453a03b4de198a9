from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from appimport.resolver import DEFAULT_CANDIDATES
from appimport.tools.fs import find_config_file


@dataclass
class Project:
    """
    Defaults for the `app.json` command that are stored in an `appimport.yaml` file. Command-line options take
    precedence.
    """

    namespace: str | None = None
    """ The namespace to import into. Defaults to the namespace of the current kubeconfig context. """

    image: str | None = None
    """ The base image to build applications on. """

    outputVersions: list[str] = field(default_factory=list)
    """ Preferred API versions of the generated objects, before the built-in defaults. """

    candidates: list[str] = field(default_factory=lambda: list(DEFAULT_CANDIDATES))
    """ The file names to look for when the manifest locator is a directory. """

    local: bool = False
    """ Process templates locally instead of with the cluster's template API. """


@dataclass
class ProjectConfig:
    """
    Wrapper for the project configuration file.
    """

    FILENAMES = ("appimport.yaml", "appimport.yml")

    file: Path | None
    config: Project

    @staticmethod
    def load(file: Path | None = None, /, cwd: Path | None = None) -> "ProjectConfig":
        """
        Load the project configuration from the given or the default configuration file. If the configuration file does
        not exist, a default project configuration is returned.
        """

        from databind.json import load as deser
        from yaml import safe_load

        if file is None:
            file = find_config_file(ProjectConfig.FILENAMES, cwd, required=False)
        if file is None:
            return ProjectConfig(None, Project())

        logger.debug("Loading project configuration from '{}'", file)
        project = deser(safe_load(file.read_text()) or {}, Project, filename=str(file))
        if not project.candidates:
            logger.warning("No candidates configured in '{}', using {}", file, list(DEFAULT_CANDIDATES))
            project.candidates = list(DEFAULT_CANDIDATES)

        return ProjectConfig(file, project)
