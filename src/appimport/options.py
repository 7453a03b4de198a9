from collections.abc import Iterable
from dataclasses import dataclass, field

from appimport.errors import InvalidOptionsError
from appimport.generator import supported_strategies
from appimport.generator.appjson import AppJsonGenerator
from appimport.resolver import DEFAULT_CANDIDATES
from appimport.scheme import GroupVersion

OUTPUT_NAME = "name"
PRINT_FORMATS = ("yaml", "json")


@dataclass(frozen=True)
class ImportOptions:
    """
    The complete configuration of an import. Built once from the command-line and the project configuration, and
    passed to the #AppJsonImport pipeline.
    """

    filenames: tuple[str, ...]
    """ The manifest locators. Exactly one is allowed. """

    namespace: str
    base_image: str | None = None
    generator: str = AppJsonGenerator.STRATEGY

    as_template: str | None = None
    """ If set, produce a template with this name instead of objects that can be created directly. """

    output_versions: tuple[GroupVersion, ...] = ()
    """ The API versions to check the generated objects against, in order of preference. """

    output: str = ""
    """ Empty for verbose output, `name` for compact output, or one of #PRINT_FORMATS to print instead of create. """

    dry_run: bool = False
    local: bool = False
    parameters: dict[str, str] = field(default_factory=dict)
    candidates: tuple[str, ...] = DEFAULT_CANDIDATES

    @property
    def locator(self) -> str:
        return self.filenames[0]

    @property
    def verbose(self) -> bool:
        return self.output == ""

    @property
    def compact(self) -> bool:
        return self.output == OUTPUT_NAME

    @property
    def should_print(self) -> bool:
        """
        Whether the result is printed instead of instantiated in the cluster.
        """

        return self.output in PRINT_FORMATS or (self.compact and bool(self.as_template))

    def validate(self) -> None:
        """
        Raises:
            InvalidOptionsError: If not exactly one locator is given, the generator strategy is not supported, or
                the output mode is unknown.
        """

        if len(self.filenames) != 1:
            raise InvalidOptionsError(
                "you must provide the path to an app.json file or directory containing app.json"
            )
        if self.generator not in supported_strategies():
            raise InvalidOptionsError(
                f"the generator {self.generator!r} is not supported, use: {', '.join(supported_strategies())}"
            )
        if self.output not in ("", OUTPUT_NAME, *PRINT_FORMATS):
            raise InvalidOptionsError(
                f"unsupported output {self.output!r}, use one of: {', '.join((OUTPUT_NAME, *PRINT_FORMATS))}"
            )
        if not self.candidates:
            raise InvalidOptionsError("at least one candidate file name is required")


def parse_parameters(values: Iterable[str]) -> dict[str, str]:
    """
    Parse `NAME=VALUE` pairs.

    Raises:
        InvalidOptionsError: If a value is not of the form `NAME=VALUE`.
    """

    result: dict[str, str] = {}
    for value in values:
        name, sep, param_value = value.partition("=")
        if not sep or not name:
            raise InvalidOptionsError(f"invalid parameter assignment {value!r}, expected NAME=VALUE")
        result[name] = param_value
    return result
