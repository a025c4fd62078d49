import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional

import yaml

from azreview_core import pipelines

DEFAULT_CONFIG: dict = {
    "model": "gpt-3.5-turbo",
    "aoi_endpoint": None,
    "use_azure_openai": False,
    "azure_api_version": "2024-02-01",
    "working_dir": None,
    "support_self_signed_certificate": False,
}


class ConfigurationError(ValueError):
    """Raised when the task cannot start because an input is missing or invalid."""


class MissingInputError(ConfigurationError):
    def __init__(self, name: str):
        super().__init__(f"Input required and not supplied: {name}")
        self.name = name


def load_config(config_path: str = ".azreview.yml", overrides: Optional[dict] = None) -> dict:
    """
    Load the default layer of task configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .azreview.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config[key] = value

    return config


class InputResolver:
    """Resolve named task inputs through explicit layers.

    Lookup order for ``name``:
      1. the task input (``INPUT_<NAME>`` on an Azure Pipelines agent)
      2. the environment variable ``NAME`` with dots replaced by underscores
      3. the defaults mapping (usually the result of ``load_config``)
    """

    def __init__(
        self,
        defaults: Optional[Mapping] = None,
        environ: Optional[Mapping[str, str]] = None,
        task_input: Optional[Callable[[str], Optional[str]]] = None,
    ):
        self.defaults = dict(defaults or {})
        self.environ = os.environ if environ is None else environ
        self.task_input = task_input or (lambda name: pipelines.get_input(name, self.environ))

    def _lookup(self, name: str):
        value = self.task_input(name)
        if value:
            return value
        value = self.environ.get(name.upper().replace(".", "_"))
        if value:
            return value
        return self.defaults.get(name)

    def get(self, name: str, required: bool = False) -> str:
        value = self._lookup(name)
        if value is None or value == "":
            if required:
                raise MissingInputError(name)
            return ""
        return str(value)

    def get_bool(self, name: str, required: bool = False) -> bool:
        value = self._lookup(name)
        if value is None or value == "":
            if required:
                raise MissingInputError(name)
            return False
        return pipelines.parse_bool(value)


@dataclass(frozen=True)
class RunConfig:
    api_key: str
    target_branch: Optional[str]
    working_dir: str
    model: str = DEFAULT_CONFIG["model"]
    aoi_endpoint: Optional[str] = None
    use_azure_openai: bool = False
    azure_api_version: str = DEFAULT_CONFIG["azure_api_version"]
    support_self_signed_certificate: bool = False


def resolve_run_config(resolver: InputResolver) -> RunConfig:
    """Build the immutable run configuration from the resolver's layers.

    Raises MissingInputError when the API key is absent and ConfigurationError
    when managed mode is selected without an endpoint.
    """
    api_key = resolver.get("api_key", required=True)
    aoi_endpoint = resolver.get("aoi_endpoint") or None
    use_azure_openai = resolver.get_bool("use_azure_openai")

    if use_azure_openai and not aoi_endpoint:
        raise ConfigurationError("use_azure_openai is enabled but no aoi_endpoint was provided.")

    working_dir = (
        resolver.get("working_dir")
        or pipelines.get_variable("System.DefaultWorkingDirectory", resolver.environ)
        or os.getcwd()
    )

    return RunConfig(
        api_key=api_key,
        target_branch=pipelines.get_target_branch_name(resolver.environ),
        working_dir=working_dir,
        model=resolver.get("model") or DEFAULT_CONFIG["model"],
        aoi_endpoint=aoi_endpoint,
        use_azure_openai=use_azure_openai,
        azure_api_version=resolver.get("azure_api_version") or DEFAULT_CONFIG["azure_api_version"],
        support_self_signed_certificate=resolver.get_bool("support_self_signed_certificate"),
    )
