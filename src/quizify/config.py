"""Configuration for the quizify web app and terminal session.

The config file is optional: every key has a default, and a TOML file only
needs the values it overrides. Unknown keys are rejected so typos surface
instead of silently falling back to defaults.
"""

from __future__ import annotations

import copy
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from quizify.core import workspace as workspace_mod
from quizify.core.ai import OpenAIChatClient
from quizify.quiz.models import MAX_QUESTIONS, MIN_QUESTIONS

CONFIG_PATH_ENV = "QUIZIFY_CONFIG"
CONFIG_FILENAME = "quizify.toml"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class OpenAIConfig:
    model: str
    temperature: float
    max_output_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class QuizConfig:
    default_questions: int
    explanation_context_chars: int


@dataclass(frozen=True)
class StorageConfig:
    upload_url_ttl_seconds: int
    max_upload_bytes: int


@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int
    session_secret: Optional[str]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizifyConfig:
    openai: OpenAIConfig
    quiz: QuizConfig
    storage: StorageConfig
    server: ServerConfig
    logging: LoggingConfig


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_int_range(
    value: Any, *, field: str, min_value: int, max_value: int
) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{field}' must be an integer.")
    if not (min_value <= value <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string when set.")
    return value.strip()


def _build_openai(section: Mapping[str, Any]) -> OpenAIConfig:
    return OpenAIConfig(
        model=_require_string(section.get("model"), field="openai.model"),
        temperature=_require_float_range(
            section.get("temperature"),
            field="openai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_output_tokens=_require_positive_int(
            section.get("max_output_tokens"),
            field="openai.max_output_tokens",
        ),
        request_timeout_seconds=_require_positive_int(
            section.get("request_timeout_seconds"),
            field="openai.request_timeout_seconds",
        ),
        api_base=_coerce_optional_string(
            section.get("api_base"), field="openai.api_base"
        ),
    )


def _build_quiz(section: Mapping[str, Any]) -> QuizConfig:
    return QuizConfig(
        default_questions=_require_int_range(
            section.get("default_questions"),
            field="quiz.default_questions",
            min_value=MIN_QUESTIONS,
            max_value=MAX_QUESTIONS,
        ),
        explanation_context_chars=_require_positive_int(
            section.get("explanation_context_chars"),
            field="quiz.explanation_context_chars",
        ),
    )


def _build_storage(section: Mapping[str, Any]) -> StorageConfig:
    return StorageConfig(
        upload_url_ttl_seconds=_require_positive_int(
            section.get("upload_url_ttl_seconds"),
            field="storage.upload_url_ttl_seconds",
        ),
        max_upload_bytes=_require_positive_int(
            section.get("max_upload_bytes"),
            field="storage.max_upload_bytes",
        ),
    )


def _build_server(section: Mapping[str, Any]) -> ServerConfig:
    return ServerConfig(
        host=_require_string(section.get("host"), field="server.host"),
        port=_require_int_range(
            section.get("port"),
            field="server.port",
            min_value=1,
            max_value=65535,
        ),
        session_secret=_coerce_optional_string(
            section.get("session_secret"), field="server.session_secret"
        ),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(
        section.get("level"), field="logging.level"
    ).upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(tree: Mapping[str, Any]) -> QuizifyConfig:
    return QuizifyConfig(
        openai=_build_openai(tree["openai"]),
        quiz=_build_quiz(tree["quiz"]),
        storage=_build_storage(tree["storage"]),
        server=_build_server(tree["server"]),
        logging=_build_logging(tree["logging"]),
    )


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace: Optional[Path] = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    env_override = env_map.get(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()
    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace)
    return layout.path_for("config") / CONFIG_FILENAME


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace: Optional[Path] = None,
) -> QuizifyConfig:
    """Load the TOML config, applying defaults and validation.

    Only an explicitly requested file (argument or ``QUIZIFY_CONFIG``) must
    exist; the workspace default is optional.
    """

    env_map = os.environ if env is None else env
    path = resolve_config_path(
        explicit_path=explicit_path, env=env_map, workspace=workspace
    )
    required = explicit_path is not None or bool(env_map.get(CONFIG_PATH_ENV))
    tree = default_tree()
    if required or path.exists():
        _apply_overrides(tree, _read_toml(path))
    return _build_config(tree)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def default_config() -> QuizifyConfig:
    return _build_config(default_tree())


def config_template() -> str:
    """Return the TOML template recommended for new installs."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(config_template(), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to write config {path}: {exc}") from exc
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _read_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc


def _apply_overrides(
    tree: Dict[str, Any], overrides: Mapping[str, Any]
) -> None:
    """Merge a parsed quizify.toml into the defaults tree.

    Top-level keys must be known sections and every section only accepts
    the keys its defaults declare; the error names the valid alternatives.
    """

    for section, values in overrides.items():
        if section not in tree:
            raise ConfigError(
                "Unknown configuration key '{0}'; sections are {1}.".format(
                    section, ", ".join(f"[{name}]" for name in tree)
                )
            )
        if not isinstance(values, Mapping):
            raise ConfigError(
                "Expected a [{0}] table, found {1}.".format(
                    section, type(values).__name__
                )
            )
        defaults = tree[section]
        for key, value in values.items():
            if key not in defaults:
                raise ConfigError(
                    "Unknown configuration key '{0}.{1}'; [{0}] accepts "
                    "{2}.".format(section, key, ", ".join(defaults))
                )
            defaults[key] = value


_DEFAULTS: Dict[str, Any] = {
    "openai": {
        "model": "gpt-4o-mini",
        "temperature": 0.2,
        "max_output_tokens": 4000,
        "request_timeout_seconds": 120,
        "api_base": None,
    },
    "quiz": {
        "default_questions": 10,
        "explanation_context_chars": 20000,
    },
    "storage": {
        "upload_url_ttl_seconds": 15 * 60,
        "max_upload_bytes": 50 * 1024 * 1024,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
        "session_secret": None,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# Quizify configuration

[openai]
# Chat completion model used for generation, explanations and extraction
model = "gpt-4o-mini"
# Sampling temperature (0.0-2.0)
temperature = 0.2
# Completion budget for explanations and extraction; quiz generation
# scales its own budget with the question count
max_output_tokens = 4000
request_timeout_seconds = 120
# Optional API base override
# api_base = "https://api.openai.com/v1"

[quiz]
# Preselected question count on the config page (5-50)
default_questions = 10
# Source text sent along with explanation requests is capped at this length
explanation_context_chars = 20000

[storage]
# Lifetime of signed upload URLs
upload_url_ttl_seconds = 900
# Request body ceiling for uploads and forms (50 MB)
max_upload_bytes = 52428800

[server]
host = "127.0.0.1"
port = 8000
# Cookie signing secret; a random one is generated per process when unset
# session_secret = "change-me"

[logging]
level = "INFO"
verbose = false
"""


def build_chat_client(
    settings: OpenAIConfig, *, client: Any | None = None
) -> OpenAIChatClient:
    """Return the chat adapter described by the ``[openai]`` section.

    ``client`` injects a pre-built SDK client; otherwise one is created from
    ``OPENAI_API_KEY``, which raises ``RuntimeError`` when the key is unset.
    """

    return OpenAIChatClient(
        model=settings.model,
        temperature=settings.temperature,
        max_output_tokens=settings.max_output_tokens,
        request_timeout=settings.request_timeout_seconds,
        api_base=settings.api_base,
        client=client,
    )
