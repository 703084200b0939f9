"""Configuration records, the override cascade, and configuration loading."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, is_dataclass, replace
from datetime import timedelta
from pathlib import Path
import tomllib

import yaml

from .constants import (
    DEFAULT_COMPOSITE_TEST_NAME_SEPARATOR,
    DEFAULT_MARKDOWN_LANGUAGES,
    DEFAULT_MAX_FILE_SIZE,
)
from .exceptions import ConfigParseError

OUTPUT_STREAMS = ("stdout", "stderr", "combined")

_DURATION_PART = re.compile(r"\s*(\d+(?:\.\d+)?)\s*([a-z]+)\s*")
_DURATION_UNITS = {
    "ms": 0.001,
    "msec": 0.001,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
}


def parse_duration(value: object) -> timedelta:
    """Convert a human-readable duration into a `timedelta`.

    Numbers are read as seconds. Strings are a sequence of ``<number><unit>``
    parts, optionally separated by whitespace.

    Args:
        value: Duration as a number of seconds or a string like ``"3m 3s"``.

    Returns:
        timedelta: The parsed duration.

    Raises:
        ValueError: If the value cannot be read as a duration.

    Examples:
        parse_duration("3m 3s")  # timedelta(seconds=183)
        parse_duration(30)  # timedelta(seconds=30)
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return _seconds(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"invalid duration: {value!r}")

    seconds = 0.0
    position = 0
    text = value.strip().lower()
    while position < len(text):
        part = _DURATION_PART.match(text, position)
        if part is None or part.group(2) not in _DURATION_UNITS:
            raise ValueError(f"invalid duration: {value!r}")
        seconds += float(part.group(1)) * _DURATION_UNITS[part.group(2)]
        position = part.end()
    return _seconds(seconds)


def _seconds(value: float) -> timedelta:
    try:
        return timedelta(seconds=value)
    except (OverflowError, ValueError) as error:
        raise ValueError(f"invalid duration: {value!r}") from error


def _merge(base, override):
    # Right-biased: every field set on `override` wins, mappings merge per key
    # and nested configuration records merge recursively.
    changes = {}
    for item in fields(base):
        value = getattr(override, item.name)
        if value is None:
            continue
        current = getattr(base, item.name)
        if isinstance(value, dict) and isinstance(current, dict):
            value = {**current, **value}
        elif is_dataclass(current) and hasattr(current, "with_overrides_from"):
            value = current.with_overrides_from(value)
        changes[item.name] = value
    if not changes:
        return base
    return replace(base, **changes)


def _check_keys(data: dict, allowed: tuple[str, ...]) -> None:
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        raise ValueError(f"unsupported keys: {', '.join(unknown)}")


def _as_bool(key: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"`{key}` must be a boolean")
    return value


def _as_paths(key: str, value: object) -> list[Path]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValueError(f"`{key}` must be a path or a list of paths")
    return [Path(str(entry)) for entry in value]


def load_yaml_fragment(text: str, line_number: int) -> dict:
    """Load a YAML fragment that must describe a mapping.

    Args:
        text: YAML source of the fragment.
        line_number: One-based line where the fragment starts, for errors.

    Returns:
        dict: The loaded mapping; empty when the fragment is empty.

    Raises:
        ConfigParseError: If the text is not valid YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except (yaml.YAMLError, ValueError, RecursionError) as error:
        raise ConfigParseError(line_number, text, f"invalid YAML: {error}") from error

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(line_number, text, "configuration must be a mapping")
    return data


@dataclass(frozen=True)
class TestCaseWait:
    """Wait settings for a test that depends on a detached one."""

    __test__ = False

    timeout: timedelta
    path: Path | None = None

    @classmethod
    def from_value(cls, value: object) -> TestCaseWait:
        if isinstance(value, dict):
            _check_keys(value, ("timeout", "path"))
            if "timeout" not in value:
                raise ValueError("`wait` requires a `timeout`")
            path = value.get("path")
            return cls(
                timeout=parse_duration(value["timeout"]),
                path=Path(str(path)) if path is not None else None,
            )
        return cls(timeout=parse_duration(value))


@dataclass(frozen=True)
class TestCaseConfig:
    """Per-test configuration where every unset field means "no override".

    Attributes:
        timeout: Maximum run time of the test.
        wait: Wait for a detached test before running.
        detached: Run the test in the background.
        environment: Extra environment variables, merged per key.
        keep_crlf: Keep carriage returns in the output.
        output_stream: Which output to validate (stdout, stderr, combined).
        skip_document_code: Exit code that skips the remaining document.
        strip_ansi_escaping: Remove ANSI escape sequences from the output.
    """

    __test__ = False

    timeout: timedelta | None = None
    wait: TestCaseWait | None = None
    detached: bool | None = None
    environment: dict[str, str] | None = None
    keep_crlf: bool | None = None
    output_stream: str | None = None
    skip_document_code: int | None = None
    strip_ansi_escaping: bool | None = None

    @classmethod
    def empty(cls) -> TestCaseConfig:
        return cls()

    @classmethod
    def default_markdown(cls) -> TestCaseConfig:
        """Return the toolkit base defaults for tests in Markdown documents."""
        return cls(
            detached=False,
            keep_crlf=False,
            output_stream="stdout",
            skip_document_code=80,
            strip_ansi_escaping=False,
        )

    @classmethod
    def from_mapping(cls, data: dict) -> TestCaseConfig:
        """Build a partial configuration from a loaded mapping.

        Raises:
            ValueError: If the mapping contains unknown keys or unusable values.
        """
        _check_keys(data, tuple(item.name for item in fields(cls)))
        values: dict[str, object] = {}
        for key, value in data.items():
            if value is None:
                continue
            if key == "timeout":
                values[key] = parse_duration(value)
            elif key == "wait":
                values[key] = TestCaseWait.from_value(value)
            elif key == "environment":
                if not isinstance(value, dict):
                    raise ValueError("`environment` must be a mapping")
                values[key] = {str(name): str(entry) for name, entry in value.items()}
            elif key == "output_stream":
                if value not in OUTPUT_STREAMS:
                    raise ValueError(f"`output_stream` must be one of: {', '.join(OUTPUT_STREAMS)}")
                values[key] = value
            elif key == "skip_document_code":
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError("`skip_document_code` must be an integer")
                values[key] = value
            else:
                values[key] = _as_bool(key, value)
        return cls(**values)

    @classmethod
    def from_yaml(cls, text: str, line_number: int) -> TestCaseConfig:
        """Parse an inline test configuration fragment.

        Raises:
            ConfigParseError: If the fragment is not a valid configuration.
        """
        data = load_yaml_fragment(text, line_number)
        try:
            return cls.from_mapping(data)
        except (TypeError, ValueError) as error:
            raise ConfigParseError(line_number, text, str(error)) from error

    def with_overrides_from(self, other: TestCaseConfig) -> TestCaseConfig:
        """Return a copy where every field set on `other` replaces this one."""
        return _merge(self, other)

    def with_defaults_from(self, other: TestCaseConfig) -> TestCaseConfig:
        """Return a copy where unset fields fall back to `other`."""
        return _merge(other, self)


@dataclass(frozen=True)
class DocumentConfig:
    """Configuration valid for a whole document, read from its front matter.

    Attributes:
        shell: Shell used to run every test of the document.
        total_timeout: Maximum run time of all tests together.
        prepend: Documents whose tests run before this one's.
        append: Documents whose tests run after this one's.
        defaults: Per-test defaults for every test of the document.
        composite_test_names: Join all headings into the test title.
        composite_test_name_separator: Separator used for composite titles.
    """

    shell: Path | None = None
    total_timeout: timedelta | None = None
    prepend: list[Path] | None = None
    append: list[Path] | None = None
    defaults: TestCaseConfig = field(default_factory=TestCaseConfig)
    composite_test_names: bool | None = None
    composite_test_name_separator: str | None = None

    @classmethod
    def empty(cls) -> DocumentConfig:
        return cls()

    @classmethod
    def default_markdown(cls) -> DocumentConfig:
        return cls()

    @classmethod
    def from_mapping(cls, data: dict) -> DocumentConfig:
        _check_keys(data, tuple(item.name for item in fields(cls)))
        values: dict[str, object] = {}
        for key, value in data.items():
            if value is None:
                continue
            if key == "shell":
                values[key] = Path(str(value))
            elif key == "total_timeout":
                values[key] = parse_duration(value)
            elif key in ("prepend", "append"):
                values[key] = _as_paths(key, value)
            elif key == "defaults":
                if not isinstance(value, dict):
                    raise ValueError("`defaults` must be a mapping")
                values[key] = TestCaseConfig.from_mapping(value)
            elif key == "composite_test_names":
                values[key] = _as_bool(key, value)
            else:
                values[key] = str(value)
        return cls(**values)

    @classmethod
    def from_yaml(cls, text: str, line_number: int) -> DocumentConfig:
        """Parse a front-matter block.

        Raises:
            ConfigParseError: If the block is not a valid document configuration.
        """
        data = load_yaml_fragment(text, line_number)
        try:
            return cls.from_mapping(data)
        except (TypeError, ValueError) as error:
            raise ConfigParseError(line_number, text, str(error)) from error

    def with_overrides_from(self, other: DocumentConfig) -> DocumentConfig:
        """Return a copy where every field set on `other` replaces this one."""
        return _merge(self, other)

    def use_composite_test_names(self) -> bool:
        return bool(self.composite_test_names)

    def get_composite_test_name_separator(self) -> str:
        if self.composite_test_name_separator is None:
            return DEFAULT_COMPOSITE_TEST_NAME_SEPARATOR
        return self.composite_test_name_separator


@dataclass
class ToolConfig:
    """Configuration for the command-line tool.

    Attributes:
        languages: Code block languages that mark a block as a test.
        max_file_size: Maximum file size in bytes that will be processed.
        defaults: Base per-test configuration, layered over the toolkit defaults.

    Examples:
        ToolConfig(languages=["scrut", "testcase"])
    """

    languages: list[str] = field(default_factory=lambda: list(DEFAULT_MARKDOWN_LANGUAGES))
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    defaults: dict | None = None

    def base_testcase_config(self) -> TestCaseConfig:
        """Return the lowest tier of the per-test override cascade.

        Raises:
            ConfigError: If `defaults` is not a valid test configuration.
        """
        base = TestCaseConfig.default_markdown()
        if not self.defaults:
            return base
        try:
            return base.with_overrides_from(TestCaseConfig.from_mapping(self.defaults))
        except (TypeError, ValueError) as error:
            raise ConfigError(f"Invalid `defaults` settings: {error}") from error


class ConfigError(ValueError):
    """Exception raised when tool configuration values are invalid.

    Examples:
        raise ConfigError("`languages` must not be empty")
    """


def load_config(search_path: Path) -> ToolConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.scrut-markdown]`` table from `pyproject.toml` and the
    ``[scrut-markdown]`` or ``[tool.scrut-markdown]`` table from
    `.scrut-markdown.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        ToolConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but is not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "scrut-markdown")]
        )
        if pyproject_config is not None:
            return pyproject_config

        dotfile_config = _load_from_file(
            current / ".scrut-markdown.toml",
            table_paths=[("scrut-markdown",), ("tool", "scrut-markdown")],
        )
        if dotfile_config is not None:
            return dotfile_config

        parent = current.parent
        if parent == current:
            break
        current = parent

    return ToolConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> ToolConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> ToolConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return ToolConfig()

    try:
        return ToolConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def validate_config(config: ToolConfig) -> None:
    """Validate a `ToolConfig` instance.

    Args:
        config: Configuration to validate.

    Raises:
        ConfigError: If the languages are empty or not strings, the size limit
            is not a positive integer, or the test defaults are invalid.

    Examples:
        validate_config(ToolConfig(languages=["scrut"]))
    """
    if not isinstance(config.languages, (list, tuple)) or not config.languages:
        raise ConfigError("`languages` must be a non-empty list")
    for language in config.languages:
        if not isinstance(language, str) or not language.strip():
            raise ConfigError("`languages` entries must be non-empty strings")

    if isinstance(config.max_file_size, bool) or not isinstance(config.max_file_size, int):
        raise ConfigError("`max_file_size` must be an integer")
    if config.max_file_size <= 0:
        raise ConfigError("`max_file_size` must be a positive integer")

    if config.defaults is not None and not isinstance(config.defaults, dict):
        raise ConfigError("`defaults` must be a table")
    config.base_testcase_config()


def apply_overrides(config: ToolConfig, **overrides: object) -> ToolConfig:
    """Apply override values to a `ToolConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        ToolConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `ToolConfig`.

    Examples:
        updated = apply_overrides(config, languages=["scrut", "testcase"])
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> ToolConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        ToolConfig: Validated configuration ready for parsing.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), languages=["scrut"])
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    validate_config(config)
    return config
