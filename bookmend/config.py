"""Configuration model and loaders for bookmend.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for provider, model, and API key.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `RunConfig`: normalized runtime settings for a pipeline run.
- `ProviderRuntimeConfig`: resolved provider/model runtime values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `RunConfig`.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_optional_string, parse_non_negative_float, parse_positive_int
from .provider_factory import DEFAULT_MODELS, SUPPORTED_PROVIDERS
from .text.locales import SUPPORTED_LOCALES
from .verification.change_report import ChangeThresholds

EXPORT_FORMATS = ("txt", "doc", "both", "none")

_API_KEY_ENV_BY_PROVIDER = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved provider identifier, model, and credentials for one run."""

    provider: str
    model: str
    api_key: str | None = None

    def as_report_metadata(self) -> dict[str, str]:
        """Return non-secret runtime metadata safe to persist in artifacts."""

        return {"provider": self.provider, "model": self.model}


@dataclass(slots=True)
class RunConfig:
    """Runtime configuration for one pipeline run.

    Attributes:
        input_path: Path to the raw OCR text file.
        output_dir: Output directory for generated artifacts.
        locale: Locale code (`sv` or `en`).
        encoding: Character encoding of the input file.
        provider: Transformation provider identifier.
        model: Provider model identifier, or `None` for the provider default.
        api_key: Optional API key for provider calls.
        temperature: Sampling temperature for provider calls.
        segment_size_chars: Target segment size in characters.
        max_attempts: Attempts per segment before falling back.
        attempt_timeout_seconds: Wall-clock bound for one attempt.
        backoff_base_seconds: Base of the doubling backoff between attempts.
        context_window_chars: Trailing output characters carried to the next segment.
        risk_thresholds: Change-ratio tier boundaries for the final report.
        hints_path: Optional file with one heading per line replacing detection.
        export_format: Final document exports to write (`txt`, `doc`, `both`, `none`).
        runtime_sources: Optional runtime source overrides injected by CLI.
        extra: Additional metadata copied into the run report.
    """

    input_path: Path
    output_dir: Path
    locale: str = "sv"
    encoding: str = "ISO-8859-1"
    provider: str = "gemini"
    model: str | None = None
    api_key: str | None = None
    temperature: float = 0.1
    segment_size_chars: int = 1500
    max_attempts: int = 5
    attempt_timeout_seconds: float = 180.0
    backoff_base_seconds: float = 1.0
    context_window_chars: int = 500
    risk_thresholds: ChangeThresholds = field(default_factory=ChangeThresholds)
    hints_path: Path | None = None
    export_format: str = "both"
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate runtime configuration values before pipeline execution."""

        if self.locale not in SUPPORTED_LOCALES:
            supported = ", ".join(sorted(SUPPORTED_LOCALES))
            raise ValueError(f"Unsupported `locale` value `{self.locale}`; supported: {supported}.")
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise ValueError(f"Unknown `encoding` value `{self.encoding}`.") from exc
        self._validate_provider_id(self.provider)
        if self.export_format not in EXPORT_FORMATS:
            raise ValueError(
                f"Unsupported `export_format` value `{self.export_format}`; "
                f"supported: {', '.join(EXPORT_FORMATS)}."
            )
        for field_name in ("segment_size_chars", "max_attempts", "context_window_chars"):
            parse_positive_int(getattr(self, field_name), field_name)
        if self.attempt_timeout_seconds <= 0:
            raise ValueError("`attempt_timeout_seconds` must be a positive number.")
        parse_non_negative_float(self.backoff_base_seconds, "backoff_base_seconds")
        parse_non_negative_float(self.temperature, "temperature")

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve provider, model, and API key with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field default.
        The model falls back to the provider default when nothing sets it, and
        the API key environment variable follows the resolved provider.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources

        provider = self._resolve_runtime_value(
            key="provider",
            env_key="BOOKMEND_PROVIDER",
            default_value=self.provider,
            sources=resolved_sources,
        )
        self._validate_provider_id(provider)
        model = self._resolve_runtime_value(
            key="model",
            env_key="BOOKMEND_MODEL",
            default_value=self.model or DEFAULT_MODELS[provider],
            sources=resolved_sources,
        )
        api_key = self._resolve_optional_runtime_value(
            key="api_key",
            env_key=_API_KEY_ENV_BY_PROVIDER.get(provider, ""),
            default_value=self.api_key,
            sources=resolved_sources,
        )
        return ProviderRuntimeConfig(provider=provider, model=model, api_key=api_key)

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a required runtime value in deterministic precedence order."""

        value = self._resolve_optional_runtime_value(key, env_key, default_value, sources)
        if value is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or defaults."
            )
        return value

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in deterministic order."""

        for mapping, lookup_key in (
            (sources.cli, key),
            (sources.secure, key),
            (sources.env, env_key),
        ):
            value = self._normalized_lookup(mapping, lookup_key)
            if value is not None:
                return value
        return normalize_optional_string(default_value)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if not key or key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _validate_provider_id(provider_id: str) -> None:
        """Validate provider identifiers against supported providers."""

        if provider_id not in SUPPORTED_PROVIDERS:
            supported = ", ".join(SUPPORTED_PROVIDERS)
            raise ValueError(f"Unsupported `provider` value `{provider_id}`; supported: {supported}.")


class ConfigLoader:
    """Factory methods for creating `RunConfig` from external sources."""

    _REQUIRED_YAML_KEYS = frozenset({"input_path", "output_dir"})
    _STRING_KEYS = ("locale", "encoding", "provider", "model", "api_key", "export_format")
    _INT_KEYS = ("segment_size_chars", "max_attempts", "context_window_chars")
    _FLOAT_KEYS = ("temperature", "attempt_timeout_seconds", "backoff_base_seconds")
    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "input_path",
            "output_dir",
            "hints_path",
            "risk_thresholds",
            "extra",
            *_STRING_KEYS,
            *_INT_KEYS,
            *_FLOAT_KEYS,
        }
    )
    _NON_ENV_KEYS = frozenset({"api_key", "risk_thresholds", "extra"})
    _THRESHOLD_KEYS = frozenset({"negligible", "healthy", "moderate"})
    _RUNTIME_ENV_KEYS = frozenset(
        {"BOOKMEND_PROVIDER", "BOOKMEND_MODEL", *_API_KEY_ENV_BY_PROVIDER.values()}
    )

    @staticmethod
    def from_yaml(path: Path) -> RunConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> RunConfig:
        """Create a validated config from `BOOKMEND_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        prefix = "BOOKMEND_"

        payload: dict[str, Any] = {}
        for key in ConfigLoader._SUPPORTED_YAML_KEYS - ConfigLoader._NON_ENV_KEYS:
            value = normalize_optional_string(env_map.get(f"{prefix}{key.upper()}"))
            if value is not None:
                payload[key] = value
        if "input_path" not in payload:
            raise ValueError(f"Environment variable `{prefix}INPUT_PATH` is required.")
        payload.setdefault("output_dir", "out")

        provider = str(payload.get("provider", "gemini")).lower()
        api_key = normalize_optional_string(env_map.get(_API_KEY_ENV_BY_PROVIDER.get(provider, "")))
        if api_key is not None:
            payload["api_key"] = api_key

        config = ConfigLoader._build_config_from_mapping(payload, source_label="Environment")
        config.runtime_sources = RuntimeConfigSources(
            env={
                key: value
                for key, value in env_map.items()
                if key in ConfigLoader._RUNTIME_ENV_KEYS
                and normalize_optional_string(value) is not None
            }
        )
        return config

    @staticmethod
    def _build_config_from_mapping(payload: Mapping[str, Any], source_label: str) -> RunConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_keys(payload, source_label)

        kwargs: dict[str, Any] = {
            "input_path": ConfigLoader._required_path(payload, "input_path", source_label),
            "output_dir": ConfigLoader._required_path(payload, "output_dir", source_label),
        }
        hints_path = normalize_optional_string(payload.get("hints_path"))
        if hints_path is not None:
            kwargs["hints_path"] = Path(hints_path)
        for key in ConfigLoader._STRING_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                kwargs[key] = value.lower() if key in {"locale", "provider", "export_format"} else value
        try:
            for key in ConfigLoader._INT_KEYS:
                if normalize_optional_string(payload.get(key)) is not None:
                    kwargs[key] = parse_positive_int(payload[key], key)
            for key in ConfigLoader._FLOAT_KEYS:
                if normalize_optional_string(payload.get(key)) is not None:
                    kwargs[key] = parse_non_negative_float(payload[key], key)
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        if "risk_thresholds" in payload:
            kwargs["risk_thresholds"] = ConfigLoader._thresholds(
                payload["risk_thresholds"], source_label
            )
        kwargs["extra"] = ConfigLoader._optional_string_map(payload, "extra", source_label)

        config = RunConfig(**kwargs)
        config.validate()
        return config

    @staticmethod
    def _validate_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Validate supported and required keys."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        missing = sorted(key for key in ConfigLoader._REQUIRED_YAML_KEYS if key not in payload)
        if missing:
            raise ValueError(f"{source_label} is missing required key(s): {', '.join(missing)}.")

    @staticmethod
    def _required_path(payload: Mapping[str, Any], key: str, source_label: str) -> Path:
        """Read a required non-empty path-like field from a payload."""

        value = normalize_optional_string(payload.get(key))
        if value is None:
            raise ValueError(f"{source_label} requires non-empty `{key}`.")
        return Path(value)

    @staticmethod
    def _thresholds(raw: object, source_label: str) -> ChangeThresholds:
        """Read a `risk_thresholds` mapping of tier name to ratio."""

        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `risk_thresholds` must be a mapping/object.")
        unknown = sorted(set(raw).difference(ConfigLoader._THRESHOLD_KEYS))
        if unknown:
            raise ValueError(
                f"{source_label} field `risk_thresholds` includes unsupported key(s): "
                f"{', '.join(unknown)}."
            )
        values = {
            key: parse_non_negative_float(value, f"risk_thresholds.{key}")
            for key, value in raw.items()
        }
        return ChangeThresholds(**values)

    @staticmethod
    def _optional_string_map(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> dict[str, str]:
        """Read an optional mapping with non-empty string keys and values."""

        raw = payload.get(key)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")

        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key_value = normalize_optional_string(raw_key)
            value_value = normalize_optional_string(raw_value)
            if key_value is None:
                raise ValueError(f"{source_label} field `{key}` contains a blank key.")
            if value_value is None:
                raise ValueError(
                    f"{source_label} field `{key}` contains blank value for `{key_value}`."
                )
            normalized[key_value] = value_value
        return normalized
