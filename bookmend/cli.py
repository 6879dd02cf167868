"""Command-line interface for bookmend.

Responsibilities:
- Expose user-facing commands for restoration, inspection, and verification.
- Convert CLI arguments into `RunConfig` and execute the pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
import signal
from typing import Annotated, Any

import typer

from .cli_rendering import (
    echo_change_report,
    echo_run_summary,
    echo_segment_event,
    exit_with_command_error,
)
from .cli_runtime import prompt_hidden_api_key, resolve_provider_runtime_sources
from .config import EXPORT_FORMATS, ConfigLoader, RunConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import PipelineStageError
from .io.reader import read_document
from .models.datatypes import DiffKind, NormalizationPhase, RunState
from .pipeline import BookmendPipeline, CancellationToken
from .provider_factory import SUPPORTED_PROVIDERS
from .telemetry.logger import RunLogger
from .text.headings import HeadingDetector
from .text.normalizer import TextNormalizer
from .verification import diff_words, verify

app = typer.Typer(
    name="bookmend",
    no_args_is_help=True,
    help="Restore OCR-scanned book text with a language model and verify the result.",
)


class BuildProgressIndicator:
    """Render deterministic per-stage progress lines for long-running commands."""

    _SPINNER_FRAMES = "|/-\\"

    def __init__(self, command_name: str) -> None:
        self._command_name = command_name

    def on_stage_start(self, stage_name: str, stage_index: int, stage_total: int) -> None:
        """Print one progress line for a stage start transition."""

        spinner = self._SPINNER_FRAMES[(stage_index - 1) % len(self._SPINNER_FRAMES)]
        typer.echo(
            f"[progress] command={self._command_name} "
            f"{spinner} {stage_index}/{stage_total} stage={stage_name}"
        )


class _InterruptToCancel:
    """Route the first SIGINT to a cancellation token while active."""

    def __init__(self, token: CancellationToken) -> None:
        self._token = token
        self._previous: Any = None

    def _handle(self, signum: int, frame: object) -> None:
        if self._token.is_cancelled:
            raise KeyboardInterrupt
        self._token.cancel()
        typer.secho(
            "Interrupt received; finishing the current segment. Press Ctrl+C again to abort.",
            fg=typer.colors.YELLOW,
            err=True,
        )

    def __enter__(self) -> _InterruptToCancel:
        self._previous = signal.signal(signal.SIGINT, self._handle)
        return self

    def __exit__(self, *exc_info: object) -> None:
        signal.signal(signal.SIGINT, self._previous)


def _load_yaml_config(config_path: Path | None) -> RunConfig | None:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return None

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


def _resolve_command_base_config(
    config_file: Path | None,
    input_path: Path | None,
    overrides: dict[str, object],
) -> RunConfig:
    """Resolve effective command config from YAML defaults and explicit CLI overrides."""

    explicit = {key: value for key, value in overrides.items() if value is not None}
    loaded_config = _load_yaml_config(config_file)
    if loaded_config is None:
        if input_path is None:
            raise PipelineStageError(
                stage="config",
                detail="Input text path is required when `--config` is not provided.",
                hint="Pass `<input.txt>` or use `--config <path.yaml>` with `input_path`.",
            )
        explicit.setdefault("output_dir", Path("out"))
        return RunConfig(input_path=input_path, **explicit)
    if input_path is not None:
        explicit["input_path"] = input_path
    return replace(loaded_config, **explicit)


def _apply_runtime_sources(
    base_config: RunConfig,
    runtime_cli_values: dict[str, str],
    runtime_secure_values: dict[str, str],
) -> RunConfig:
    """Attach runtime source mappings while keeping base config defaults intact."""

    return replace(
        base_config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=os.environ,
        ),
    )


@app.command("clean")
def clean_command(
    input_path: Annotated[
        Path | None,
        typer.Argument(help="Path to raw OCR text. Required unless provided by `--config`."),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output directory (overrides config file value)."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with command defaults."),
    ] = None,
    locale: Annotated[
        str | None, typer.Option("--locale", help="Text locale: `sv` or `en`.")
    ] = None,
    encoding: Annotated[
        str | None,
        typer.Option("--encoding", help="Input encoding, e.g. `ISO-8859-1` or `utf-8`."),
    ] = None,
    provider: Annotated[
        str | None,
        typer.Option("--provider", help=f"Provider id: {', '.join(SUPPORTED_PROVIDERS)}."),
    ] = None,
    model: Annotated[str | None, typer.Option("--model", help="Model id override.")] = None,
    api_key: Annotated[
        str | None,
        typer.Option(
            "--api-key",
            help="Provider API key override. Prefer `--prompt-api-key` to avoid shell history.",
        ),
    ] = None,
    prompt_api_key: Annotated[
        bool,
        typer.Option("--prompt-api-key", help="Prompt for API key with hidden input."),
    ] = False,
    store_api_key: Annotated[
        bool,
        typer.Option(
            "--store-api-key/--no-store-api-key",
            help="Persist CLI-entered API key to secure credential storage.",
        ),
    ] = True,
    segment_size: Annotated[
        int | None,
        typer.Option("--segment-size", help="Target segment size in characters."),
    ] = None,
    max_attempts: Annotated[
        int | None,
        typer.Option("--max-attempts", help="Provider attempts per segment before fallback."),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Per-attempt timeout in seconds."),
    ] = None,
    context_chars: Annotated[
        int | None,
        typer.Option("--context-chars", help="Trailing output characters carried forward."),
    ] = None,
    hints_path: Annotated[
        Path | None,
        typer.Option(
            "--hints",
            help="Text file with one chapter heading per line (replaces detection).",
        ),
    ] = None,
    export_format: Annotated[
        str | None,
        typer.Option("--export", help=f"Exports to write: {', '.join(EXPORT_FORMATS)}."),
    ] = None,
) -> None:
    """Restore a raw OCR text file segment by segment and verify the result."""

    try:
        base_config = _resolve_command_base_config(
            config_file=config_file,
            input_path=input_path,
            overrides={
                "output_dir": out,
                "locale": locale.lower() if locale is not None else None,
                "encoding": encoding,
                "segment_size_chars": segment_size,
                "max_attempts": max_attempts,
                "attempt_timeout_seconds": timeout,
                "context_window_chars": context_chars,
                "hints_path": hints_path,
                "export_format": export_format.lower() if export_format is not None else None,
            },
        )
        runtime_cli_values, runtime_secure_values = resolve_provider_runtime_sources(
            provider=provider,
            model=model,
            api_key=api_key,
            default_provider=os.environ.get("BOOKMEND_PROVIDER") or base_config.provider,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            credential_store_factory=create_credential_store,
        )
        config = _apply_runtime_sources(
            base_config=base_config,
            runtime_cli_values=runtime_cli_values,
            runtime_secure_values=runtime_secure_values,
        )
        progress = BuildProgressIndicator(command_name="clean")
        pipeline = BookmendPipeline(
            run_logger=RunLogger(),
            stage_progress_callback=progress.on_stage_start,
        )
        token = CancellationToken()
        with _InterruptToCancel(token):
            state: RunState = pipeline.run(config, cancellation=token, on_event=echo_segment_event)
    except Exception as exc:
        exit_with_command_error("clean", exc)

    echo_run_summary(state)


@app.command("detect-headings")
def detect_headings_command(
    input_path: Annotated[Path, typer.Argument(help="Path to raw OCR text.")],
    locale: Annotated[str, typer.Option("--locale", help="Text locale: `sv` or `en`.")] = "sv",
    encoding: Annotated[str, typer.Option("--encoding", help="Input encoding.")] = "ISO-8859-1",
) -> None:
    """List candidate chapter headings found in a text file."""

    try:
        document = read_document(input_path, encoding, locale.lower())
        hints = HeadingDetector().detect(document.text, document.locale)
    except Exception as exc:
        exit_with_command_error("detect-headings", exc)

    if not hints:
        typer.echo("No heading candidates found.")
        return
    for title in hints.titles:
        typer.echo(title)


@app.command("normalize")
def normalize_command(
    input_path: Annotated[Path, typer.Argument(help="Path to text to normalize.")],
    locale: Annotated[str, typer.Option("--locale", help="Text locale: `sv` or `en`.")] = "sv",
    encoding: Annotated[str, typer.Option("--encoding", help="Input encoding.")] = "ISO-8859-1",
    phase: Annotated[
        str, typer.Option("--phase", help="Rule set to apply: `pre` or `post`.")
    ] = "post",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write UTF-8 output here instead of stdout."),
    ] = None,
) -> None:
    """Apply deterministic normalization rules without calling a provider."""

    try:
        document = read_document(input_path, encoding, locale.lower())
        try:
            resolved_phase = NormalizationPhase(phase.lower())
        except ValueError as exc:
            raise PipelineStageError(
                stage="normalize",
                detail=f"Unsupported phase `{phase}`.",
                hint="Use `--phase pre` or `--phase post`.",
            ) from exc
        normalized = TextNormalizer().normalize(document.text, document.locale, resolved_phase)
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(normalized, encoding="utf-8")
    except Exception as exc:
        exit_with_command_error("normalize", exc)

    if output is None:
        typer.echo(normalized, nl=False)
    else:
        typer.echo(f"Normalized text: {output}")


@app.command("verify")
def verify_command(
    original_path: Annotated[Path, typer.Argument(help="Original raw text.")],
    final_path: Annotated[Path, typer.Argument(help="Restored text to compare.")],
    original_encoding: Annotated[
        str, typer.Option("--original-encoding", help="Encoding of the original text.")
    ] = "ISO-8859-1",
    final_encoding: Annotated[
        str, typer.Option("--final-encoding", help="Encoding of the restored text.")
    ] = "utf-8",
    show_diff: Annotated[
        bool,
        typer.Option("--show-diff", help="Also print the word diff with removed and inserted runs marked."),
    ] = False,
) -> None:
    """Compare an original text with its restored version and classify the change."""

    try:
        original = read_document(original_path, original_encoding).text
        final = read_document(final_path, final_encoding).text
        report = verify(original, final)
        runs = diff_words(original, final) if show_diff else []
    except Exception as exc:
        exit_with_command_error("verify", exc)

    if show_diff:
        marks = {
            DiffKind.UNCHANGED: "{}",
            DiffKind.REMOVED: "[-{}-]",
            DiffKind.INSERTED: "{{+{}+}}",
        }
        typer.echo("".join(marks[run.kind].format(run.text) for run in runs))
    echo_change_report(report)


@app.command("credentials")
def credentials_command(
    provider: Annotated[
        str, typer.Option("--provider", help="Provider whose API key to manage.")
    ] = "gemini",
    set_api_key: Annotated[
        bool,
        typer.Option("--set-api-key", help="Prompt for API key with hidden input and store it."),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option("--clear-api-key", help="Clear stored API key from secure storage."),
    ] = False,
) -> None:
    """Manage securely stored provider API keys."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = prompt_hidden_api_key(provider)
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(provider, prompted_api_key)
        except (RuntimeError, ValueError) as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        if credential_store.clear_api_key(provider):
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key(provider) is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored {provider} API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
