"""Pipeline facade for one bookmend run.

Responsibilities:
- Define the stage order from raw input to verified exports.
- Resolve provider runtime settings and build the transformation stack.
- Persist run artifacts and the final report.

Key types:
- `BookmendPipeline`: orchestration facade.
"""

from __future__ import annotations

from collections.abc import Callable
from hashlib import sha256
import json
import os

from ..config import ProviderRuntimeConfig, RunConfig, RuntimeConfigSources
from ..errors import PipelineStageError
from ..io.exporters import DocumentExporter
from ..io.reader import read_document
from ..io.storage import run_dir
from ..llm.http_client import ProviderError
from ..llm.retry import RetryPolicy
from ..llm.transformer import TextTransformer
from ..models.datatypes import (
    Document,
    NormalizationPhase,
    ProgressEvent,
    RunningContext,
    RunState,
    RunStatus,
    Segment,
    StructuralHints,
)
from ..provider_factory import ProviderFactory
from ..telemetry.logger import RunLogger
from ..text.headings import HeadingDetector, clean_structure_list
from ..text.normalizer import TextNormalizer
from ..text.segmenter import Segmenter, verify_partition
from ..verification.change_report import verify
from .artifacts import run_report_payload, segments_artifact_payload
from .cancellation import CancellationToken
from .telemetry import StageTelemetry
from .transformation import TransformationOrchestrator

_NON_RETRYABLE_FAILURE_KINDS = frozenset({"invalid_api_key", "invalid_model"})
_KEYLESS_PROVIDERS = frozenset({"passthrough"})


def is_retryable_failure(error: BaseException) -> bool:
    """Return whether a failed attempt may succeed when repeated."""

    if isinstance(error, ProviderError):
        return error.failure_kind not in _NON_RETRYABLE_FAILURE_KINDS
    return True


class BookmendPipeline:
    """Coordinate all stages for a single bookmend run."""

    def __init__(
        self,
        run_logger: RunLogger | None = None,
        stage_progress_callback: Callable[[str, int, int], None] | None = None,
        transformer: TextTransformer | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize logging and progress hooks.

        Args:
            run_logger: Optional structured logger for stage and segment events.
            stage_progress_callback: Called with stage name, index, and total.
            transformer: Transformer override; when unset, one is created from
                the resolved provider runtime.
            sleeper: Backoff sleep override for the retry policy.
        """

        self._run_logger = run_logger
        self._telemetry = StageTelemetry(run_logger, stage_progress_callback)
        self._transformer = transformer
        self._sleeper = sleeper
        self._normalizer = TextNormalizer()
        self._segmenter = Segmenter()
        self._heading_detector = HeadingDetector()

    def prepare(
        self,
        config: RunConfig,
        hints: StructuralHints | None = None,
    ) -> RunState:
        """Read, detect, normalize, and segment input into a pending run state."""

        self._validate_config(config)
        run_id = f"run-{self._config_hash(config)[:12]}"

        document = self._telemetry.run("read", lambda: self._read(config))
        resolved_hints = self._telemetry.run(
            "detect",
            lambda: hints if hints is not None else self._detect(config, document),
        )
        normalized = self._telemetry.run(
            "normalize",
            lambda: self._normalizer.normalize(
                document.text, document.locale, NormalizationPhase.PRE
            ),
        )
        segments = self._telemetry.run(
            "segment",
            lambda: self._segment(normalized, config.segment_size_chars),
        )
        return RunState(
            run_id=run_id,
            config=config,
            document=document,
            hints=resolved_hints,
            segments=segments,
            context=RunningContext(max_chars=config.context_window_chars),
        )

    def run(
        self,
        config: RunConfig,
        hints: StructuralHints | None = None,
        cancellation: CancellationToken | None = None,
        on_event: Callable[[ProgressEvent], None] | None = None,
    ) -> RunState:
        """Run the full pipeline and return the final run state.

        A cancelled run keeps its committed output, persists it as a partial
        artifact, and skips verification and exports.
        """

        runtime_config = self._resolve_runtime_config(config)
        orchestrator = self._build_orchestrator(config, runtime_config)

        state = self.prepare(config, hints)
        directory = run_dir(config.output_dir, state.run_id, state.artifacts)
        directory.write_text("raw", state.document.text)
        directory.write_text("normalized", "".join(segment.text for segment in state.segments))
        directory.write_json("segments", segments_artifact_payload(state.segments))

        self._telemetry.run("transform", lambda: orchestrator.run(state, cancellation, on_event))

        if state.status is RunStatus.CANCELLED:
            directory.write_text("partial", state.output_text)
        else:
            directory.write_text("clean", state.output_text)
            state.change_report = self._telemetry.run(
                "verify",
                lambda: verify(state.document.text, state.output_text, config.risk_thresholds),
            )
            self._telemetry.run(
                "export",
                lambda: DocumentExporter(directory).export(
                    state.output_text,
                    config.input_path.stem,
                    config.export_format,
                ),
            )

        # The report lists its own path, so register it before building the payload.
        directory.path_for("report")
        directory.write_json("report", run_report_payload(state, runtime_config))
        return state

    def _read(self, config: RunConfig) -> Document:
        return read_document(config.input_path, config.encoding, config.locale)

    def _detect(self, config: RunConfig, document: Document) -> StructuralHints:
        """Load heading hints from `hints_path`, or detect them from the raw text."""

        if config.hints_path is None:
            return self._heading_detector.detect(document.text, document.locale)
        try:
            raw_hints = config.hints_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PipelineStageError(
                stage="detect",
                detail=f"Hints file `{config.hints_path}` could not be read.",
                hint="Provide a UTF-8 text file with one heading per line.",
            ) from exc
        return StructuralHints.from_lines(clean_structure_list(raw_hints).split("\n"))

    def _segment(self, text: str, target_size: int) -> tuple[Segment, ...]:
        segments = self._segmenter.segment(text, target_size)
        verify_partition(text, segments)
        return tuple(segments)

    def _build_orchestrator(
        self,
        config: RunConfig,
        runtime_config: ProviderRuntimeConfig,
    ) -> TransformationOrchestrator:
        """Create the transformer, retry policy, and orchestrator for a run."""

        transformer = self._transformer
        if transformer is None:
            transformer = ProviderFactory.create_transformer(
                runtime_config.provider,
                model=runtime_config.model,
                api_key=runtime_config.api_key,
                temperature=config.temperature,
                request_timeout_seconds=config.attempt_timeout_seconds,
            )
        retry_kwargs: dict[str, object] = {}
        if self._sleeper is not None:
            retry_kwargs["sleeper"] = self._sleeper
        retry_policy = RetryPolicy(
            max_attempts=config.max_attempts,
            base_delay_seconds=config.backoff_base_seconds,
            timeout_seconds=config.attempt_timeout_seconds,
            is_retryable=is_retryable_failure,
            **retry_kwargs,
        )
        return TransformationOrchestrator(
            transformer=transformer,
            retry_policy=retry_policy,
            normalizer=self._normalizer,
            context_window_chars=config.context_window_chars,
            run_logger=self._run_logger,
        )

    def _validate_config(self, config: RunConfig) -> None:
        """Validate top-level configuration and map failures to stage-aware error."""

        try:
            config.validate()
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=str(exc),
                hint="Update the run options and rerun the command.",
            ) from exc

    def _resolve_runtime_config(self, config: RunConfig) -> ProviderRuntimeConfig:
        """Resolve runtime provider settings with deterministic source precedence."""

        self._validate_config(config)
        try:
            env_source = config.runtime_sources.env or os.environ
            runtime_config = config.resolved_provider_runtime(
                RuntimeConfigSources(
                    cli=config.runtime_sources.cli,
                    secure=config.runtime_sources.secure,
                    env=env_source,
                )
            )
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=str(exc),
                hint=(
                    "Set a supported provider and a non-empty model in CLI, secure "
                    "storage, environment, or config defaults."
                ),
            ) from exc

        needs_key = (
            self._transformer is None
            and runtime_config.provider not in _KEYLESS_PROVIDERS
            and runtime_config.api_key is None
        )
        if needs_key:
            raise PipelineStageError(
                stage="config",
                detail=f"No API key configured for provider `{runtime_config.provider}`.",
                hint=(
                    "Pass `--api-key`, store one with `bookmend credentials --set-api-key`, "
                    "or set the provider's API key environment variable."
                ),
            )
        return runtime_config

    def _config_hash(self, config: RunConfig) -> str:
        """Compute deterministic hash for run-defining configuration fields."""

        payload = {
            "input_path": str(config.input_path),
            "output_dir": str(config.output_dir),
            "locale": config.locale,
            "encoding": config.encoding,
            "provider": config.provider,
            "model": config.model,
            "temperature": config.temperature,
            "segment_size_chars": config.segment_size_chars,
            "context_window_chars": config.context_window_chars,
            "hints_path": str(config.hints_path) if config.hints_path is not None else None,
            "extra": dict(config.extra),
        }
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return sha256(canonical.encode("utf-8")).hexdigest()
