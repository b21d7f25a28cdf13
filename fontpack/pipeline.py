"""
fontpack – pipeline.py
======================

Batch pipeline turning a font directory into a self-hosting package.

States::

    IDLE → VALIDATING_INPUTS → INITIALIZING → PROCESSING_FONTS → FINALIZING → DONE
                   ↘                ↘
                  FAILED          FAILED

Design principles
-----------------
- **Fatal only before the first font**: missing tools, an empty input
  directory or an existing output directory raise ``PreconditionError``.
- **Per-font isolation**: once processing starts, a failing font is logged,
  counted and skipped; the batch always reaches finalization.
- **Deterministic**: fonts are handled in discovery order (``*.ttf`` then
  ``*.otf``, each sorted by name) and output only depends on the inputs and
  the generation timestamp in the manifest header.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from functools import reduce
from pathlib import Path

from fontpack import __version__
from fontpack.assemble import OutputAssembler
from fontpack.classify import style_declaration, weight_declaration
from fontpack.config import BuildConfig
from fontpack.convert import convert_font
from fontpack.errors import (
    FontDirectoryError,
    FontProcessingError,
    MissingDependencyError,
    OutputExistsError,
    PreconditionError,
)
from fontpack.integrity import hash_base64, hash_hex
from fontpack.logs import attach_log_file, detach_log_file
from fontpack.name_table import FONT_EXTENSIONS, FontMetadata, extract_font_metadata
from fontpack.tools import (
    CONVERTERS,
    Converter,
    Digester,
    MetadataDumper,
    NameRecordQuery,
    Sha256Digester,
    StructuredQuery,
    TtxDumper,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class PipelineState(Enum):
    IDLE = "idle"
    VALIDATING_INPUTS = "validating_inputs"
    INITIALIZING = "initializing"
    PROCESSING_FONTS = "processing_fonts"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessingResult:
    source_path: Path
    metadata: FontMetadata | None = None
    checksum_hex: str | None = None
    converted_path: Path | None = None
    converted_hash_b64: str | None = None
    succeeded: bool = False
    failure_reason: str | None = None


@dataclass(frozen=True)
class BatchSummary:
    processed_count: int = 0
    failed_count: int = 0
    output_directory: Path | None = None
    generated_files: list[str] = field(default_factory=list)
    stylesheet_hash: str | None = None

    def record(self, result: ProcessingResult) -> BatchSummary:
        """Return a new summary with ``result`` counted."""
        if result.succeeded:
            return replace(self, processed_count=self.processed_count + 1)
        return replace(self, failed_count=self.failed_count + 1)


def discover_fonts(font_dir: Path) -> list[Path]:
    """List the fonts of ``font_dir``: all ``.ttf`` files, then all ``.otf`` files.

    Only the top level of the directory is scanned. Each group is sorted by
    file name so that runs are reproducible.
    """
    entries = [p for p in font_dir.iterdir() if p.is_file()]
    fonts: list[Path] = []
    for ext in FONT_EXTENSIONS:
        fonts.extend(sorted(p for p in entries if p.suffix.lower() == ext))
    return fonts


def _unique(items: list[str]) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


class BatchPipeline:
    """Run one build described by a ``BuildConfig``.

    The tool adapters default to the real implementations; tests pass fakes.
    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        dumper: MetadataDumper | None = None,
        query: StructuredQuery | None = None,
        converter: Converter | None = None,
        digester: Digester | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.dumper = dumper if dumper is not None else TtxDumper()
        self.query = query if query is not None else NameRecordQuery()
        self.converter = (
            converter if converter is not None else CONVERTERS[config.converter]()
        )
        self.digester = digester if digester is not None else Sha256Digester()
        self.clock = clock
        self.assembler = OutputAssembler(config.manifest_path, config.stylesheet_path)
        self.state = PipelineState.IDLE
        self._log_handler: logging.Handler | None = None

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline state: %s -> %s", self.state.value, state.value)
        self.state = state

    # -----------------------
    # Validation
    # -----------------------
    def required_tools(self) -> list[str]:
        adapters: list = [self.dumper, self.query, self.digester]
        if self.config.enable_woff2:
            adapters.append(self.converter)
        tools: list[str] = []
        for adapter in adapters:
            tools.extend(getattr(adapter, "required_tools", ()))
        return _unique(tools)

    def validate(self) -> list[Path]:
        """Check tools and input directory; return the discovered fonts.

        Raises:
            MissingDependencyError: if a required executable is not on ``PATH``.
            FontDirectoryError: if the font directory is absent or has no fonts.
        """
        self._transition(PipelineState.VALIDATING_INPUTS)

        missing = [tool for tool in self.required_tools() if shutil.which(tool) is None]
        if missing:
            raise MissingDependencyError(missing)

        font_dir = self.config.font_dir
        if not font_dir.is_dir():
            raise FontDirectoryError(f"Font directory '{font_dir}' does not exist")

        fonts = discover_fonts(font_dir)
        if not fonts:
            raise FontDirectoryError(f"No TTF or OTF files found in '{font_dir}'")

        logger.info("Found %d font file(s) in '%s'", len(fonts), font_dir)
        return fonts

    # -----------------------
    # Initialization
    # -----------------------
    def initialize(self) -> None:
        """Create a fresh output directory and write the document headers.

        Raises:
            OutputExistsError: if the output location exists and ``force`` is
                off. Nothing is modified in that case.
        """
        self._transition(PipelineState.INITIALIZING)
        out = self.config.output_dir

        if out.exists() or out.is_symlink():
            if not self.config.force:
                raise OutputExistsError(out)
            if out.is_dir() and not out.is_symlink():
                shutil.rmtree(out)
            else:
                out.unlink()
        out.mkdir(parents=True)

        self._log_handler = attach_log_file(self.config.log_path)
        logger.info("Starting fontpack v%s", __version__)
        logger.debug("Configuration: %s", self.config)

        generated_at = self.clock().strftime(TIMESTAMP_FORMAT)
        self.assembler.write_headers(generated_at, __version__)

    # -----------------------
    # Per-font processing
    # -----------------------
    def _build_result(self, font_path: Path, created: list[Path]) -> ProcessingResult:
        cfg = self.config
        metadata = extract_font_metadata(
            font_path, self.dumper, self.query, timeout=cfg.tool_timeout
        )

        converted_path: Path | None = None
        converted_hash: str | None = None
        if cfg.enable_woff2:
            conversion = convert_font(
                font_path, cfg.output_dir, self.converter, timeout=cfg.tool_timeout
            )
            if conversion.succeeded and conversion.converted_path is not None:
                converted_path = conversion.converted_path
                created.append(converted_path)
                logger.info("Generated WOFF2: %s", converted_path.name)
                converted_hash = hash_base64(converted_path, self.digester)
            else:
                logger.warning(
                    "Failed to convert %s to WOFF2: %s", font_path.name, conversion.reason
                )

        checksum = hash_hex(font_path, self.digester)

        original_output = cfg.output_dir / font_path.name
        shutil.copyfile(font_path, original_output)
        created.append(original_output)
        logger.info("Copied original font: %s", font_path.name)

        return ProcessingResult(
            source_path=font_path,
            metadata=metadata,
            checksum_hex=checksum,
            converted_path=converted_path,
            converted_hash_b64=converted_hash,
            succeeded=True,
        )

    def _assemble(self, result: ProcessingResult) -> None:
        metadata = result.metadata
        converted = result.converted_path
        self.assembler.append_font_section(
            result.source_path.name,
            metadata,  # type: ignore[arg-type]
            result.checksum_hex,  # type: ignore[arg-type]
            converted_name=converted.name if converted else None,
            converted_hash_b64=result.converted_hash_b64,
        )
        self.assembler.append_font_face(
            metadata.family_name,  # type: ignore[union-attr]
            weight_declaration(metadata.subfamily),  # type: ignore[union-attr]
            style_declaration(metadata.subfamily),  # type: ignore[union-attr]
            converted,
            self.config.output_dir / result.source_path.name,
        )

    def process_font(self, font_path: Path) -> ProcessingResult:
        """Process one font end to end; never raises for per-font problems.

        On failure, files already written to the output directory for this
        font are removed and no manifest or stylesheet section is written.
        """
        logger.info("Processing font: %s", font_path.name)
        created: list[Path] = []
        try:
            result = self._build_result(font_path, created)
            self._assemble(result)
        except (FontProcessingError, OSError) as e:
            logger.error("%s", e)
            for path in created:
                path.unlink(missing_ok=True)
            return ProcessingResult(source_path=font_path, failure_reason=str(e))
        return result

    def _fold(self, summary: BatchSummary, font_path: Path) -> BatchSummary:
        return summary.record(self.process_font(font_path))

    # -----------------------
    # Finalization
    # -----------------------
    def finalize(self, summary: BatchSummary) -> BatchSummary:
        """Publish the stylesheet integrity data and log the run summary."""
        self._transition(PipelineState.FINALIZING)
        cfg = self.config

        stylesheet_hash = hash_base64(cfg.stylesheet_path, self.digester)
        self.assembler.append_footer(stylesheet_hash)

        generated = [str(cfg.manifest_path), str(cfg.stylesheet_path)]
        if cfg.enable_woff2:
            generated.append("WOFF2 font files")
        generated.append("Original font files")

        summary = replace(
            summary, generated_files=generated, stylesheet_hash=stylesheet_hash
        )

        logger.info("Processing complete!")
        logger.info("Successfully processed: %d font(s)", summary.processed_count)
        if summary.failed_count > 0:
            logger.warning("Failed to process: %d font(s)", summary.failed_count)
        logger.info("Output saved in: %s", cfg.output_dir)
        logger.info("Files generated:")
        for item in generated:
            logger.info("  - %s", item)
        return summary

    # -----------------------
    # Entry point
    # -----------------------
    def run(self) -> BatchSummary:
        """Run the whole batch.

        Returns:
            The final ``BatchSummary``; per-font failures are counted in it.

        Raises:
            PreconditionError: if validation or initialization fails. The
                pipeline is then in the ``FAILED`` state and no font has been
                processed.
        """
        try:
            try:
                fonts = self.validate()
                self.initialize()
            except PreconditionError:
                self._transition(PipelineState.FAILED)
                raise

            self._transition(PipelineState.PROCESSING_FONTS)
            start = BatchSummary(output_directory=self.config.output_dir)
            summary = reduce(self._fold, fonts, start)
            summary = self.finalize(summary)
            self._transition(PipelineState.DONE)
        finally:
            if self._log_handler is not None:
                detach_log_file(self._log_handler)
                self._log_handler = None
        return summary
