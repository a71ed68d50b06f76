"""One snapshot run: load the baseline, scan, classify, persist and report."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from filecrc.config import ConfigError, FileCrcConfig
from filecrc.logging import JsonlRunLogger, NullRunLogger, RunLogger, utc_timestamp
from filecrc.notify import Notifier, NotificationError, SmtpNotifier, build_run_notification
from filecrc.retention import TEMP_MARKER, archive_family, next_available_name, split_name
from filecrc.scan import (
    ChangeClassifier,
    ChangeKind,
    DirectoryScanner,
    EntryListing,
    ExcludeRules,
    FileMetadataProvider,
    Fingerprinter,
    RunContext,
    TreeWalker,
)
from filecrc.snapshot import ArchiveError, FileRecord, load_prior_snapshot, save_snapshot

_OUTCOME_EVENTS = {
    ChangeKind.INSERTED: "file_inserted",
    ChangeKind.MISMATCHED: "file_mismatched",
    ChangeKind.SUSPICIOUS: "file_suspicious",
}


@dataclass(slots=True, frozen=True)
class RunOptions:
    """Per-invocation choices that are not part of the stored configuration."""

    base_name: Path | None = None
    analyze_only: bool = False


@dataclass(slots=True, frozen=True)
class RunReport:
    """Counters and outcome of a finished or failed run."""

    counters: dict[str, int]
    deleted: int
    prior_size: int
    output_path: Path | None
    started_at: str
    finished_at: str
    error: str | None = None
    analyze_only: bool = False
    first_run: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class SnapshotRunner:
    """Runs one scan in rotate, base-name or analyze-only mode."""

    def __init__(
        self,
        config: FileCrcConfig,
        options: RunOptions | None = None,
        *,
        walker: TreeWalker | None = None,
        metadata: FileMetadataProvider | None = None,
        notifier: Notifier | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        self._config = config
        self._options = options or RunOptions()
        self._walker = walker
        self._metadata = metadata
        self._notifier = notifier
        if logger is None:
            logger = JsonlRunLogger(config.log.path) if config.log.enabled else NullRunLogger()
        self._logger = logger

    @property
    def logger(self) -> RunLogger:
        return self._logger

    def run(self) -> RunReport:
        """Execute the run; errors are logged and reported before propagating."""
        started_at = utc_timestamp()
        context = RunContext()
        output_path: Path | None = None
        first_run = False
        self._logger.emit(
            "run_started",
            mode=self._mode(),
            roots=[str(root) for root in self._config.scan.roots],
            hash_content=self._config.scan.hash_content,
        )
        try:
            self._check_options()
            prior_path = self._reference()
            first_run = not prior_path.is_file()
            if first_run:
                self._logger.emit("first_run", prior_path)
            else:
                context.prior = load_prior_snapshot(
                    prior_path,
                    entry_name=self._config.archive.entry,
                    password=self._config.archive.password,
                )
                self._logger.emit("prior_loaded", prior_path, records=len(context.prior))
            temp_path = None
            if not self._options.analyze_only:
                temp_path = next_available_name(self._reference(), temp=True)
            self._scan(context, temp_path)
            if temp_path is not None:
                output_path = self._persist(context, temp_path)
        except (OSError, ValueError) as error:
            report = self._report(context, output_path, started_at, first_run, str(error))
            self._logger.emit("run_failed", error=str(error), error_type=type(error).__name__)
            self._notify(report)
            raise
        report = self._report(context, output_path, started_at, first_run, None)
        self._logger.emit(
            "run_completed",
            output_path,
            deleted=report.deleted,
            prior_size=report.prior_size,
            **report.counters,
        )
        delivery_error = self._notify(report)
        if delivery_error is not None:
            raise delivery_error
        return report

    def verify_excludes(self) -> list[EntryListing]:
        """List included and excluded entries without reading file content."""
        self._check_roots()
        return self._scanner(Fingerprinter(hash_content=False)).list_entries(
            self._config.scan.roots
        )

    def _mode(self) -> str:
        if self._options.analyze_only:
            return "analyze"
        return "base" if self._options.base_name is not None else "rotate"

    def _check_options(self) -> None:
        if not self._config.scan.hash_content and not self._options.analyze_only:
            raise ConfigError("Content hashing can only be disabled in analyze-only mode.")
        base_name = self._options.base_name
        if base_name is not None and not base_name.is_file():
            raise ConfigError(f"The base archive '{base_name}' does not exist.")
        self._check_roots()

    def _check_roots(self) -> None:
        for root in self._config.scan.roots:
            if not root.exists():
                raise ConfigError(f"The scan root '{root}' does not exist.")

    def _reference(self) -> Path:
        return self._options.base_name or self._config.archive.path

    def _own_files(self, temp_path: Path | None) -> list[Path]:
        owned: list[Path] = []
        references = {self._config.archive.path, self._reference()}
        for reference in references:
            base, suffix = split_name(reference.name)
            owned.append(reference)
            owned.append(reference.with_name(reference.name + ".tmp"))
            owned.extend(path for _, path in archive_family(reference))
            temp_reference = reference.with_name(f"{base}{TEMP_MARKER}{suffix}")
            owned.extend(path for _, path in archive_family(temp_reference))
        if temp_path is not None:
            owned.append(temp_path)
            owned.append(temp_path.with_name(temp_path.name + ".tmp"))
        if self._config.log.enabled:
            owned.append(self._config.log.path)
        return owned

    def _scanner(
        self, fingerprinter: Fingerprinter, temp_path: Path | None = None
    ) -> DirectoryScanner:
        return DirectoryScanner(
            walker=self._walker,
            excludes=ExcludeRules.from_patterns(self._config.scan.exclude),
            fingerprinter=fingerprinter,
            observer=lambda event, path: self._logger.emit(event, path),
            ignored_paths=self._own_files(temp_path),
        )

    def _scan(self, context: RunContext, temp_path: Path | None) -> None:
        hash_content = self._config.scan.hash_content
        classifier = ChangeClassifier(context, hash_content=hash_content)
        fingerprinter = Fingerprinter(hash_content=hash_content, metadata=self._metadata)

        def visit_file(record: FileRecord) -> None:
            result = classifier.classify(record)
            event = _OUTCOME_EVENTS.get(result.outcome)
            if event is None:
                return
            if result.reason is not None:
                self._logger.emit(event, record.path, reason=result.reason)
            else:
                self._logger.emit(event, record.path)

        self._scanner(fingerprinter, temp_path).scan(self._config.scan.roots, visit_file)

    def _persist(self, context: RunContext, temp_path: Path) -> Path:
        archive = self._config.archive
        size = save_snapshot(
            temp_path,
            context.current.values(),
            entry_name=archive.entry,
            password=archive.password,
        )
        self._logger.emit("archive_written", temp_path, bytes=size, records=len(context.current))
        if self._options.base_name is not None:
            return temp_path
        target = archive.path
        try:
            if target.exists():
                rotated = next_available_name(target)
                target.replace(rotated)
                self._logger.emit("archive_rotated", rotated, previous=str(target))
            temp_path.replace(target)
        except OSError as error:
            raise ArchiveError(
                f"Cannot move '{temp_path}' into place as '{target}': {error.strerror or error}",
                target,
            ) from error
        return target

    def _report(
        self,
        context: RunContext,
        output_path: Path | None,
        started_at: str,
        first_run: bool,
        error: str | None,
    ) -> RunReport:
        return RunReport(
            counters=context.counters(),
            deleted=context.deleted_count(),
            prior_size=context.prior_size,
            output_path=output_path,
            started_at=started_at,
            finished_at=utc_timestamp(),
            error=error,
            analyze_only=self._options.analyze_only,
            first_run=first_run,
        )

    def _notify(self, report: RunReport) -> NotificationError | None:
        email = self._config.email
        if not email.enabled:
            return None
        notifier = self._notifier or SmtpNotifier(
            email.server, email.port, email.user, email.password
        )
        try:
            message = build_run_notification(self._config, report)
            notifier.send(message)
        except NotificationError as error:
            self._logger.emit("notification_failed", error=str(error))
            return error
        self._logger.emit(
            "notification_sent",
            recipients=len(message.to) + len(message.cc),
            attachments=len(message.attachments),
        )
        return None
