"""
Podcast pipeline: a two-phase state machine over a teaching report's podcast.

generate: pending/failed -> generating -> generated | failed
export:   generated -> exporting -> exported | generated (export_status=failed)

Every transition is checked against ``TRANSITIONS`` and written to the store
before the next step starts, so an interrupted run leaves an inspectable
state. Only one operation per report may be in flight at a time.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Set, Tuple

from sentinel.config import get_settings
from sentinel.schemas.podcast import (
    ContentScope, ExportOption, ExportStatus, PodcastData, PodcastOperationResult, PodcastStatus, TreatmentType
)
from sentinel.schemas.report import ReportStatus
from sentinel.schemas.teaching import TeachingAnalysisReport
from sentinel.services.export_service import ExportService
from sentinel.services.report_store import ReportStore
from sentinel.services.synthesis_service import SynthesisService
from sentinel.utils.errors import (
    AlreadyExportedError, AlreadyGeneratedError, CollaboratorError, ExportError, IllegalTransitionError,
    InvalidRequestError, NoArtifactError, OperationInProgressError, SourceNotFoundError, SourceNotReadyError,
    SynthesisError, ValidationError
)
from sentinel.utils.logger import get_logger
from sentinel.utils.validation import is_valid_email

logger = get_logger(__name__)

TRANSITIONS = {
    PodcastStatus.PENDING: {PodcastStatus.GENERATING},
    PodcastStatus.GENERATING: {PodcastStatus.GENERATED, PodcastStatus.FAILED},
    PodcastStatus.GENERATED: {PodcastStatus.EXPORTING},
    PodcastStatus.EXPORTING: {PodcastStatus.EXPORTED, PodcastStatus.GENERATED},
    PodcastStatus.EXPORTED: set(),
    PodcastStatus.FAILED: {PodcastStatus.GENERATING, PodcastStatus.EXPORTING},
}

ARTIFACT_STATES = {PodcastStatus.GENERATED, PodcastStatus.EXPORTING, PodcastStatus.EXPORTED}

RUNNING_STATES = {PodcastStatus.GENERATING, PodcastStatus.EXPORTING}

INTERRUPTED_ERROR = "interrupted"


def check_transition(current: PodcastStatus, target: PodcastStatus) -> None:
    """Raise IllegalTransitionError unless ``current -> target`` is in the table."""
    if target not in TRANSITIONS[current]:
        raise IllegalTransitionError(
            f"Podcast cannot move from '{current.value}' to '{target.value}'"
        )


def assemble_podcast_text(report: TeachingAnalysisReport, content_scope: Iterable[ContentScope]) -> str:
    """
    Concatenate the selected report sections into the text to synthesize.

    Selecting Full Report includes every section regardless of the other
    selections; otherwise sections appear in their fixed order.
    """
    result = report.analysis_result
    scopes = set(content_scope)
    promoters = "\n".join(f"{p.name}: {p.description}" for p in result.promoters_demonstrators)

    if ContentScope.FULL_REPORT in scopes:
        return (
            f"Teaching: {report.teaching}\n\n"
            f"Church History: {result.church_history_context}\n\n"
            f"Promoters: {promoters}\n\n"
            f"Council Summary: {result.church_council_summary}\n\n"
            f"Letter: {result.letter_of_clarification}\n\n"
            f"Warnings: {result.biblical_warnings}"
        )

    sections = [
        (ContentScope.CHURCH_HISTORY, "Church History", result.church_history_context),
        (ContentScope.PROMOTERS, "Promoters", promoters),
        (ContentScope.CHURCH_COUNCIL, "Council Summary", result.church_council_summary),
        (ContentScope.LETTER_OF_CAUTION, "Letter", result.letter_of_clarification),
        (ContentScope.WARNINGS, "Warnings", result.biblical_warnings),
    ]
    return "".join(f"{label}: {text}\n\n" for scope, label, text in sections if scope in scopes)


def _parse_members(values: Iterable[Any], enum_type: Any, label: str) -> List[Any]:
    parsed = []
    for value in values or []:
        try:
            member = enum_type(value)
        except ValueError:
            raise InvalidRequestError(f"Unknown {label}: {value!r}")
        if member not in parsed:
            parsed.append(member)
    if not parsed:
        raise InvalidRequestError(f"At least one {label} must be selected")
    return parsed


class PodcastPipeline:
    """
    Generates and exports the podcast of a teaching report.

    Precondition failures raise before anything is written. Collaborator
    failures are recorded in ``last_error`` and returned as an unsuccessful
    ``PodcastOperationResult``.

    A stored ``generating``/``exporting`` status that no run in this process
    owns was left behind by an interrupted run (restart or cancellation); the
    next operation on the report recovers it before checking preconditions.
    """

    def __init__(self, store: ReportStore[TeachingAnalysisReport], synthesis: SynthesisService,
                 exporter: ExportService, timeout_seconds: Optional[float] = None) -> None:
        self.store = store
        self.synthesis = synthesis
        self.exporter = exporter
        self.timeout_seconds = timeout_seconds or get_settings().collaborator_timeout_seconds
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._in_flight: Set[str] = set()

    def get_podcast(self, analysis_id: str) -> PodcastData:
        """Current podcast record, or the implicit pending default."""
        report = self._load(analysis_id)
        return report.podcast or PodcastData()

    async def generate(self, analysis_id: str, content_scope: List[ContentScope],
                       treatment_type: TreatmentType = TreatmentType.GENERAL_OVERVIEW) -> PodcastOperationResult:
        """
        Synthesize the podcast for the selected sections.

        Raises:
            InvalidRequestError: If the scope is empty or unknown
            SourceNotFoundError: If the report does not exist
            SourceNotReadyError: If the report has no completed analysis
            AlreadyGeneratedError: If audio already exists
            OperationInProgressError: If a generation is already running
        """
        scopes = _parse_members(content_scope, ContentScope, "content scope")
        try:
            treatment = TreatmentType(treatment_type)
        except ValueError:
            raise InvalidRequestError(f"Unknown treatment type: {treatment_type!r}")

        report, previous, _ = await self._claim(analysis_id, self._check_can_generate, PodcastStatus.GENERATING, {
            "content_scope": scopes,
            "treatment_type": treatment,
            "last_error": None,
        })

        logger.info("Podcast generation started", report_id=analysis_id,
                    content_scope=[s.value for s in scopes], treatment=treatment.value,
                    previous_status=previous.value)

        try:
            text = assemble_podcast_text(report, scopes)
            try:
                audio_url = await asyncio.wait_for(self.synthesis.synthesize(text, treatment),
                                                   timeout=self.timeout_seconds)
                if not audio_url:
                    raise SynthesisError("Synthesis returned no audio URL")
            except Exception as e:
                error, code = self._describe_failure(e, SynthesisError)
                podcast = self._write(analysis_id, PodcastStatus.GENERATING, PodcastStatus.FAILED,
                                      {"last_error": error})
                logger.error("Podcast generation failed", report_id=analysis_id, error=error)
                return PodcastOperationResult(success=False, message=f"Podcast generation failed: {error}",
                                              podcast=podcast, error_code=code)
            except BaseException:
                self._write(analysis_id, PodcastStatus.GENERATING, PodcastStatus.FAILED,
                            {"last_error": INTERRUPTED_ERROR})
                logger.warning("Podcast generation interrupted", report_id=analysis_id)
                raise

            podcast = self._write(analysis_id, PodcastStatus.GENERATING, PodcastStatus.GENERATED, {
                "audio_url": audio_url,
                "export_status": ExportStatus.PENDING,
                "last_error": None,
            })
        finally:
            self._in_flight.discard(analysis_id)

        logger.info("Podcast generated", report_id=analysis_id, audio_url=audio_url)
        return PodcastOperationResult(success=True, message="Podcast generated successfully.", podcast=podcast)

    async def export(self, analysis_id: str, export_options: List[ExportOption],
                     email: Optional[str] = None) -> PodcastOperationResult:
        """
        Deliver the generated audio to every requested target.

        Every target is attempted even if an earlier one fails; per-target
        outcomes are kept in ``export_results``.

        Raises:
            ValidationError: If options are empty or the email is missing/invalid
            SourceNotFoundError: If the report does not exist
            NoArtifactError: If no audio has been generated
            AlreadyExportedError: If the podcast was already exported
            OperationInProgressError: If another operation is running
        """
        options = _parse_members(export_options, ExportOption, "export option")
        if ExportOption.EMAIL in options:
            if not email or not email.strip():
                raise ValidationError("An email address is required for email export")
            if not is_valid_email(email):
                raise ValidationError(f"Invalid email address: {email}")
            email = email.strip()

        _, previous, claimed = await self._claim(analysis_id, self._check_can_export, PodcastStatus.EXPORTING, {
            "export_options": options,
            "export_status": ExportStatus.PENDING,
            "export_results": {},
            "last_error": None,
        })
        audio_url = claimed.audio_url

        logger.info("Podcast export started", report_id=analysis_id,
                    export_options=[o.value for o in options], previous_status=previous.value)

        results: Dict[str, str] = {}
        failures: Dict[str, str] = {}
        try:
            try:
                for option in options:
                    try:
                        results[option.value] = await asyncio.wait_for(
                            self.exporter.send(audio_url, option, email), timeout=self.timeout_seconds
                        ) or "completed"
                    except Exception as e:
                        error, _ = self._describe_failure(e, ExportError)
                        failures[option.value] = error
                        results[option.value] = f"failed: {error}"
                        logger.error("Podcast export target failed", report_id=analysis_id,
                                     target=option.value, error=error)
            except BaseException:
                self._write(analysis_id, PodcastStatus.EXPORTING, PodcastStatus.GENERATED, {
                    "export_status": ExportStatus.FAILED,
                    "export_results": results,
                    "last_error": INTERRUPTED_ERROR,
                })
                logger.warning("Podcast export interrupted", report_id=analysis_id)
                raise

            if failures:
                error = "; ".join(f"{target}: {reason}" for target, reason in failures.items())
                podcast = self._write(analysis_id, PodcastStatus.EXPORTING, PodcastStatus.GENERATED, {
                    "export_status": ExportStatus.FAILED,
                    "export_results": results,
                    "last_error": error,
                })
                return PodcastOperationResult(success=False, message=f"Podcast export failed: {error}",
                                              podcast=podcast, error_code=ExportError.code)

            podcast = self._write(analysis_id, PodcastStatus.EXPORTING, PodcastStatus.EXPORTED, {
                "export_status": ExportStatus.COMPLETED,
                "export_results": results,
                "last_error": None,
            })
        finally:
            self._in_flight.discard(analysis_id)
        logger.info("Podcast exported", report_id=analysis_id, export_options=[o.value for o in options])
        return PodcastOperationResult(success=True, message="Podcast exported successfully.", podcast=podcast)

    def _check_can_generate(self, report: TeachingAnalysisReport, podcast: PodcastData) -> None:
        if report.status != ReportStatus.COMPLETED or report.analysis_result is None:
            raise SourceNotReadyError(
                f"Teaching analysis {report.id} has no completed analysis to build a podcast from"
            )
        if podcast.status == PodcastStatus.GENERATING:
            raise OperationInProgressError(f"Podcast for {report.id} is already being generated")
        if podcast.status in ARTIFACT_STATES:
            raise AlreadyGeneratedError(
                f"Podcast for {report.id} has already been generated (status '{podcast.status.value}')"
            )

    def _check_can_export(self, report: TeachingAnalysisReport, podcast: PodcastData) -> None:
        if podcast.status == PodcastStatus.EXPORTED:
            raise AlreadyExportedError(f"Podcast for {report.id} has already been exported")
        if podcast.status in (PodcastStatus.EXPORTING, PodcastStatus.GENERATING):
            raise OperationInProgressError(
                f"Podcast for {report.id} is busy (status '{podcast.status.value}')"
            )
        if not podcast.audio_url:
            raise NoArtifactError(f"Podcast for {report.id} must be generated before it can be exported")

    async def _claim(self, analysis_id: str, check: Any, target: PodcastStatus,
                     fields: Dict[str, Any]) -> Tuple[TeachingAnalysisReport, PodcastStatus, PodcastData]:
        # The lock covers only check-and-write; collaborator calls run outside it
        async with self._report_lock(analysis_id):
            report = self._load(analysis_id)
            podcast = report.podcast or PodcastData()
            if podcast.status in RUNNING_STATES and analysis_id not in self._in_flight:
                podcast = self._recover_interrupted(analysis_id, podcast)
            check(report, podcast)
            claimed = self._write(analysis_id, podcast.status, target, fields)
            self._in_flight.add(analysis_id)
        return report, podcast.status, claimed

    def _recover_interrupted(self, analysis_id: str, podcast: PodcastData) -> PodcastData:
        if podcast.status == PodcastStatus.GENERATING:
            recovered = self._write(analysis_id, PodcastStatus.GENERATING, PodcastStatus.FAILED,
                                    {"last_error": INTERRUPTED_ERROR})
        else:
            recovered = self._write(analysis_id, PodcastStatus.EXPORTING, PodcastStatus.GENERATED, {
                "export_status": ExportStatus.FAILED,
                "last_error": INTERRUPTED_ERROR,
            })
        logger.warning("Recovered interrupted podcast run", report_id=analysis_id,
                       from_status=podcast.status.value, to_status=recovered.status.value)
        return recovered

    def _write(self, analysis_id: str, current: PodcastStatus, target: PodcastStatus,
               fields: Dict[str, Any]) -> PodcastData:
        check_transition(current, target)
        report = self.store.merge_podcast(analysis_id, {**fields, "status": target})
        logger.debug("Podcast status written", report_id=analysis_id,
                     from_status=current.value, to_status=target.value)
        return report.podcast

    def _load(self, analysis_id: str) -> TeachingAnalysisReport:
        report = self.store.get_by_id(analysis_id)
        if report is None:
            raise SourceNotFoundError(f"Teaching analysis {analysis_id} not found")
        return report

    @asynccontextmanager
    async def _report_lock(self, analysis_id: str) -> AsyncIterator[None]:
        # Entries are dropped once no task holds or waits on the lock
        lock = self._locks.setdefault(analysis_id, asyncio.Lock())
        self._lock_users[analysis_id] = self._lock_users.get(analysis_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[analysis_id] -= 1
            if not self._lock_users[analysis_id]:
                del self._lock_users[analysis_id]
                del self._locks[analysis_id]

    def _describe_failure(self, error: Exception, default: type) -> Tuple[str, str]:
        if isinstance(error, asyncio.TimeoutError):
            return f"timed out after {self.timeout_seconds:g} seconds", default.code
        if isinstance(error, CollaboratorError):
            return error.message, error.code
        return str(error) or type(error).__name__, default.code
