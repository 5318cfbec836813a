"""Design Pipeline Orchestrator for DesignFlow.

Runs one photo + user context through the four stages:

1. analyzing  - scene analysis of the photo (network, can fail)
2. measuring  - dimension estimate (pure)
3. styling    - style preset lookup (pure)
4. creating   - layout, pricing, narrative prompt, image synthesis
                (network, can fail)

Any failure aborts the run, tagged with the stage it happened in. Nothing
is persisted for a failed run except its status. The orchestrator never
retries; a failed run can simply be started again.
"""

import time
from typing import Any, Dict, List, Optional

import structlog

from config.errors import (
    DesignFlowError,
    ErrorCode,
    ExternalServiceError,
    PipelineError,
)
from config.settings import settings
from engine.dimension_estimator import estimate, format_dimensions
from engine.layout_engine import generate_layout
from engine.pricing_engine import calculate_pricing
from engine.prompt_builder import build_narrative_prompt
from engine.style_presets import StylePreset, match_style_preset
from models.catalog import CatalogSnapshot
from models.layout import (
    LayoutIntent,
    LayoutResult,
    Priority,
    WallSegment,
)
from models.pipeline import (
    CabinetSummary,
    DesignResult,
    PipelineProgress,
    PipelineStage,
    Render,
    UserContext,
)
from models.pricing import PriceBreakdown
from models.space_analysis import ConfidenceTier, Dimensions, SpaceAnalysis
from pipeline.progress import CancellationToken, ProgressObserver, StageTracker
from services.firestore_service import FirestoreService
from services.image_synthesis_service import ImageSynthesisService
from services.image_utils import strip_data_url
from services.scene_analysis_service import SceneAnalysisService
from utils.pipeline_logger import (
    log_pipeline_cancelled,
    log_pipeline_complete,
    log_pipeline_failed,
    log_pipeline_start,
    log_stage_output,
    log_stage_start,
)

logger = structlog.get_logger()

DEFAULT_WALL_LABEL = "Main wall"


class _Cancelled(Exception):
    """Internal signal: the caller went away, stop without writing."""


class DesignPipelineOrchestrator:
    """Orchestrates a single design pipeline run.

    Safe to call once per logical attempt. Single-flight per session is the
    caller's job (see pipeline.guard.SessionRunGuard).
    """

    def __init__(
        self,
        firestore_service: Optional[FirestoreService] = None,
        scene_analysis_service: Optional[SceneAnalysisService] = None,
        image_synthesis_service: Optional[ImageSynthesisService] = None,
        confidence_tier: Optional[ConfidenceTier] = None
    ):
        """Initialize DesignPipelineOrchestrator.

        Args:
            firestore_service: Session store. Defaults to FirestoreService().
            scene_analysis_service: Scene analysis collaborator.
            image_synthesis_service: Image synthesis collaborator.
            confidence_tier: Capture confidence tier for the measuring stage.
        """
        self.firestore = firestore_service or FirestoreService()
        self.scene_analysis = scene_analysis_service or SceneAnalysisService()
        self.image_synthesis = image_synthesis_service or ImageSynthesisService()
        self.confidence_tier = confidence_tier or ConfidenceTier(settings.capture_confidence_tier)

        self.tracker = StageTracker()
        self._start_time: Optional[float] = None
        self._started_at: Optional[int] = None

    @property
    def elapsed_ms(self) -> int:
        """Get elapsed time in milliseconds."""
        if self._start_time is None:
            return 0
        return int((time.time() - self._start_time) * 1000)

    @property
    def progress(self) -> PipelineProgress:
        """Current stage and completed stages, for display only."""
        return self.tracker.snapshot()

    async def run(
        self,
        photo: str,
        user_context: UserContext,
        catalog: CatalogSnapshot,
        cancel_token: Optional[CancellationToken] = None,
        observer: Optional[ProgressObserver] = None
    ) -> Optional[DesignResult]:
        """Run the pipeline for one photo.

        Args:
            photo: Source photo, base64 or data URL.
            user_context: Preferences collected before the run.
            catalog: Catalog snapshot used for the whole run.
            cancel_token: Caller liveness flag.
            observer: Called with a PipelineProgress after every transition.

        Returns:
            DesignResult, or None if the caller cancelled mid-run.

        Raises:
            PipelineError: Stage-tagged, retryable failure.
        """
        session_id = user_context.session_id
        token = cancel_token or CancellationToken()

        self._start_time = time.time()
        self._started_at = int(self._start_time * 1000)
        self.tracker = StageTracker(session_id)
        if observer:
            self.tracker.subscribe(observer)

        log_pipeline_start(session_id, user_context.user_id)
        logger.info(
            "pipeline_started",
            session_id=session_id,
            purpose=user_context.purpose.value,
            walls=len(user_context.walls)
        )

        try:
            await self._enter(session_id, user_context, PipelineStage.ANALYZING, token)
            analysis = await self._analyze(session_id, photo, token)

            await self._enter(session_id, user_context, PipelineStage.MEASURING, token)
            dimensions = self._measure(session_id, analysis)

            await self._enter(session_id, user_context, PipelineStage.STYLING, token)
            preset = self._style(session_id, analysis, user_context)

            await self._enter(session_id, user_context, PipelineStage.CREATING, token)
            result = await self._create(
                session_id, photo, user_context, catalog, analysis, dimensions, preset, token
            )

            await self._enter(session_id, user_context, PipelineStage.DONE, token)

        except _Cancelled:
            log_pipeline_cancelled(session_id, self.tracker.stage or "idle")
            logger.info(
                "pipeline_cancelled",
                session_id=session_id,
                stage=self.tracker.stage.value if self.tracker.stage else None,
                duration_ms=self.elapsed_ms
            )
            return None

        except Exception as e:
            if token.is_cancelled:
                log_pipeline_cancelled(session_id, self.tracker.stage or "idle")
                logger.info("pipeline_cancelled_after_error", session_id=session_id, error=str(e))
                return None
            pipeline_error = await self._fail(session_id, user_context, e)
            raise pipeline_error from e

        log_pipeline_complete(
            session_id=session_id,
            completed_stages=self.tracker.completed_stages,
            duration_ms=self.elapsed_ms,
            render_count=len(result.renders)
        )
        logger.info(
            "pipeline_completed",
            session_id=session_id,
            duration_ms=self.elapsed_ms,
            renders=len(result.renders)
        )
        return result

    # =========================================================================
    # Stages
    # =========================================================================

    async def _analyze(self, session_id: str, photo: str, token: CancellationToken) -> SpaceAnalysis:
        started = time.time()
        analysis = await self.scene_analysis.analyze(photo)
        self._check(token)

        log_stage_output(session_id, PipelineStage.ANALYZING, {
            "room_type": analysis.room_type.value,
            "style_aesthetic": analysis.style_aesthetic.value,
            "lighting": analysis.lighting_conditions.value,
            "features": analysis.features,
        }, _ms_since(started))
        return analysis

    def _measure(self, session_id: str, analysis: SpaceAnalysis) -> Dimensions:
        dimensions = estimate(analysis, self.confidence_tier)
        log_stage_output(session_id, PipelineStage.MEASURING, {
            "dimensions": format_dimensions(dimensions),
            "confidence": dimensions.confidence_percent,
            "label": dimensions.tier_label,
        })
        return dimensions

    def _style(self, session_id: str, analysis: SpaceAnalysis, user_context: UserContext) -> StylePreset:
        signals = user_context.style_signals() + [analysis.style_aesthetic.value]
        preset = match_style_preset(signals, user_context.budget_tier)
        log_stage_output(session_id, PipelineStage.STYLING, {
            "preset": preset.id,
            "signals": signals,
        })
        return preset

    async def _create(
        self,
        session_id: str,
        photo: str,
        user_context: UserContext,
        catalog: CatalogSnapshot,
        analysis: SpaceAnalysis,
        dimensions: Dimensions,
        preset: StylePreset,
        token: CancellationToken
    ) -> DesignResult:
        started = time.time()

        walls = user_context.walls or [
            WallSegment(label=DEFAULT_WALL_LABEL, length_mm=dimensions.width)
        ]
        intent = LayoutIntent(
            walls=tuple(walls),
            purpose=user_context.purpose,
            budget_tier=user_context.budget_tier,
            priorities=user_context.priorities,
            specific_requests=tuple(user_context.specific_requests),
            finishes=preset.finishes,
        )
        layout = generate_layout(
            intent,
            nominal_width_mm=catalog.module_width_constraint() or settings.nominal_module_width_mm,
            min_width_mm=settings.min_module_width_mm,
        )
        pricing = calculate_pricing(
            layout.config,
            catalog,
            budget_tier=user_context.budget_tier,
            budget_range=user_context.budget_range,
        )

        material = catalog.material(preset.finishes.material)
        hardware = catalog.hardware_item(preset.finishes.hardware)
        door_profile = catalog.door_profile(preset.finishes.door_profile)
        material_name = material.name if material and material.name else None
        hardware_name = hardware.name if hardware and hardware.name else None
        door_profile_name = door_profile.name if door_profile and door_profile.name else None

        prompt = build_narrative_prompt(
            preset=preset,
            analysis=analysis,
            dimensions=dimensions,
            walls=walls,
            purpose=user_context.purpose.value,
            style_summary=user_context.style_summary,
            priorities=[p.value for p in Priority if p in intent.priorities],
            specific_requests=user_context.specific_requests,
            free_text=user_context.free_text,
            layout=layout,
            material_name=material_name,
            hardware_name=hardware_name,
            door_profile_name=door_profile_name,
        )
        logger.debug("render_prompt_built", session_id=session_id, prompt=prompt)

        source_photo, source_mime = strip_data_url(photo)
        renders = await self.image_synthesis.generate(prompt, source_photo, mime_type=source_mime)
        self._check(token)

        if not renders:
            raise ExternalServiceError(
                code=ErrorCode.IMAGE_SYNTHESIS_NO_OUTPUT,
                message="Image synthesis returned no usable images",
                service="image_synthesis"
            )

        result = _build_result(
            session_id=session_id,
            renders=renders,
            layout=layout,
            pricing=pricing,
            preset=preset,
            door_style=" ".join(
                n for n in (material_name, door_profile_name) if n
            ) or preset.label,
            handle_style=hardware_name or preset.finishes.hardware,
        )

        await self._persist(session_id, layout, renders, pricing, result, token)

        log_stage_output(session_id, PipelineStage.CREATING, {
            "shape": layout.shape.value,
            "base_modules": len(layout.config.base_modules),
            "overhead_modules": len(layout.config.overhead_modules),
            "price": pricing.range_label,
            "budget_fit": pricing.budget_fit.value,
            "renders": len(renders),
        }, _ms_since(started))
        return result

    async def _persist(
        self,
        session_id: str,
        layout: LayoutResult,
        renders: List[Render],
        pricing: PriceBreakdown,
        result: DesignResult,
        token: CancellationToken
    ) -> None:
        """Write the durable artifacts as one atomic, idempotent commit."""
        self._check(token)
        await self.firestore.save_design(
            session_id,
            layout_config=layout.config.to_dict(),
            layout_description=layout.description,
            layout_shape=layout.shape.value,
            renders=renders,
            price_estimate=pricing.to_dict(),
            design_result=result.to_dict(),
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    async def _enter(
        self,
        session_id: str,
        user_context: UserContext,
        stage: PipelineStage,
        token: CancellationToken
    ) -> None:
        self._check(token)
        if stage == PipelineStage.ANALYZING:
            progress = self.tracker.start()
        else:
            progress = self.tracker.advance(stage)

        if stage == PipelineStage.DONE:
            status = "complete"
        else:
            status = "running"
            log_stage_start(session_id, stage, progress.percent)

        await self.firestore.update_pipeline_status(
            session_id,
            progress,
            status,
            user_id=user_context.user_id or None,
            started_at=self._started_at
        )
        self._check(token)

    async def _fail(
        self,
        session_id: str,
        user_context: UserContext,
        error: Exception
    ) -> PipelineError:
        """Move to error, sync status and build the stage-tagged error."""
        failed_stage = self.tracker.stage
        completed = self.tracker.completed_stages

        if failed_stage is not None and not failed_stage.is_terminal:
            progress = self.tracker.fail()
        else:
            progress = self.tracker.snapshot()
        stage_name = failed_stage.value if failed_stage else None

        code = error.code if isinstance(error, DesignFlowError) else ErrorCode.PIPELINE_FAILED
        message = error.message if isinstance(error, DesignFlowError) else str(error)

        log_pipeline_failed(
            session_id=session_id,
            failed_stage=stage_name or "unknown",
            error=message,
            completed_stages=completed
        )
        logger.exception(
            "pipeline_exception",
            session_id=session_id,
            stage=stage_name,
            code=code,
            error=message
        )

        await self.firestore.update_pipeline_status(
            session_id,
            progress,
            "error",
            error={"code": code, "message": message, "stage": stage_name},
            user_id=user_context.user_id or None,
            started_at=self._started_at
        )

        details: Dict[str, Any] = {"cause": code}
        if isinstance(error, ExternalServiceError):
            details["service"] = error.service
            details["status_code"] = error.status_code

        return PipelineError(
            code=code,
            message=message,
            session_id=session_id,
            stage=stage_name,
            retryable=True,
            details=details
        )

    def _check(self, token: CancellationToken) -> None:
        if token.is_cancelled:
            raise _Cancelled()


def _build_result(
    session_id: str,
    renders: List[Render],
    layout: LayoutResult,
    pricing: PriceBreakdown,
    preset: StylePreset,
    door_style: str,
    handle_style: str
) -> DesignResult:
    """Flatten the run's outputs into the display aggregate."""
    cabinets: List[CabinetSummary] = []
    for wall in layout.wall_assignments:
        for position, module in enumerate(wall.base_modules, start=1):
            cabinets.append(CabinetSummary(
                position=position,
                type=module.module_type.value,
                label=module.label,
                width=module.width_mm,
            ))

    return DesignResult(
        session_id=session_id,
        renders=[render.data_url for render in renders],
        description=layout.description,
        price_range=(pricing.total.low_cents, pricing.total.high_cents),
        price_label=pricing.range_label,
        cabinets=cabinets,
        door_style=door_style,
        handle_style=handle_style,
        wall_cabinets=len(layout.config.overhead_modules),
        style_preset=preset.id,
    )


def _ms_since(started: float) -> int:
    return int((time.time() - started) * 1000)


# Convenience function for Cloud Function entry point
async def run_design_pipeline(
    photo: str,
    user_context: UserContext,
    catalog: CatalogSnapshot
) -> Optional[DesignResult]:
    """Run the design pipeline with default collaborators."""
    orchestrator = DesignPipelineOrchestrator()
    return await orchestrator.run(photo, user_context, catalog)
