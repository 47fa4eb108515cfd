"""
CallScreen - Screening Pipeline Orchestrator

Central orchestration layer that screens one inbound call. This is the
single entry point for the webhook route and any other call platform bridge.

Architecture:
    The pipeline follows a staged processing model:

    1. NORMALIZE: Canonicalize the caller ID (+49...)
    2. LOOKUP: Query the reputation service across number candidates
    3. DECIDE: Apply the vote threshold and negative rating codes
    4. NOTIFY: Send the outcome to configured webhooks (best-effort)
    5. ACT: Terminate the call if blocked, return the decision

Design Principles:
    - Stateless: Nothing survives a call except the immutable configuration
    - Sequential: One candidate at a time, one channel at a time
    - Fail-open: Any failure lets the call through, never blocks it
    - Notify before terminate: a blocked call is hung up only after
      notification delivery has completed

Usage:
    pipeline = create_pipeline(get_settings())
    decision = await pipeline.screen_call(call, host)
    if decision.call_handled:
        ...  # call was terminated, stop routing
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from callscreen.config import ScreeningConfig, Settings
from callscreen.core.decision import DecisionEngine
from callscreen.core.logging import LogContext, mask_number
from callscreen.core.numbers import DEFAULT_COUNTRY_CODE, normalize_number
from callscreen.core.types import (
    CallContext,
    LookupResult,
    Outcome,
    OutcomeState,
    ScreeningDecision,
)
from callscreen.services.notifications import NotificationDispatcher, create_dispatcher
from callscreen.services.reputation import PhoneBlockClient, ReputationClient
from callscreen.telephony.host import CallHost

logger = logging.getLogger(__name__)

# Not inbound / no caller ID: the lookup is skipped entirely
_SKIPPED_LOOKUP = LookupResult.failed()


# =============================================================================
# Pipeline Metrics (for observability)
# =============================================================================

@dataclass
class PipelineMetrics:
    """Metrics for a single screening run."""
    request_id: str
    state: Optional[str] = None
    lookup_ms: Optional[float] = None
    notify_ms: Optional[float] = None
    total_ms: Optional[float] = None
    terminated: bool = False
    success: bool = True
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "state": self.state,
            "lookup_ms": round(self.lookup_ms, 2) if self.lookup_ms is not None else None,
            "notify_ms": round(self.notify_ms, 2) if self.notify_ms is not None else None,
            "total_ms": round(self.total_ms, 2) if self.total_ms is not None else None,
            "terminated": self.terminated,
            "success": self.success,
        }


# =============================================================================
# Screening Pipeline
# =============================================================================

class ScreeningPipeline:
    """
    Screens inbound calls against a reputation service.

    Attributes:
        reputation: Client used to look up caller numbers
        engine: Block/allow decision policy
        dispatcher: Notification fan-out
    """

    def __init__(
        self,
        reputation: ReputationClient,
        engine: DecisionEngine,
        dispatcher: NotificationDispatcher,
        country_code: str = DEFAULT_COUNTRY_CODE,
        anonymize_logs: bool = False,
    ):
        self._reputation = reputation
        self._engine = engine
        self._dispatcher = dispatcher
        self._country_code = country_code
        self._anonymize_logs = anonymize_logs

        # Metrics callback (for monitoring systems)
        self._metrics_callback: Optional[Callable[[PipelineMetrics], None]] = None

        logger.info(
            "ScreeningPipeline initialized: reputation=%s, min_votes=%d, channels=%s",
            reputation.client_id,
            engine.min_votes,
            [c.name for c in dispatcher.channels] or "none",
        )

    @property
    def reputation(self) -> ReputationClient:
        return self._reputation

    @property
    def engine(self) -> DecisionEngine:
        return self._engine

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def handle_call(self, call: CallContext, host: CallHost) -> bool:
        """
        Screen a call and report whether it was finally handled.

        Returns:
            True only if the call was blocked and terminated
        """
        decision = await self.screen_call(call, host)
        return decision.call_handled

    async def screen_call(self, call: CallContext, host: CallHost) -> ScreeningDecision:
        """
        Run the full screening pipeline for one call.

        Never raises: any unexpected failure is logged, reported as an
        "error" outcome and the call is allowed to continue.
        """
        request_id = self._generate_request_id()
        start_time = time.time()
        metrics = PipelineMetrics(request_id=request_id)

        with LogContext(correlation_id=request_id, call_id=call.call_id or None):
            try:
                outcome = await self._evaluate(call, host, metrics)

                notify_start = time.time()
                await self._dispatcher.notify(outcome)
                metrics.notify_ms = (time.time() - notify_start) * 1000

                handled = False
                if outcome.terminates_call:
                    host.terminate()
                    handled = True

                metrics.state = outcome.state.value
                metrics.terminated = handled
                metrics.total_ms = (time.time() - start_time) * 1000
                self._log_output(request_id, outcome, metrics)

                return ScreeningDecision(
                    outcome=outcome,
                    call_handled=handled,
                    request_id=request_id,
                )

            except Exception as e:
                metrics.success = False
                metrics.state = OutcomeState.ERROR.value
                metrics.error_message = str(e)
                metrics.total_ms = (time.time() - start_time) * 1000

                host.log_error(f"PhoneBlock exception: {e!r}")
                logger.error(
                    "Pipeline error [%s]: %s",
                    request_id,
                    str(e),
                    exc_info=True,
                )

                outcome = Outcome.error()
                await self._dispatcher.notify(outcome)
                return ScreeningDecision(
                    outcome=outcome,
                    call_handled=False,
                    request_id=request_id,
                )
            finally:
                self._emit_metrics(metrics)

    # -------------------------------------------------------------------------
    # Pipeline Stages (Internal)
    # -------------------------------------------------------------------------

    async def _evaluate(
        self,
        call: CallContext,
        host: CallHost,
        metrics: PipelineMetrics,
    ) -> Outcome:
        """Normalize, look up and decide; returns the outcome without side effects on the call."""
        normalized = normalize_number(call.caller_id, country_code=self._country_code)

        host.log_info(
            f"PhoneBlock START cli={call.caller_id} did={call.called_number} e164={normalized}"
        )

        if not call.is_inbound or not normalized:
            return self._engine.decide(call, normalized, _SKIPPED_LOOKUP)

        lookup_start = time.time()
        lookup = await self._reputation.lookup(normalized)
        metrics.lookup_ms = (time.time() - lookup_start) * 1000

        if not lookup.succeeded:
            host.log_info(f"PhoneBlock LOOKUP_FAIL {normalized} body={lookup.raw_body}")

        outcome = self._engine.decide(call, normalized, lookup)

        if outcome.state is OutcomeState.BLOCKED:
            host.log_info(
                f"PhoneBlock BLOCK {normalized} rating={outcome.rating} "
                f"votes={outcome.votes} -> Terminate()"
            )
        elif outcome.state is not OutcomeState.LOOKUP_FAILED:
            host.log_info(
                f"PhoneBlock {outcome.state.value.upper()} {normalized} "
                f"rating={outcome.rating} votes={outcome.votes}"
            )

        return outcome

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------

    def set_metrics_callback(self, callback: Callable[[PipelineMetrics], None]) -> None:
        """
        Set callback for metrics emission.

        Called after every screening run (success or failure).
        """
        self._metrics_callback = callback

    def _emit_metrics(self, metrics: PipelineMetrics) -> None:
        """Emit metrics to callback if configured."""
        if self._metrics_callback:
            try:
                self._metrics_callback(metrics)
            except Exception as e:
                logger.warning("Metrics emission failed: %s", e)

    def _log_output(self, request_id: str, outcome: Outcome, metrics: PipelineMetrics) -> None:
        """Log the screening result."""
        number = mask_number(outcome.number) if self._anonymize_logs else outcome.number
        logger.info(
            "[%s] Result: state=%s, number=%s, votes=%d, rating=%s, total_ms=%.1f",
            request_id,
            outcome.state.value,
            number or "-",
            outcome.votes,
            outcome.rating or "-",
            metrics.total_ms or 0,
            extra={"event_type": "screening_result", "data": outcome.to_dict()},
        )

    # -------------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------------

    def _generate_request_id(self) -> str:
        """Generate unique request ID for tracking."""
        return f"req_{uuid.uuid4().hex[:12]}"

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def startup(self) -> None:
        """Log the effective screening policy at application startup."""
        logger.info(
            "Pipeline startup: min_votes=%d, negative_ratings=%s",
            self._engine.min_votes,
            ",".join(sorted(self._engine.negative_ratings)),
        )

    async def shutdown(self) -> None:
        """Nothing is pooled between calls; only logs."""
        logger.info("Pipeline shutdown complete")


# =============================================================================
# Factory Function
# =============================================================================

def create_pipeline(
    settings: Settings,
    reputation: Optional[ReputationClient] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> ScreeningPipeline:
    """
    Factory function to create a configured ScreeningPipeline.

    Args:
        settings: Application settings
        reputation: Optional reputation client override (default: phoneblock.net)
        dispatcher: Optional dispatcher override (default: from webhook settings)

    Returns:
        Configured ScreeningPipeline instance
    """
    config: ScreeningConfig = settings.screening_config()

    if not config.bearer_token:
        logger.warning("PHONEBLOCK_BEARER_TOKEN is not set; lookups will be rejected")

    if reputation is None:
        reputation = PhoneBlockClient(
            api_base=config.api_base,
            bearer_token=config.bearer_token,
            timeout_seconds=config.timeout_seconds,
            country_code=config.country_code,
        )

    if dispatcher is None:
        dispatcher = create_dispatcher(
            rich_endpoint=config.rich_endpoint,
            compact_endpoint=config.compact_endpoint,
            timeout_seconds=config.timeout_seconds,
            username=config.notify_username,
        )

    engine = DecisionEngine(
        min_votes=config.min_votes,
        negative_ratings=config.negative_ratings,
    )

    logger.info(
        "Pipeline configured: reputation=%s, channels=%d, timeout=%.1fs",
        type(reputation).__name__,
        len(dispatcher.channels),
        config.timeout_seconds,
    )

    return ScreeningPipeline(
        reputation=reputation,
        engine=engine,
        dispatcher=dispatcher,
        country_code=config.country_code,
        anonymize_logs=settings.anonymize_logs,
    )
