"""
Sync Orchestrator - Coordinates the per-source update cycle.

Each cycle updates every tracked source concurrently (cache check, schedule
fetch, event selection, live refresh), publishes the results, and arms the
next cycle using the smallest per-source delay.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from config import Config
from espn_api.client import NetworkError, SportsAPIClient
from leagues.models import Event, EventStatus, ScheduleSnapshot
from leagues.registry import get_league
from refresh.cache import EVENT_CHANGED, FreshnessCache, IconCache
from refresh.debug import generate_debug_results
from refresh.icons import TeamIconFetcher
from refresh.planner import aggregate, delay_for
from refresh.scheduler import UpdateScheduler
from refresh.selector import select_relevant
from refresh.sources import SourceResult, TrackedSource
from utils.dates import local_date_str, local_day_start, utc_now

logger = logging.getLogger(__name__)


class StaleCycleError(Exception):
    """Raised inside a cycle that outlived the configuration it started with."""


class SyncOrchestrator:
    """Orchestrates update cycles across all tracked sources."""

    def __init__(
        self,
        config: Config,
        client: Optional[SportsAPIClient] = None,
        cache: Optional[FreshnessCache] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.api_client = client
        self.cache = cache if cache is not None else FreshnessCache()
        self.icon_cache = IconCache()
        self.icons: Optional[TeamIconFetcher] = None
        self.scheduler = UpdateScheduler(self.tick)
        self.sources: Dict[str, TrackedSource] = {}
        self.latest_results: List[SourceResult] = []
        self.running = False
        self.cycle_count = 0
        self.last_cycle_started_at: Optional[datetime] = None
        self.last_cycle_finished_at: Optional[datetime] = None
        self._clock = clock
        self._updating = False
        self._refresh_requested = False
        self._generation = 0
        self._shutdown_requested = False
        self._stopped: Optional[asyncio.Event] = None
        self._build_sources()

    async def initialize(self):
        """Initialize clients."""
        logger.info("Orchestrator starting")

        if self.api_client is None:
            self.api_client = SportsAPIClient(self.config)
        self.icons = TeamIconFetcher(self.api_client, Path(self.config.icon_cache_dir), self.icon_cache)
        self.cache.add_listener(EVENT_CHANGED, self._log_event_change)

        logger.info("Orchestrator ready", extra={
            "sources": list(self.sources),
            "debug_mode": self.config.debug_mode or None
        })

    def _build_sources(self):
        sources = {}
        for key, code in self.config.enabled_leagues():
            league = get_league(key, self.config.espn_api_base_url)
            team_id = league.team_id_for_code(code)
            if team_id is None:
                logger.warning("Unknown team code, source will stay empty", extra={
                    "league": key,
                    "team_code": code
                })
            sources[key] = TrackedSource(source_key=key, league=league, team_id=team_id, team_code=code)
        self.sources = sources

    def _log_event_change(self, data: Dict[str, Any]):
        event: Optional[Event] = data.get("event")
        if event is None:
            logger.info("Current event cleared", extra={"source_key": data.get("source_key")})
            return
        logger.info("Current event changed", extra={
            "source_key": data.get("source_key"),
            "event_id": event.id,
            "status": event.status.value,
            "home_score": event.home.score,
            "away_score": event.away.score
        })

    @property
    def is_updating(self) -> bool:
        return self._updating

    # --- Control ---

    def reconfigure(self, config: Config):
        """
        Swap in a new configuration; cached state is dropped and a cycle runs immediately.

        A cycle already in flight keeps running but none of its writes land:
        it sees the generation change, discards what it fetched and re-arms
        an immediate tick when it ends.
        """
        logger.info("Reconfiguring orchestrator", extra={"in_flight": self._updating})
        self.config = config
        self._generation += 1
        self._build_sources()
        self.cache.reset()
        self.latest_results = []
        if self.running and not self._updating:
            self.scheduler.schedule_update(0)

    def request_refresh(self) -> bool:
        """
        Run a cycle as soon as possible. Returns False when the loop isn't running.

        During a cycle the request is remembered and honoured when the cycle
        ends, in place of its computed delay.
        """
        if not self.running:
            return False
        if self._updating:
            self._refresh_requested = True
        else:
            self.scheduler.schedule_update(0)
        return True

    def _check_generation(self, generation: int):
        if generation != self._generation:
            raise StaleCycleError("Configuration changed during cycle")

    def _arm_next(self, delay: float):
        if self._refresh_requested:
            logger.info("Running requested refresh", extra={"skipped_delay_seconds": round(delay, 1)})
            self._refresh_requested = False
            delay = 0
        self.scheduler.schedule_update(delay)

    # --- Cycle ---

    async def tick(self):
        """
        Run one update cycle.

        A tick that arrives while a cycle is in flight is deferred instead of
        overlapping it. Whatever happens, the next cycle gets scheduled.
        """
        if self._updating:
            logger.debug("Update already in progress, deferring", extra={
                "retry_seconds": self.config.busy_retry_seconds
            })
            self.scheduler.schedule_update(self.config.busy_retry_seconds)
            return

        self._updating = True
        generation = self._generation
        now = self._clock()
        self.last_cycle_started_at = now
        try:
            outcomes = await self._update_all_sources(now, generation)

            if self._shutdown_requested:
                logger.info("Discarding cycle results after shutdown")
                return
            if generation != self._generation:
                logger.info("Discarding cycle results after reconfiguration")
                self._arm_next(0)
                return

            finished_at = self._clock()
            results = []
            for result, reselected in outcomes:
                # Reusing a cached event does not extend its validity
                if reselected:
                    self.cache.mark_cycle_completed(result.source_key, finished_at)
                results.append(result)

            self.latest_results = results
            self.cycle_count += 1
            self.last_cycle_finished_at = finished_at
            delay = self._compute_next_delay(results, finished_at)
            self._arm_next(delay)

            logger.info("Update cycle complete", extra={
                "cycle": self.cycle_count,
                "sources": len(results),
                "errors": sum(1 for r in results if r.error),
                "next_delay_seconds": round(delay, 1),
                "duration_seconds": round((finished_at - now).total_seconds(), 2)
            })
        except Exception as e:
            logger.error("Update cycle failed", extra={
                "error": str(e),
                "error_type": type(e).__name__
            }, exc_info=True)
            if not self._shutdown_requested:
                self._arm_next(self.config.error_retry_seconds)
        finally:
            self._updating = False

    async def _update_all_sources(self, now: datetime, generation: int) -> List[Tuple[SourceResult, bool]]:
        """Per-source results, each paired with whether its event was reselected from the schedule."""
        sources = list(self.sources.values())
        if not sources:
            return []

        if self.config.debug_mode:
            return [(result, False) for result in generate_debug_results(sources, self.config.debug_mode, now)]

        outcomes = await asyncio.gather(
            *(self._update_source(source, now, generation) for source in sources),
            return_exceptions=True
        )

        results = []
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, StaleCycleError):
                continue
            if isinstance(outcome, BaseException):
                logger.error("Source update failed", extra={
                    "source_key": source.source_key,
                    "error": str(outcome),
                    "error_type": type(outcome).__name__
                })
                results.append((SourceResult(
                    source_key=source.source_key,
                    league=source.league,
                    team_id=source.team_id,
                    error=True,
                ), False))
                continue
            results.append(outcome)
        return results

    async def _update_source(
        self, source: TrackedSource, now: datetime, generation: int
    ) -> Tuple[SourceResult, bool]:
        if source.team_id is None:
            return SourceResult(source_key=source.source_key, league=source.league, team_id=None), False

        event, reselected = await self._fetch_current_event(source, now, generation)
        self._check_generation(generation)
        self.cache.set_current_event(source.source_key, event)

        is_offseason = False
        next_known = None
        if event is None:
            schedule = self.cache.get_schedule(source.source_key)
            is_offseason = schedule is None or not schedule.has_events()
            if is_offseason and schedule is not None:
                next_known = schedule.next_known_event_date

        return SourceResult(
            source_key=source.source_key,
            league=source.league,
            team_id=source.team_id,
            event=event,
            is_offseason=is_offseason,
            next_known_date=next_known,
        ), reselected

    async def _fetch_current_event(
        self, source: TrackedSource, now: datetime, generation: int
    ) -> Tuple[Optional[Event], bool]:
        """
        Cached event while it's still valid, otherwise reselect from the schedule.

        The flag is True when the event was reselected. A valid cached game
        that isn't final still gets its summary, so a scheduled game is seen
        going live between reselections.
        """
        entry = self.cache.get_entry(source.source_key)
        cached = entry.current_event
        if cached is not None and self.cache.is_event_cache_valid(
            source.source_key, cached, entry.last_cycle_completed_at, now
        ):
            if cached.status in (EventStatus.LIVE, EventStatus.SCHEDULED):
                return await self._refresh_live(source, cached), False
            return cached, False

        schedule = await self._get_schedule(source, now, generation)
        event = select_relevant(schedule, local_date_str(now), now)
        if event is None:
            return None, True
        return await self._refresh_live(source, event), True

    async def _get_schedule(self, source: TrackedSource, now: datetime, generation: int) -> ScheduleSnapshot:
        key = source.source_key
        if self.cache.is_schedule_fresh(key, self.config.schedule_cache_ttl, now):
            return self.cache.get_schedule(key)

        start = local_day_start(now)
        end = start + timedelta(days=self.config.schedule_window_days)
        schedule = await source.league.fetch_schedule(self.api_client, source.team_id, start, end, now=now)
        self._check_generation(generation)
        self.cache.set_schedule(key, schedule, now)
        return schedule

    async def _refresh_live(self, source: TrackedSource, event: Event) -> Event:
        """Latest summary for the event; the event as known when the summary is unavailable."""
        try:
            live = await source.league.fetch_live(self.api_client, event)
        except NetworkError as e:
            logger.warning("Live data fetch failed, keeping last known event", extra={
                "source_key": source.source_key,
                "event_id": event.id,
                "reason": e.reason,
                "error": str(e)
            })
            return event
        return live or event

    def _compute_next_delay(self, results: List[SourceResult], now: datetime) -> float:
        delays = []
        for result in results:
            if result.error:
                delays.append(float(self.config.error_retry_seconds))
                continue
            event = result.event
            if event is None:
                delays.append(delay_for(None, None, now=now))
                continue
            delays.append(delay_for(
                event.status,
                event,
                pause_delay=result.league.pause_delay,
                live_refresh_override=self.config.live_refresh_override,
                now=now,
            ))
        return aggregate(delays, now)

    # --- Lifecycle ---

    async def run(self):
        """Run cycles until shutdown."""
        logger.info("Sync loop started", extra={"sources": list(self.sources)})
        self.running = True
        self._stopped = asyncio.Event()
        self.scheduler.start()
        self.scheduler.schedule_update(0)
        try:
            await self._stopped.wait()
        except asyncio.CancelledError:
            logger.info("Sync loop cancelled")
        finally:
            self.running = False
            self.scheduler.cancel_all()

    async def shutdown(self):
        """Shutdown orchestrator gracefully."""
        logger.info("Orchestrator shutting down")
        self.running = False
        self._shutdown_requested = True
        self.scheduler.cleanup()

        if self.api_client:
            await self.api_client.close()

        pending = self.scheduler.running_tasks
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self._stopped is not None:
            self._stopped.set()

        logger.info("Orchestrator stopped")
