"""Rank scored strategy candidates across a universe of symbols."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from options_ranker.adapters import (
    AdapterError,
    DataUnavailable,
    OptionsChain,
    OptionsDataAdapter,
    ProviderTimeout,
    RateLimitError,
    create_adapter,
)
from options_ranker.analysis import analyze_chain, normalize_chain
from options_ranker.config import AppSettings, build_adapter, build_fallback_adapter, get_settings
from options_ranker.models import (
    STRATEGY_ORDER,
    ChainRejection,
    RankingMode,
    RankingResult,
    Recommendation,
    SkipReason,
)
from options_ranker.scoring import StrategyScorer

from .market_hours import get_market_status
from .universe import normalise_symbols

logger = logging.getLogger(__name__)


@dataclass
class SymbolOutcome:
    symbol: str
    candidates: List[Recommendation] = field(default_factory=list)
    reason: Optional[SkipReason] = None
    detail: str = ""

    @property
    def skipped(self) -> bool:
        return self.reason is not None


@dataclass
class PassOutcome:
    """Aggregated outcome of one pass over the universe with one adapter."""

    candidates: List[Recommendation] = field(default_factory=list)
    skipped: Counter = field(default_factory=Counter)
    succeeded: int = 0


def _sort_by_score(candidates: Iterable[Recommendation]) -> List[Recommendation]:
    # sorted() is stable with reverse=True, so ties keep their arrival order.
    return sorted(candidates, key=lambda candidate: candidate.score, reverse=True)


def select_recommendations(
    candidates: Sequence[Recommendation],
    mode: RankingMode,
    top_k: Optional[int] = None,
    default_top_k: int = 5,
) -> List[Recommendation]:
    """Apply a ranking mode to scored candidates and assign ranks 1..N."""

    if mode is RankingMode.BEST_PER_SYMBOL:
        best: Dict[str, Recommendation] = {}
        for candidate in candidates:
            current = best.get(candidate.symbol)
            if current is None or candidate.score > current.score:
                best[candidate.symbol] = candidate
        ordered = _sort_by_score(best.values())
        if top_k is not None:
            ordered = ordered[:top_k]
    elif mode is RankingMode.TOP_PER_STRATEGY:
        per_strategy = top_k if top_k is not None else default_top_k
        ordered = []
        for strategy in STRATEGY_ORDER:
            group = [candidate for candidate in candidates if candidate.strategy is strategy]
            ordered.extend(_sort_by_score(group)[:per_strategy])
    else:
        ordered = _sort_by_score(candidates)
        if top_k is not None:
            ordered = ordered[:top_k]

    return [candidate.model_copy(update={"rank": index}) for index, candidate in enumerate(ordered, start=1)]


class RecommendationRanker:
    """Fetch, analyze, score and rank strategies for a list of symbols.

    Symbols are processed in batches of ``ranking.batch_size`` on a thread
    pool. A failure in one symbol is recorded as a skip and never aborts the
    pass. Calling :meth:`supersede` (or starting a new :meth:`rank`) with the
    same key makes an in-flight pass stop at the next batch boundary and
    discard its output. Passes under different keys never affect each other.
    """

    def __init__(
        self,
        adapter: OptionsDataAdapter,
        settings: AppSettings | None = None,
        scorer: StrategyScorer | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
        fallback_adapter: OptionsDataAdapter | None = None,
    ) -> None:
        self.adapter = adapter
        self.settings = settings or get_settings()
        self.scorer = scorer or StrategyScorer(self.settings.scoring_dict())
        self.fallback_adapter = fallback_adapter
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or time.sleep
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Dict[Hashable, int] = {}

    @property
    def generation(self) -> int:
        """Number of passes started or superseded so far, across all keys."""

        with self._lock:
            return self._generation

    def supersede(self, key: Hashable = None) -> int:
        """Invalidate any in-flight pass for ``key`` and return the new generation."""

        with self._lock:
            self._generation += 1
            self._latest[key] = self._generation
            return self._generation

    def _is_current(self, generation: int, key: Hashable = None) -> bool:
        with self._lock:
            return self._latest.get(key) == generation

    def _release(self, generation: int, key: Hashable) -> None:
        with self._lock:
            if self._latest.get(key) == generation:
                del self._latest[key]

    def rank(
        self,
        symbols: Iterable[str],
        mode: RankingMode | str | None = None,
        top_k: int | None = None,
        supersede_key: Hashable = None,
    ) -> RankingResult:
        """Rank ``symbols``; a newer call with the same ``supersede_key`` cancels this one."""

        ranking_mode = RankingMode(mode) if mode is not None else self.settings.ranking.default_mode
        if top_k is not None and top_k < 1:
            raise ValueError("top_k must be a positive integer")

        universe = normalise_symbols(symbols)
        generation = self.supersede(supersede_key)
        logger.info("Ranking %d symbols (mode=%s, generation=%d)", len(universe), ranking_mode.value, generation)
        try:
            return self._rank_universe(universe, ranking_mode, top_k, generation, supersede_key)
        finally:
            self._release(generation, supersede_key)

    def _rank_universe(
        self,
        universe: List[str],
        ranking_mode: RankingMode,
        top_k: int | None,
        generation: int,
        key: Hashable,
    ) -> RankingResult:
        outcome = self._run_pass(universe, self.adapter, generation, key)
        fallback_mode = False
        if outcome is not None and universe and outcome.succeeded == 0:
            fallback_mode = True
            logger.warning("No symbol produced a usable chain from %s", self.adapter.name)
            if self.fallback_adapter is not None:
                logger.warning("Retrying %d symbols with %s data", len(universe), self.fallback_adapter.name)
                fallback = self._run_pass(universe, self.fallback_adapter, generation, key)
                if fallback is None:
                    outcome = None
                else:
                    # Report why the live pass failed, not the demo pass.
                    fallback.skipped = outcome.skipped
                    outcome = fallback

        market_status = get_market_status(self._clock())
        if outcome is None:
            logger.info("Ranking pass %d superseded; discarding results", generation)
            return RankingResult(
                mode=ranking_mode,
                evaluated_symbols=len(universe),
                superseded=True,
                market_status=market_status,
            )

        recommendations = select_recommendations(
            outcome.candidates,
            ranking_mode,
            top_k=top_k,
            default_top_k=self.settings.ranking.top_k,
        )
        skipped = {reason.value: count for reason, count in outcome.skipped.items() if count}
        logger.info(
            "Ranked %d recommendations from %d candidates (%d symbols skipped)",
            len(recommendations),
            len(outcome.candidates),
            sum(skipped.values()),
        )
        return RankingResult(
            recommendations=recommendations,
            mode=ranking_mode,
            evaluated_symbols=len(universe),
            skipped=skipped,
            fallback_mode=fallback_mode,
            market_status=market_status,
        )

    def _run_pass(
        self,
        symbols: Sequence[str],
        adapter: OptionsDataAdapter,
        generation: int,
        key: Hashable = None,
    ) -> Optional[PassOutcome]:
        ranking = self.settings.ranking
        outcome = PassOutcome()
        batches = [symbols[start : start + ranking.batch_size] for start in range(0, len(symbols), ranking.batch_size)]

        for index, batch in enumerate(batches):
            if not self._is_current(generation, key):
                return None
            if index > 0 and ranking.batch_delay_seconds > 0:
                self._sleep(ranking.batch_delay_seconds)

            for result in self._run_batch(batch, adapter, ranking.symbol_timeout_seconds):
                if result.skipped:
                    outcome.skipped[result.reason] += 1
                    logger.info("Skipping %s (%s): %s", result.symbol, result.reason.value, result.detail)
                    continue
                outcome.succeeded += 1
                outcome.candidates.extend(result.candidates)

        if not self._is_current(generation, key):
            return None
        return outcome

    def _run_batch(
        self,
        batch: Sequence[str],
        adapter: OptionsDataAdapter,
        timeout_seconds: float,
    ) -> List[SymbolOutcome]:
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=len(batch))
        futures = [executor.submit(self._evaluate_symbol, adapter, symbol) for symbol in batch]
        try:
            _, pending = concurrent.futures.wait(futures, timeout=timeout_seconds)
            results: List[SymbolOutcome] = []
            for symbol, future in zip(batch, futures):
                if future in pending:
                    future.cancel()
                    results.append(
                        SymbolOutcome(symbol, reason=SkipReason.TIMEOUT, detail=f"no response within {timeout_seconds}s")
                    )
                else:
                    results.append(future.result())
            return results
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _evaluate_symbol(self, adapter: OptionsDataAdapter, symbol: str) -> SymbolOutcome:
        try:
            snapshot = adapter.get_snapshot(symbol)
        except RateLimitError as exc:
            return SymbolOutcome(symbol, reason=SkipReason.RATE_LIMITED, detail=str(exc))
        except ProviderTimeout as exc:
            return SymbolOutcome(symbol, reason=SkipReason.TIMEOUT, detail=str(exc))
        except (DataUnavailable, AdapterError, NotImplementedError) as exc:
            return SymbolOutcome(symbol, reason=SkipReason.DATA_UNAVAILABLE, detail=str(exc) or type(exc).__name__)
        except Exception as exc:
            logger.exception("Unexpected error fetching %s", symbol)
            return SymbolOutcome(symbol, reason=SkipReason.ERROR, detail=str(exc))

        try:
            return self._analyze_snapshot(symbol, snapshot)
        except Exception as exc:
            logger.exception("Unexpected error analyzing %s", symbol)
            return SymbolOutcome(symbol, reason=SkipReason.ERROR, detail=str(exc))

    def _analyze_snapshot(self, symbol: str, snapshot: OptionsChain) -> SymbolOutcome:
        chain = normalize_chain(
            snapshot,
            now=self._clock(),
            max_days_to_expiry=self.settings.ranking.max_days_to_expiry,
        )
        if isinstance(chain, ChainRejection):
            return SymbolOutcome(symbol, reason=chain.reason, detail=chain.detail)

        candidates = self.scorer.apply_all(analyze_chain(chain))
        logger.debug("%s produced %d candidates", symbol, len(candidates))
        return SymbolOutcome(symbol, candidates=candidates)


def build_ranker(settings: AppSettings | None = None, synthetic: bool = False) -> RecommendationRanker:
    """Wire a ranker from settings; ``synthetic=True`` forces demo data."""

    resolved = settings or get_settings()
    if synthetic:
        return RecommendationRanker(create_adapter("synthetic", seed=resolved.fallback.seed), settings=resolved)
    return RecommendationRanker(
        build_adapter(resolved),
        settings=resolved,
        fallback_adapter=build_fallback_adapter(resolved),
    )


__all__ = [
    "PassOutcome",
    "RecommendationRanker",
    "SymbolOutcome",
    "build_ranker",
    "select_recommendations",
]
