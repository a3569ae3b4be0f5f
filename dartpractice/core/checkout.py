"""
Checkout planner - recommends the next target during a competition turn.

Searches every sequence of up to three targets that fits under the remaining
score, ranks them by (finishes at zero, historical hit probability, closeness)
and recommends the first dart of the best one. Sections without training data
count as 100% so they are never penalized for being untried.

Key constraint: never recommend a dart that leaves a score the remaining darts
cannot finish. When the best-ranked first dart would do that, the search is
re-run with such moves pruned.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from dartpractice.core.geometry import ALL_SECTIONS, DARTS_PER_TURN, DartboardSection
from dartpractice.core.ledger import AccuracyLedger

logger = logging.getLogger("dartpractice.checkout")

# Three treble 20s; nothing above this can be finished in one turn
MAX_TURN_SCORE = 180

# Accuracy products are compared at this precision so float noise doesn't break ties
ACCURACY_PRECISION = 9

# Distinct dart values, highest first, for the existence-only search
_SECTION_VALUES: Tuple[int, ...] = tuple(sorted({s.score for s in ALL_SECTIONS}, reverse=True))


@dataclass(frozen=True)
class CheckoutTarget:
    """A candidate dart with its historical accuracy."""
    section: DartboardSection
    score: int
    accuracy: float

    @property
    def key(self) -> str:
        return self.section.key


@dataclass(frozen=True)
class CheckoutPath:
    """A sequence of targets; remaining_score == 0 means it finishes the leg."""
    targets: Tuple[CheckoutTarget, ...]
    total_accuracy: float
    remaining_score: int

    @property
    def finishes(self) -> bool:
        return self.remaining_score == 0


# (targets, total_accuracy, remaining_score)
_RawPath = Tuple[Tuple[CheckoutTarget, ...], float, int]


@lru_cache(maxsize=None)
def is_checkable(score: int, darts: int) -> bool:
    """
    Whether `score` can be brought to exactly zero with at most `darts` darts.

    Existence only; accuracy plays no part.
    """
    if score == 0:
        return True
    if darts <= 0 or score < 0:
        return False

    for value in _SECTION_VALUES:
        if value > score:
            continue
        residual = score - value
        if residual == 0:
            return True
        if darts > 1 and is_checkable(residual, darts - 1):
            return True
    return False


def build_targets(ledger: Optional[AccuracyLedger] = None) -> List[CheckoutTarget]:
    """Annotate all 62 sections with their score and ledger accuracy (1.0 without data)."""
    targets = []
    for section in ALL_SECTIONS:
        accuracy = ledger.accuracy_of(section) if ledger is not None else None
        if accuracy is None:
            accuracy = 1.0
        targets.append(CheckoutTarget(section=section, score=section.score, accuracy=accuracy))
    return targets


def _rank(path: _RawPath) -> Tuple[bool, float, int]:
    _, total_accuracy, remaining = path
    return (remaining != 0, -round(total_accuracy, ACCURACY_PRECISION), remaining)


class CheckoutPlanner:
    """
    Exhaustive path search over the targets of one ledger.

    A planner is cheap to build; build a new one whenever the ledger changes.
    """

    def __init__(self, ledger: Optional[AccuracyLedger] = None):
        self.targets = build_targets(ledger)

    def _search(
        self,
        score: int,
        darts: int,
        safe_only: bool,
        memo: Dict[Tuple[int, int], List[_RawPath]]
    ) -> List[_RawPath]:
        """
        All paths from `score` with up to `darts` darts.

        Paths end either at zero or when the darts run out. With safe_only,
        a non-final dart that leaves an unfinishable residual is pruned.
        """
        key = (score, darts)
        cached = memo.get(key)
        if cached is not None:
            return cached

        if score == 0:
            paths: List[_RawPath] = [((), 1.0, 0)]
        elif darts <= 0 or score < 0:
            paths = []
        else:
            paths = []
            for target in self.targets:
                if target.score > score:
                    continue
                residual = score - target.score

                if residual == 0 or darts == 1:
                    paths.append(((target,), target.accuracy, residual))
                    continue

                if safe_only and not is_checkable(residual, darts - 1):
                    continue

                for sub_targets, sub_accuracy, sub_remaining in self._search(residual, darts - 1, safe_only, memo):
                    paths.append(((target,) + sub_targets, target.accuracy * sub_accuracy, sub_remaining))

        memo[key] = paths
        return paths

    def best_path(self, remaining_score: int, darts: int, safe_only: bool = False) -> Optional[CheckoutPath]:
        """Best-ranked path, or None when the search finds nothing."""
        paths = self._search(remaining_score, darts, safe_only, {})
        if not paths:
            return None

        targets, total_accuracy, remaining = min(paths, key=_rank)
        return CheckoutPath(targets=targets, total_accuracy=total_accuracy, remaining_score=remaining)

    def find_optimal_checkout(self, remaining_score: int, darts_left: int) -> Optional[CheckoutPath]:
        """
        Find the optimal path for a remaining score.

        Prioritizes: 1) reaching exactly 0, 2) highest combined accuracy,
        3) lowest remaining score.

        Returns:
            CheckoutPath, or None when there is nothing to recommend
        """
        if darts_left <= 0 or remaining_score <= 0:
            return None
        if remaining_score > MAX_TURN_SCORE:
            return None

        path = self.best_path(remaining_score, min(darts_left, DARTS_PER_TURN))
        if path is None or not path.targets:
            return None
        return path

    def recommend_with_path(
        self,
        remaining_score: int,
        darts_left: int
    ) -> Tuple[Optional[CheckoutTarget], Optional[CheckoutPath]]:
        """
        Recommended target together with the path it starts.

        When the safety correction applies, the returned path is the re-planned
        one, so its first target is always the recommendation.

        Returns:
            (target, path), or (None, None) for "show no hint"
        """
        path = self.find_optimal_checkout(remaining_score, darts_left)
        if path is None:
            logger.debug(f"[CHECKOUT] No path for {remaining_score} with {darts_left} darts")
            return None, None

        darts = min(darts_left, DARTS_PER_TURN)
        recommended = path.targets[0]
        residual = remaining_score - recommended.score

        if residual > 0 and darts > 1 and not is_checkable(residual, darts - 1):
            logger.info(
                f"[CHECKOUT] {recommended.key} leaves {residual} unfinishable with {darts - 1} darts, "
                f"re-planning {remaining_score}"
            )
            path = self.best_path(remaining_score, darts, safe_only=True)
            if path is None or not path.targets:
                logger.info(f"[CHECKOUT] {remaining_score} cannot be finished with {darts} darts")
                return None, None
            recommended = path.targets[0]

        logger.debug(
            f"[CHECKOUT] {remaining_score} / {darts} darts -> {recommended.key} "
            f"(accuracy={recommended.accuracy:.3f})"
        )
        return recommended, path

    def recommend_next(self, remaining_score: int, darts_left: int) -> Optional[CheckoutTarget]:
        """
        Recommended target for the next dart.

        Returns:
            CheckoutTarget, or None for "show no hint"
        """
        recommended, _ = self.recommend_with_path(remaining_score, darts_left)
        return recommended


def find_optimal_checkout(
    remaining_score: int,
    darts_left: int,
    ledger: Optional[AccuracyLedger] = None
) -> Optional[CheckoutPath]:
    return CheckoutPlanner(ledger).find_optimal_checkout(remaining_score, darts_left)


def recommend_next(
    remaining_score: int,
    darts_left: int,
    ledger: Optional[AccuracyLedger] = None
) -> Optional[CheckoutTarget]:
    return CheckoutPlanner(ledger).recommend_next(remaining_score, darts_left)
