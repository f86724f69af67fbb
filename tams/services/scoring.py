"""Decision-tree condition scoring for a single inspected component.

A component is rated in the field on three scales: Degree (severity of the
defect), Extent (how much of the component is affected) and Relevancy (how
much the defect matters for safety and function). This module turns those
ratings into a Condition Index between 0 and 100 and an urgency code.

The urgency is resolved by an ordered rule table: the first rule whose
condition holds wins, so the order of :data:`URGENCY_RULES` is significant.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Tuple, Type, TypeVar

from tams.choices import Degree, Extent, RatingStatus, Relevancy, Urgency

RatingT = TypeVar("RatingT", Degree, Extent, Relevancy)

DEGREE_WEIGHT = Decimal("0.5")
EXTENT_WEIGHT = Decimal("0.25")
RELEVANCY_WEIGHT = Decimal("0.25")

RECORD_ONLY_DEGREES = frozenset({Degree.NONE, Degree.NOT_APPLICABLE})


class ScoringInputError(TypeError):
    """Raised when a value handed to the engine is not a rating at all."""


def parse_rating(choices: Type[RatingT], value, field: str = "rating") -> Tuple[Optional[RatingT], Optional[str]]:
    """Parse a raw rating token into its enum member.

    Returns ``(member, None)`` on success, ``(None, RatingStatus.INCOMPLETE)``
    for blanks and ``(None, RatingStatus.MALFORMED)`` for unknown tokens.
    Anything that is not a string, an integer or ``None`` is a programming
    error and raises :class:`ScoringInputError`.
    """

    if value is None:
        return None, RatingStatus.INCOMPLETE
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ScoringInputError(
            f"{field} must be a rating token, not {type(value).__name__}"
        )

    token = str(value).strip().upper()
    if not token:
        return None, RatingStatus.INCOMPLETE
    try:
        return choices(token), None
    except ValueError:
        return None, RatingStatus.MALFORMED


@dataclass(frozen=True)
class ParsedRatings:
    degree: Optional[Degree]
    extent: Optional[Extent]
    relevancy: Optional[Relevancy]
    status: str

    @property
    def numbers(self) -> Optional[Tuple[int, int, int]]:
        if self.status != RatingStatus.COMPLETE:
            return None
        return self.degree.numeric, self.extent.numeric, self.relevancy.numeric


def parse_ratings(degree, extent, relevancy) -> ParsedRatings:
    """Parse the three field ratings and classify the combination."""

    parsed_degree, degree_problem = parse_rating(Degree, degree, "degree")
    parsed_extent, extent_problem = parse_rating(Extent, extent, "extent")
    parsed_relevancy, relevancy_problem = parse_rating(Relevancy, relevancy, "relevancy")
    problems = (degree_problem, extent_problem, relevancy_problem)

    if (
        parsed_degree == Degree.UNABLE
        or parsed_extent == Extent.UNABLE
        or parsed_relevancy == Relevancy.UNABLE
    ):
        status = RatingStatus.UNABLE
    elif RatingStatus.INCOMPLETE in problems:
        status = RatingStatus.INCOMPLETE
    elif parsed_degree in RECORD_ONLY_DEGREES:
        status = RatingStatus.RECORD_ONLY
    elif RatingStatus.MALFORMED in problems:
        status = RatingStatus.MALFORMED
    else:
        status = RatingStatus.COMPLETE

    return ParsedRatings(parsed_degree, parsed_extent, parsed_relevancy, status)


def penalty(d: int, e: int, r: int) -> Decimal:
    """Weighted penalty in [0, 1]; each rating is normalised to its own range."""

    return (
        DEGREE_WEIGHT * Decimal(d) / 3
        + EXTENT_WEIGHT * Decimal(e - 1) / 3
        + RELEVANCY_WEIGHT * Decimal(r - 1) / 3
    )


def _ci_from_numbers(d: int, e: int, r: int) -> int:
    raw = (Decimal(100) * (1 - penalty(d, e, r))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(raw)))


@dataclass(frozen=True)
class UrgencyRule:
    code: str
    urgency: Urgency
    condition: Callable[[int, int, int], bool]
    description: str

    def matches(self, d: int, e: int, r: int) -> bool:
        return self.condition(d, e, r)


URGENCY_RULES: Tuple[UrgencyRule, ...] = (
    UrgencyRule("U4.1", Urgency.CRITICAL, lambda d, e, r: r == 4, "R = 4"),
    UrgencyRule("U4.2", Urgency.CRITICAL, lambda d, e, r: d == 3 and e == 4 and r >= 3, "D = 3, E = 4, R >= 3"),
    UrgencyRule("U3.1", Urgency.HIGH, lambda d, e, r: d == 3 and e >= 3 and r == 3, "D = 3, E >= 3, R = 3"),
    UrgencyRule("U3.2", Urgency.HIGH, lambda d, e, r: 2 <= d <= 3 and e == 4 and r >= 3, "2 <= D <= 3, E = 4, R >= 3"),
    UrgencyRule("U3.3", Urgency.HIGH, lambda d, e, r: d == 1 and e == 4 and r == 2, "D = 1, E = 4, R = 2"),
    UrgencyRule("U2.1", Urgency.MEDIUM, lambda d, e, r: d == 2 and e == 3 and r == 3, "D = 2, E = 3, R = 3"),
    UrgencyRule("U2.2", Urgency.MEDIUM, lambda d, e, r: d == 3 and e <= 3 and r <= 3, "D = 3, E <= 3, R <= 3"),
    UrgencyRule("U2.3", Urgency.MEDIUM, lambda d, e, r: d == 1 and e == 3 and r == 2, "D = 1, E = 3, R = 2"),
    UrgencyRule("U2.4", Urgency.MEDIUM, lambda d, e, r: d == 1 and e == 2 and r == 3, "D = 1, E = 2, R = 3"),
    UrgencyRule("U2.5", Urgency.MEDIUM, lambda d, e, r: d == 2 and e <= 3 and r == 3, "D = 2, E <= 3, R = 3"),
    UrgencyRule("U1.1", Urgency.LOW, lambda d, e, r: d == 2 and e <= 3 and r <= 2, "D = 2, E <= 3, R <= 2"),
    UrgencyRule("U1.2", Urgency.LOW, lambda d, e, r: d == 1 and e == 3 and r == 3, "D = 1, E = 3, R = 3"),
    UrgencyRule("U1.3", Urgency.LOW, lambda d, e, r: d == 1 and e == 1 and r == 3, "D = 1, E = 1, R = 3"),
    UrgencyRule("U0.1", Urgency.ROUTINE, lambda d, e, r: True, "Any remaining combination"),
)


def match_urgency_rule(d: int, e: int, r: int) -> UrgencyRule:
    """Return the first rule of :data:`URGENCY_RULES` that holds for (d, e, r)."""

    for rule in URGENCY_RULES:
        if rule.matches(d, e, r):
            return rule
    raise AssertionError("urgency rule table has no catch-all rule")  # pragma: no cover


@dataclass(frozen=True)
class ComponentScore:
    ci: Optional[int]
    urgency: Urgency
    status: str
    rule: Optional[str] = None

    @property
    def is_scored(self) -> bool:
        return self.ci is not None


def score_component(degree, extent, relevancy) -> ComponentScore:
    """Score one component from its Degree, Extent and Relevancy ratings.

    Unable-to-inspect, blank and unrecognised ratings produce no CI and the
    ``U`` urgency; record-only ratings (degree ``0`` or ``X``) score 100 with
    the ``R`` urgency.
    """

    parsed = parse_ratings(degree, extent, relevancy)

    if parsed.status == RatingStatus.RECORD_ONLY:
        return ComponentScore(ci=100, urgency=Urgency.RECORD_ONLY, status=parsed.status)

    numbers = parsed.numbers
    if numbers is None:
        return ComponentScore(ci=None, urgency=Urgency.UNABLE, status=parsed.status)

    rule = match_urgency_rule(*numbers)
    return ComponentScore(
        ci=_ci_from_numbers(*numbers),
        urgency=rule.urgency,
        status=parsed.status,
        rule=rule.code,
    )


def calculate_component_ci(degree, extent, relevancy) -> Optional[int]:
    return score_component(degree, extent, relevancy).ci


def determine_urgency(degree, extent, relevancy) -> Urgency:
    return score_component(degree, extent, relevancy).urgency
