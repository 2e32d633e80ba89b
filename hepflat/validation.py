"""
Consistency checks for event graphs and the collections made from them.

Graph checks:
- Back-references agree with vertex incoming/outgoing lists
- No cycles
- Valid PDG particle IDs
- Signal vertex exists
- Momentum balance at each vertex

Collection checks:
- One record per particle
- parents/daughters indices point inside the collection and mirror each other
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from . import pdg as pdg_module
from .errors import GraphError
from .models import FourVector, GenEvent, MCParticleCollection
from .walk import topological_order


@dataclass
class ValidationIssue:
    """A single validation issue found in an event."""

    level: str  # "error", "warning", "info"
    event_number: int
    particle_index: Optional[int]
    message: str
    vertex_index: Optional[int] = None

    def __str__(self) -> str:
        loc = f"event {self.event_number}"
        if self.vertex_index is not None:
            loc += f", vertex {self.vertex_index}"
        if self.particle_index is not None:
            loc += f", particle {self.particle_index}"
        return f"[{self.level.upper()}] {loc}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "event_number": self.event_number,
            "particle_index": self.particle_index,
            "vertex_index": self.vertex_index,
            "message": self.message,
        }


@dataclass
class ValidationReport:
    """Summary of all validation issues."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def n_errors(self) -> int:
        return sum(1 for i in self.issues if i.level == "error")

    @property
    def n_warnings(self) -> int:
        return sum(1 for i in self.issues if i.level == "warning")

    @property
    def is_valid(self) -> bool:
        return self.n_errors == 0

    def __str__(self) -> str:
        lines = [
            f"Validation: {self.n_errors} errors, {self.n_warnings} warnings, "
            f"{len(self.issues)} total issues"
        ]
        for issue in self.issues[:50]:  # Cap output
            lines.append(f"  {issue}")
        if len(self.issues) > 50:
            lines.append(f"  ... and {len(self.issues) - 50} more")
        return "\n".join(lines)

    def summary(self) -> str:
        """One-line summary."""
        return (
            f"{self.n_errors} errors, {self.n_warnings} warnings "
            f"across {len(self.issues)} issues"
        )

    def to_dict(self) -> dict:
        return {
            "n_errors": self.n_errors,
            "n_warnings": self.n_warnings,
            "n_issues": len(self.issues),
            "is_valid": self.is_valid,
            "issues": [i.to_dict() for i in self.issues],
        }


def _check_links(event: GenEvent) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    evt = event.event_number
    n_p = len(event.particles)
    producers: dict[int, list[int]] = {}
    consumers: dict[int, list[int]] = {}

    for vi, v in enumerate(event.vertices):
        for kind, members, owners in (("incoming", v.incoming, consumers), ("outgoing", v.outgoing, producers)):
            for pi in members:
                if not 0 <= pi < n_p:
                    issues.append(ValidationIssue(
                        "error", evt, None, f"{kind} particle {pi} does not exist", vertex_index=vi
                    ))
                    continue
                owners.setdefault(pi, []).append(vi)
            if len(set(members)) != len(members):
                issues.append(ValidationIssue(
                    "error", evt, None, f"duplicate {kind} particles", vertex_index=vi
                ))

    for pi, p in enumerate(event.particles):
        prods = producers.get(pi, [])
        ends = consumers.get(pi, [])
        if len(prods) > 1:
            issues.append(ValidationIssue("error", evt, pi, f"produced at several vertices: {prods}"))
        if len(ends) > 1:
            issues.append(ValidationIssue("error", evt, pi, f"ends at several vertices: {ends}"))
        expected_prod = prods[0] if len(prods) == 1 else None
        expected_end = ends[0] if len(ends) == 1 else None
        if p.production_vertex != expected_prod:
            issues.append(ValidationIssue(
                "error", evt, pi,
                f"production_vertex={p.production_vertex} but outgoing lists say {expected_prod}"
            ))
        if p.end_vertex != expected_end:
            issues.append(ValidationIssue(
                "error", evt, pi,
                f"end_vertex={p.end_vertex} but incoming lists say {expected_end}"
            ))
    return issues


def _momentum_sum(event: GenEvent, indices: Iterable[int]) -> FourVector:
    total = FourVector()
    for i in indices:
        total = total + event.particles[i].momentum
    return total


def validate_event(
    event: GenEvent,
    *,
    check_graph: bool = True,
    check_pdg: bool = True,
    check_momentum: bool = True,
    momentum_tolerance: float = 1e-4,
) -> list[ValidationIssue]:
    """Validate a single event graph.

    Args:
        event: The event to validate.
        check_graph: Check back-references and acyclicity.
        check_pdg: Check PDG ID validity.
        check_momentum: Check four-momentum balance at each vertex that has
            both incoming and outgoing particles. Generator records often
            contain documentation vertices that do not balance, so these
            are warnings.
        momentum_tolerance: Relative tolerance for momentum balance.

    Returns:
        List of validation issues found.
    """
    issues: list[ValidationIssue] = []
    evt = event.event_number

    if not event.particles:
        issues.append(ValidationIssue("warning", evt, None, "Event has no particles"))
        return issues

    if check_graph:
        link_issues = _check_links(event)
        issues.extend(link_issues)
        if not link_issues:
            try:
                topological_order(event)
            except GraphError as e:
                issues.append(ValidationIssue("error", evt, None, str(e)))
        if event.signal_vertex is not None and not 0 <= event.signal_vertex < len(event.vertices):
            issues.append(ValidationIssue(
                "error", evt, None, f"signal vertex {event.signal_vertex} does not exist"
            ))

    if check_pdg:
        for i, p in enumerate(event.particles):
            if not pdg_module.is_valid_pdg_id(p.pdg_id):
                issues.append(ValidationIssue(
                    "warning", evt, i,
                    f"Unknown/invalid PDG ID: {p.pdg_id}"
                ))

    if check_momentum and not any(i.level == "error" for i in issues):
        labels = ["px", "py", "pz", "E"]
        for vi, v in enumerate(event.vertices):
            if not v.incoming or not v.outgoing:
                continue
            sum_in = _momentum_sum(event, v.incoming)
            sum_out = _momentum_sum(event, v.outgoing)
            scale = max(abs(sum_in.e), abs(sum_out.e), 1e-10)
            for label, a, b in zip(labels, (sum_in.x, sum_in.y, sum_in.z, sum_in.t),
                                   (sum_out.x, sum_out.y, sum_out.z, sum_out.t)):
                diff = abs(a - b)
                if diff / scale > momentum_tolerance:
                    issues.append(ValidationIssue(
                        "warning", evt, None,
                        f"Momentum imbalance in {label}: in={a:.6e}, out={b:.6e}, "
                        f"diff={diff:.6e} ({diff/scale:.4e} relative)",
                        vertex_index=vi,
                    ))

    return issues


def validate_collection(collection: MCParticleCollection, event: GenEvent) -> list[ValidationIssue]:
    """Check a converted collection against its source event."""
    issues: list[ValidationIssue] = []
    evt = event.event_number
    n = len(collection)

    if n != len(event.particles):
        issues.append(ValidationIssue(
            "error", evt, None, f"collection has {n} records for {len(event.particles)} particles"
        ))

    for i, rec in enumerate(collection):
        for kind, refs in (("parent", rec.parents), ("daughter", rec.daughters)):
            for j in refs:
                if not 0 <= j < n:
                    issues.append(ValidationIssue("error", evt, i, f"{kind} index {j} out of range"))
        for j in rec.parents:
            if 0 <= j < n and i not in collection[j].daughters:
                issues.append(ValidationIssue(
                    "error", evt, i, f"parent {j} does not list record {i} as a daughter"
                ))
        for j in rec.daughters:
            if 0 <= j < n and i not in collection[j].parents:
                issues.append(ValidationIssue(
                    "error", evt, i, f"daughter {j} does not list record {i} as a parent"
                ))
    return issues


def validate(
    events: Iterable[GenEvent],
    *,
    check_graph: bool = True,
    check_pdg: bool = True,
    check_momentum: bool = True,
    momentum_tolerance: float = 1e-4,
    max_events: int = -1,
) -> ValidationReport:
    """Validate a sequence of events.

    Args:
        events: Events to validate.
        check_graph: Check back-references and acyclicity.
        check_pdg: Check PDG ID validity.
        check_momentum: Check momentum balance per vertex.
        momentum_tolerance: Relative tolerance for momentum balance.
        max_events: Maximum number of events to check (-1 for all).

    Returns:
        A ValidationReport summarizing all issues found.
    """
    report = ValidationReport()

    for i, event in enumerate(events):
        if max_events >= 0 and i >= max_events:
            break

        report.issues.extend(validate_event(
            event,
            check_graph=check_graph,
            check_pdg=check_pdg,
            check_momentum=check_momentum,
            momentum_tolerance=momentum_tolerance,
        ))

    return report


def validate_stream(
    events: Iterable[GenEvent],
    *,
    report: Optional[ValidationReport] = None,
    strict: bool = False,
    momentum_tolerance: float = 1e-4,
) -> Iterator[GenEvent]:
    """Validate events in a streaming pipeline.

    Issues are collected into ``report``. With ``strict=True`` the first
    event with an error raises :class:`GraphError` before it is yielded.
    """
    for event in events:
        issues = validate_event(event, momentum_tolerance=momentum_tolerance)
        if report is not None:
            report.issues.extend(issues)
        errors = [iss for iss in issues if iss.level == "error"]
        if errors and strict:
            raise GraphError(str(errors[0]))
        yield event
