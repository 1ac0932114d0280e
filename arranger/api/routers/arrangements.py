# arranger/api/routers/arrangements.py
"""
Arrangement endpoints. Stateless: every request carries the current snapshot
and every response returns the new one, the UI keeps (and persists) it.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from arranger.domain import commands
from arranger.domain.arrange import arrange
from arranger.domain.capacity import capacity_note, plan_capacity
from arranger.domain.errors import ArrangementError, InsufficientPopulation, InvalidConfiguration, Rejected
from arranger.domain.models import (
    ArrangementWarning,
    CapacityNote,
    Category,
    PairKind,
    Snapshot,
)
from arranger.domain.pools import RandomShuffler

router = APIRouter()


def _http_error(exc: ArrangementError) -> HTTPException:
    if isinstance(exc, Rejected):
        return HTTPException(status_code=409, detail={"reason": exc.reason.value, "message": str(exc)})
    if isinstance(exc, InsufficientPopulation):
        return HTTPException(
            status_code=409,
            detail={"reason": "insufficient_population", "available": exc.available, "required": exc.required},
        )
    if isinstance(exc, InvalidConfiguration):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


# ---------- Request / response schemas ----------
class CapacityReq(BaseModel):
    locked_counts: List[int]
    min_per_group: int
    max_per_group: int
    total_population: int


class ArrangeReq(BaseModel):
    snapshot: Snapshot
    seed: Optional[int] = None


class ArrangeResp(BaseModel):
    snapshot: Snapshot
    unplaced_ids: List[str]
    targets: List[int]
    warnings: List[ArrangementWarning]


class IndividualReq(BaseModel):
    snapshot: Snapshot
    individual_id: str


class AssignReq(IndividualReq):
    group_index: int


class ResizeReq(BaseModel):
    snapshot: Snapshot
    group_count: int


class SnapshotReq(BaseModel):
    snapshot: Snapshot


class NewIndividual(BaseModel):
    display_name: str
    category: Category = Category.UNSPECIFIED


class AddIndividualsReq(BaseModel):
    snapshot: Snapshot
    individuals: List[NewIndividual] = Field(default_factory=list)


class PairReq(BaseModel):
    snapshot: Snapshot
    kind: PairKind
    a_id: str
    b_id: str


# ---------- Endpoints ----------
@router.post("/capacity", summary="Plan per-group target sizes")
def capacity(req: CapacityReq):
    try:
        targets = plan_capacity(req.locked_counts, req.min_per_group, req.max_per_group, req.total_population)
    except ArrangementError as exc:
        raise _http_error(exc)
    return {"targets": targets}


@router.post("/capacity/note", response_model=CapacityNote, summary="Seats compared with roster size")
def note(req: SnapshotReq):
    return capacity_note(req.snapshot.config, len(req.snapshot.present()))


@router.post("/arrange", response_model=ArrangeResp, summary="Run the automatic arrangement")
def run_arrange(req: ArrangeReq):
    s = req.snapshot
    try:
        result = arrange(s.roster, s.groups, s.constraints, s.config, RandomShuffler(req.seed))
    except ArrangementError as exc:
        raise _http_error(exc)
    return ArrangeResp(
        snapshot=s.with_state(roster=result.roster, groups=result.groups),
        unplaced_ids=result.unplaced_ids,
        targets=result.targets,
        warnings=result.warnings,
    )


@router.post("/assign", response_model=Snapshot, summary="Move one individual into a group")
def assign(req: AssignReq):
    s = req.snapshot
    try:
        groups = commands.assign_individual(req.individual_id, req.group_index, s.roster, s.groups, s.config, s.constraints)
    except ArrangementError as exc:
        raise _http_error(exc)
    return s.with_state(groups=groups)


@router.post("/unassign", response_model=Snapshot, summary="Move one individual back to unplaced")
def unassign(req: IndividualReq):
    s = req.snapshot
    roster, groups = commands.unassign_individual(req.individual_id, s.roster, s.groups)
    return s.with_state(roster=roster, groups=groups)


@router.post("/lock", response_model=Snapshot, summary="Toggle the lock of one individual")
def lock(req: IndividualReq):
    s = req.snapshot
    roster, groups = commands.toggle_lock(req.individual_id, s.roster, s.groups)
    return s.with_state(roster=roster, groups=groups)


@router.post("/remove", response_model=Snapshot, summary="Remove an individual everywhere")
def remove(req: IndividualReq):
    s = req.snapshot
    roster, groups, constraints = commands.remove_individual(req.individual_id, s.roster, s.groups, s.constraints)
    return s.with_state(roster=roster, groups=groups, constraints=constraints)


@router.post("/individuals", response_model=Snapshot, summary="Add individuals to the roster")
def add_individuals(req: AddIndividualsReq):
    s = req.snapshot
    added = [commands.create_individual(n.display_name, n.category) for n in req.individuals if n.display_name.strip()]
    try:
        roster = commands.add_individuals(s.roster, added)
    except ArrangementError as exc:
        raise _http_error(exc)
    return s.with_state(roster=roster)


@router.post("/clear", response_model=Snapshot, summary="Empty every group")
def clear(req: SnapshotReq):
    s = req.snapshot
    roster, groups = commands.clear_groups(s.roster, s.groups)
    return s.with_state(roster=roster, groups=groups)


@router.post("/resize", response_model=Snapshot, summary="Change the number of groups")
def resize(req: ResizeReq):
    s = req.snapshot
    config = s.config.model_copy(update={"group_count": req.group_count})
    try:
        commands.validate_configuration(config)
    except ArrangementError as exc:
        raise _http_error(exc)
    roster, groups = commands.resize_groups(s.roster, s.groups, req.group_count)
    return s.with_state(roster=roster, groups=groups, config=config)


@router.post("/pairs", response_model=Snapshot, summary="Add a together/apart pair")
def add_pair(req: PairReq):
    s = req.snapshot
    try:
        constraints = commands.add_pair(s.constraints, req.kind, req.a_id, req.b_id, s.roster)
    except ArrangementError as exc:
        raise _http_error(exc)
    return s.with_state(constraints=constraints)


@router.delete("/pairs", response_model=Snapshot, summary="Remove a together/apart pair")
def remove_pair(req: PairReq):
    s = req.snapshot
    constraints = commands.remove_pair(s.constraints, req.kind, req.a_id, req.b_id)
    return s.with_state(constraints=constraints)
