# tests/test_snapshot.py
import json

from arranger.domain.arrange import arrange
from arranger.domain.models import GenderPolicy, Group, Pair, Snapshot
from arranger.domain.pools import RandomShuffler

def _snapshot(people):
    roster = people(male=5, female=5, unspecified=2)
    roster[0] = roster[0].model_copy(update={"locked": True})
    roster[1] = roster[1].model_copy(update={"absent": True})
    groups = [
        Group(id="g0", display_name="Group 1", members=[roster[0], roster[5]]),
        Group(id="g1", display_name="Group 2", members=[]),
        Group(id="g2", display_name="Group 3", members=[roster[6]]),
    ]
    return Snapshot(
        roster=roster,
        groups=groups,
        group_count=3,
        min_per_group=3,
        max_per_group=5,
        gender_policy=GenderPolicy.SEPARATE_BY_GENDER,
        together_pairs=[Pair(a_id=roster[2].id, b_id=roster[3].id)],
        apart_pairs=[Pair(a_id=roster[7].id, b_id=roster[8].id)],
    )

# -------------------------------
# JSON boundary
# -------------------------------

def test_snapshot_round_trip(people):
    snapshot = _snapshot(people)
    restored = Snapshot.from_json(snapshot.to_json())
    assert restored.model_dump() == snapshot.model_dump()
    assert restored.to_json() == snapshot.to_json()

def test_snapshot_uses_camel_case(people):
    data = json.loads(_snapshot(people).to_json())
    assert set(data) == {
        "roster",
        "groups",
        "groupCount",
        "minPerGroup",
        "maxPerGroup",
        "genderPolicy",
        "togetherPairs",
        "apartPairs",
    }
    assert "displayName" in data["roster"][0]
    assert data["togetherPairs"][0].keys() == {"aId", "bId"}
    assert data["genderPolicy"] == "separate_by_gender"

def test_snapshot_accepts_snake_case(people):
    snapshot = _snapshot(people)
    data = snapshot.model_dump(mode="json")
    assert Snapshot.model_validate(data).model_dump() == snapshot.model_dump()

def test_snapshot_config_and_constraints(people):
    snapshot = _snapshot(people)
    assert snapshot.config.group_count == 3
    assert snapshot.config.gender_policy == GenderPolicy.SEPARATE_BY_GENDER
    assert len(snapshot.constraints.together) == 1
    assert len(snapshot.unplaced()) == 9

def test_arranged_snapshot_round_trip(people):
    snapshot = _snapshot(people)
    result = arrange(snapshot.roster, snapshot.groups, snapshot.constraints, snapshot.config, RandomShuffler(2))
    arranged = snapshot.with_state(groups=result.groups)
    assert Snapshot.from_json(arranged.to_json()).model_dump() == arranged.model_dump()
