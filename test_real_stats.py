"""
Tests for real stat aggregation from the armor reference table.
"""

import pytest

from models import (
    DAMAGE_TYPES, Candidate, DecodedCandidate, FixedSlots, GearPiece, InterchangeableGroup, ReferenceRow,
    INTERCHANGEABLE_SLOT_PRIORITY,
)
from real_stats import (
    aggregate_real_stats, resolve_interchangeable_row, effective_encumbrance,
    unit_encumbrances, elemental_value, real_stats_to_dict, RealStatsCache,
)


def ref(armor_type, slot, enc, **stats):
    full = {dt: 0.0 for dt in DAMAGE_TYPES}
    full.update(stats)
    return ReferenceRow(armor_type=armor_type, slot=slot, encumbrance=enc, stats=full)


@pytest.fixture
def table():
    return {
        'Bone': {
            'Head': ref('Bone', 'Head', 1.0, Slashing=0.5, Fire=0.2),
            'Chest': ref('Bone', 'Chest', 3.0, Slashing=1.5),
            'Boots': ref('Bone', 'Boots', 0.5, Slashing=0.25),
        },
        'Plate': {
            'Legs': ref('Plate', 'Legs', 4.0, Slashing=2.0, Piercing=1.0),
            'Arms': ref('Plate', 'Arms', 1.0, Slashing=0.5),
            'Shoulders': ref('Plate', 'Shoulders', 9.0, Slashing=9.0),
        },
    }


def decoded(head=None, chest=None, legs=None, groups=()):
    return DecodedCandidate(
        fixed=FixedSlots(head=head, chest=chest, legs=legs),
        interchangeable=tuple(InterchangeableGroup(t, c) for t, c in groups),
        total_protection=1.0,
        encumbrance=10.0,
    )


class TestAggregate:

    def test_missing_arguments(self, table):
        assert aggregate_real_stats(None, table) is None
        assert aggregate_real_stats(decoded(head='Bone'), None) is None

    def test_fixed_and_groups(self, table):
        real = aggregate_real_stats(
            decoded(head='Bone', chest='Bone', legs='Plate', groups=[('Plate', 3), ('Bone', 2)]),
            table,
        )
        labels = [s.label for s in real.slots]
        assert labels == ['Head', 'Chest', 'Legs', 'Plate x3', 'Bone x2']

        plate_group = real.slots[3]
        assert plate_group.armor_type == 'Plate'
        assert plate_group.count == 3
        assert plate_group.encumbrance == pytest.approx(3.0)
        assert plate_group.stats['Slashing'] == pytest.approx(1.5)

        # Bone has no Arms row, so Boots is used
        bone_group = real.slots[4]
        assert bone_group.encumbrance == pytest.approx(1.0)

        assert real.totals.encumbrance == pytest.approx(1.0 + 3.0 + 4.0 + 3.0 + 1.0)
        assert real.totals.stats['Slashing'] == pytest.approx(0.5 + 1.5 + 2.0 + 1.5 + 0.5)
        assert real.totals.stats['Piercing'] == pytest.approx(1.0)
        assert real.totals.stats['Fire'] == pytest.approx(0.2)
        assert set(real.totals.stats) == set(DAMAGE_TYPES)

    def test_missing_reference_rows_skipped(self, table):
        real = aggregate_real_stats(
            decoded(head='Dragon', chest='Plate', legs='Plate', groups=[('Cloth', 4)]),
            table,
        )
        # Dragon unknown, Plate has no Chest row, Cloth unknown
        assert [s.label for s in real.slots] == ['Legs']
        assert real.totals.encumbrance == pytest.approx(4.0)

    def test_empty_decoded_gives_zero_totals(self, table):
        real = aggregate_real_stats(decoded(), table)
        assert real.slots == ()
        assert real.totals.encumbrance == 0
        assert all(v == 0 for v in real.totals.stats.values())

    def test_totals_independent_of_group_order(self, table):
        forward = aggregate_real_stats(decoded(groups=[('Plate', 2), ('Bone', 3)]), table)
        reverse = aggregate_real_stats(decoded(groups=[('Bone', 3), ('Plate', 2)]), table)
        assert forward.totals.encumbrance == pytest.approx(reverse.totals.encumbrance)
        for dt in DAMAGE_TYPES:
            assert forward.totals.stats[dt] == pytest.approx(reverse.totals.stats[dt])
        assert [s.label for s in forward.slots] == ['Plate x2', 'Bone x3']
        assert [s.label for s in reverse.slots] == ['Bone x3', 'Plate x2']


class TestInterchangeableResolution:

    def test_priority_order(self, table):
        # Arms comes before Shoulders
        assert resolve_interchangeable_row(table, 'Plate').slot == 'Arms'
        assert INTERCHANGEABLE_SLOT_PRIORITY[0] == 'Arms'

    def test_no_match(self, table):
        assert resolve_interchangeable_row(table, 'Cloth') is None
        assert resolve_interchangeable_row({'Cloth': {'Head': ref('Cloth', 'Head', 1)}}, 'Cloth') is None


class TestDisplayHelpers:

    def test_effective_encumbrance(self, table):
        real = aggregate_real_stats(decoded(legs='Plate'), table)
        assert effective_encumbrance(real) == pytest.approx(4.0)
        assert effective_encumbrance(real, 1.5) == pytest.approx(2.5)
        assert effective_encumbrance(real, 30) == 0.0

    def test_unit_encumbrances(self):
        assert unit_encumbrances(35.0) == {'magic': 15.0, 'archery': 5.0}
        assert unit_encumbrances(10.0) == {'magic': 0.0, 'archery': 0.0}

    def test_elemental_value(self):
        assert elemental_value({'Fire': 0.0, 'Acid': 0.3, 'Cold': 0.3}) == 0.3
        assert elemental_value({'Fire': 0.4}) == 0.4
        assert elemental_value({}) == 0.0

    def test_serialized_rows_carry_elemental(self, table):
        real = aggregate_real_stats(decoded(head='Bone', groups=[('Plate', 2)]), table)
        data = real_stats_to_dict(real)
        assert [s['elemental'] for s in data['slots']] == [0.2, 0.0]
        assert data['totals']['elemental'] == pytest.approx(0.2)
        assert data['totals']['stats']['Slashing'] == pytest.approx(1.5)


class TestRealStatsCache:

    def test_reuses_result_for_same_inputs(self, table):
        cache = RealStatsCache()
        d = decoded(head='Bone')
        first = cache.get(d, table)
        assert cache.get(d, table) is first
        assert len(cache) == 1

    def test_distinct_inputs(self, table):
        cache = RealStatsCache()
        a = cache.get(decoded(head='Bone'), table)
        b = cache.get(decoded(chest='Bone'), table)
        assert a is not b
        assert a.slots[0].label == 'Head'
        assert b.slots[0].label == 'Chest'

    def test_bounded(self, table):
        cache = RealStatsCache(max_entries=2)
        keep = [decoded(head='Bone') for _ in range(5)]
        for d in keep:
            cache.get(d, table)
        assert len(cache) == 2

    def test_missing_inputs(self, table):
        assert RealStatsCache().get(None, table) is None

    def test_same_candidate_reuses_decoded_form(self, table):
        cache = RealStatsCache()
        candidate = Candidate(
            total_protection=3.0,
            encumbrance=10.0,
            pieces=(GearPiece('Head - Bone'), GearPiece('(interchangeable) - Plate', 2)),
        )
        decoded_a, real_a = cache.for_candidate(candidate, table)
        decoded_b, real_b = cache.for_candidate(candidate, table)
        assert decoded_b is decoded_a
        assert real_b is real_a
        assert len(cache) == 1
        assert [s.label for s in real_a.slots] == ['Head', 'Plate x2']

    def test_empty_candidate(self, table):
        assert RealStatsCache().for_candidate(Candidate(1.0, 2.0), table) == (None, None)

    def test_clear(self, table):
        cache = RealStatsCache()
        cache.get(decoded(head='Bone'), table)
        cache.clear()
        assert len(cache) == 0
