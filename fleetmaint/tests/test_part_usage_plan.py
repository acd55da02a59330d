import random
from dataclasses import dataclass
from decimal import Decimal

import pytest

from fleetmaint.services.part_usage_reconciler import (
    PartCartItem,
    clamp_unit_cost,
    plan_part_usage_changes,
    validate_cart_items,
)


@dataclass
class Row:
    id: str
    part_id: str
    quantity_used: int
    unit_cost_at_time: Decimal
    service_note_id: str = "note-1"


def row(part_id, qty, cost):
    return Row(id=f"row-{part_id}", part_id=part_id, quantity_used=qty, unit_cost_at_time=Decimal(str(cost)))


def item(part_id, qty, cost):
    return PartCartItem(part_id=part_id, quantity_to_use=qty, unit_cost=Decimal(str(cost)))


def part_ids(entries):
    return [getattr(e, "part_id", None) or e.item.part_id for e in entries]


def test_new_part_is_inserted_and_unchanged_part_untouched():
    existing = [row("A", 2, "10.00")]
    desired = [item("A", 2, "10.00"), item("B", 1, "5.00")]

    plan = plan_part_usage_changes(desired, existing)

    assert [i.part_id for i in plan.to_insert] == ["B"]
    assert plan.to_update == []
    assert plan.to_delete == []
    assert [r.part_id for r in plan.unchanged] == ["A"]


def test_quantity_change_is_an_update():
    existing = [row("A", 2, "10.00")]
    plan = plan_part_usage_changes([item("A", 3, "10.00")], existing)

    assert plan.to_insert == []
    assert plan.to_delete == []
    assert len(plan.to_update) == 1
    update = plan.to_update[0]
    assert update.row is existing[0]
    assert update.item.quantity_to_use == 3
    assert update.previous_quantity == 2
    assert update.previous_unit_cost == Decimal("10.00")


def test_part_missing_from_cart_is_deleted():
    existing = [row("A", 2, "10.00"), row("B", 1, "5.00")]
    plan = plan_part_usage_changes([item("A", 2, "10.00")], existing)

    assert [r.part_id for r in plan.to_delete] == ["B"]
    assert plan.to_insert == []
    assert plan.to_update == []


def test_zero_quantity_item_is_dropped():
    plan = plan_part_usage_changes([item("C", 0, "7.00")], [])

    assert plan.is_empty
    assert len(plan.skipped) == 1
    assert plan.skipped[0].item.part_id == "C"


def test_zero_quantity_item_counts_as_absent_for_existing_row():
    # 数量为 0 的条目被丢弃，对应的已有行因此被删除
    plan = plan_part_usage_changes([item("A", 0, "10.00")], [row("A", 2, "10.00")])

    assert [r.part_id for r in plan.to_delete] == ["A"]
    assert len(plan.skipped) == 1


@pytest.mark.parametrize("desired_cost,expect_update", [
    ("10.01", False),
    ("9.99", False),
    ("10.011", True),
    ("9.989", True),
])
def test_cost_tolerance(desired_cost, expect_update):
    plan = plan_part_usage_changes([item("A", 2, desired_cost)], [row("A", 2, "10.00")])
    assert bool(plan.to_update) is expect_update


def test_float_costs_compare_without_binary_noise():
    existing = [row("A", 1, "0.30")]
    desired = [PartCartItem(part_id="A", quantity_to_use=1, unit_cost=0.1 + 0.2)]
    assert plan_part_usage_changes(desired, existing).is_empty


def test_invalid_items_are_reported():
    desired = [
        PartCartItem(part_id=None, quantity_to_use=1, unit_cost=Decimal("1")),
        PartCartItem(part_id="   ", quantity_to_use=1, unit_cost=Decimal("1")),
        PartCartItem(part_id="X", quantity_to_use=None, unit_cost=Decimal("1")),
        PartCartItem(part_id="Y", quantity_to_use=-2, unit_cost=Decimal("1")),
        item("Z", 1, "1.00"),
    ]
    valid, skipped = validate_cart_items(desired)

    assert [i.part_id for i in valid] == ["Z"]
    assert [s.reason for s in skipped] == [
        "missing part_id",
        "missing part_id",
        "quantity_to_use must be greater than 0",
        "quantity_to_use must be greater than 0",
    ]


def test_duplicate_part_in_cart_keeps_last_entry():
    valid, skipped = validate_cart_items([item("A", 1, "1.00"), item("A", 4, "2.00")])

    assert skipped == []
    assert len(valid) == 1
    assert valid[0].quantity_to_use == 4


@pytest.mark.parametrize("value,expected", [
    (None, Decimal("0.01")),
    (0, Decimal("0.01")),
    (Decimal("-3"), Decimal("0.01")),
    ("0.004", Decimal("0.01")),
    (Decimal("12.345"), Decimal("12.35")),
    (7, Decimal("7.00")),
])
def test_clamp_unit_cost(value, expected):
    assert clamp_unit_cost(value) == expected


def test_plan_sets_are_disjoint_and_cover_stale_rows():
    rng = random.Random(20240502)
    pool = [f"P{i}" for i in range(8)]

    for _ in range(200):
        existing = [
            row(pid, rng.randint(1, 4), rng.choice(["5.00", "10.00"]))
            for pid in rng.sample(pool, rng.randint(0, len(pool)))
        ]
        desired = [
            item(pid, rng.randint(-1, 4), rng.choice(["5.00", "5.005", "10.00", "10.02"]))
            for pid in rng.sample(pool, rng.randint(0, len(pool)))
        ]

        plan = plan_part_usage_changes(desired, existing)

        inserted = set(part_ids(plan.to_insert))
        updated = set(part_ids(plan.to_update))
        deleted = part_ids(plan.to_delete)
        assert not (inserted & updated)
        assert not (inserted & set(deleted))
        assert not (updated & set(deleted))

        valid_ids = {i.part_id for i in desired if i.quantity_to_use > 0}
        stale = [r.part_id for r in existing if r.part_id not in valid_ids]
        assert sorted(deleted) == sorted(stale)
        assert len(deleted) == len(set(deleted))


def test_part_id_whitespace_is_trimmed():
    desired = [item(" A ", 1, "1.00"), item("A", 2, "1.00")]
    valid, skipped = validate_cart_items(desired)

    assert skipped == []
    assert [(i.part_id, i.quantity_to_use) for i in valid] == [("A", 2)]

    plan = plan_part_usage_changes([item(" A", 2, "10.00")], [row("A", 2, "10.00")])
    assert plan.is_empty


@pytest.mark.parametrize("desired", [
    [],
    [item("A", 0, "10.00"), PartCartItem(part_id=None, quantity_to_use=1)],
])
def test_empty_or_all_invalid_cart_deletes_every_row(desired):
    existing = [row("A", 2, "10.00"), row("B", 1, "5.00")]

    plan = plan_part_usage_changes(desired, existing)

    assert sorted(r.part_id for r in plan.to_delete) == ["A", "B"]
    assert plan.to_insert == []
    assert plan.to_update == []
