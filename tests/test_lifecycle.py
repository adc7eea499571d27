import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import ACCOUNT, OTHER_ACCOUNT, make_main, make_space
from space_ledger.modules.spaces import (
    InvalidStateError,
    SpaceCreateInput,
    SpaceFrozenError,
    SpaceNotFoundError,
    SpaceType,
    SpaceUpdateInput,
    ValidationError,
)


@pytest.mark.asyncio
async def test_create_space_applies_defaults(ledger, clock):
    space = await ledger.create_space(SpaceCreateInput(account_id=ACCOUNT, name=" Rainy day ", kind="emergency"))

    assert space.id
    assert space.name == "Rainy day"
    assert space.kind is SpaceType.EMERGENCY
    assert space.balance == Decimal("0")
    assert space.is_visible is True
    assert space.is_frozen is False
    assert space.auto_transfer.enabled is False
    assert space.version == 1
    assert space.created_at == clock.now
    # creating a space does not write history
    assert await ledger.balance_history(space.id) == []


@pytest.mark.asyncio
async def test_create_space_keeps_optional_fields(ledger, clock):
    target_date = clock.now + timedelta(days=90)
    space = await make_space(
        ledger,
        "Trip",
        SpaceType.VACATION,
        "10.5",
        target_amount=Decimal("2000"),
        target_date=target_date,
        description="Lisbon",
        icon_id="plane",
        color_code="#00aaff",
        is_visible=False,
    )

    stored = await ledger.get_space(space.id)
    assert stored.balance == Decimal("10.5")
    assert stored.target_amount == Decimal("2000")
    assert stored.target_date == target_date
    assert (stored.description, stored.icon_id, stored.color_code) == ("Lisbon", "plane", "#00aaff")
    assert stored.is_visible is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        SpaceCreateInput(account_id="", name="Savings", kind=SpaceType.SAVINGS),
        SpaceCreateInput(account_id=ACCOUNT, name="  ", kind=SpaceType.SAVINGS),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind="piggy-bank"),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=None),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, balance=Decimal("-1")),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, target_amount=Decimal("-1")),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, balance=Decimal("NaN")),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, balance=Decimal("sNaN")),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, balance=Decimal("1e30")),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, balance=Decimal("0.00001")),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, target_amount=Decimal("Infinity")),
        SpaceCreateInput(account_id=ACCOUNT, name="Savings", kind=SpaceType.SAVINGS, target_amount=Decimal("10.12345")),
    ],
)
async def test_create_space_rejects_invalid_input(ledger, payload):
    with pytest.raises(ValidationError):
        await ledger.create_space(payload)

    assert await ledger.count_spaces(ACCOUNT) == 0


@pytest.mark.asyncio
async def test_create_space_rejects_past_target_date(ledger, clock):
    with pytest.raises(ValidationError):
        await make_space(ledger, "Goal", SpaceType.GOAL, target_date=clock.now - timedelta(days=1))


@pytest.mark.asyncio
async def test_get_space_errors(ledger):
    with pytest.raises(ValidationError):
        await ledger.get_space("")
    with pytest.raises(SpaceNotFoundError):
        await ledger.get_space("nope")


@pytest.mark.asyncio
async def test_ensure_main_space_is_idempotent(ledger):
    first = await ledger.ensure_main_space(ACCOUNT)
    second = await ledger.ensure_main_space(ACCOUNT)

    assert first.id == second.id
    assert first.kind is SpaceType.MAIN
    assert first.name == "Main"
    assert await ledger.count_spaces(ACCOUNT) == 1


@pytest.mark.asyncio
async def test_account_queries(ledger, clock):
    main = await make_main(ledger, "100")
    clock.advance(minutes=1)
    savings = await make_space(ledger, "Savings", SpaceType.SAVINGS, "50")
    clock.advance(minutes=1)
    await make_space(ledger, "Other savings", SpaceType.SAVINGS, "25.25")
    await make_space(ledger, "Foreign", SpaceType.SAVINGS, "999", account_id=OTHER_ACCOUNT)

    listed = await ledger.list_spaces(ACCOUNT)
    assert [s.name for s in listed] == ["Main", "Savings", "Other savings"]
    assert [s.id for s in await ledger.list_spaces(ACCOUNT, limit=1, offset=1)] == [savings.id]
    assert await ledger.count_spaces(ACCOUNT) == 3
    assert await ledger.total_balance(ACCOUNT) == Decimal("175.25")
    assert await ledger.total_balance("empty") == Decimal("0")
    assert len(await ledger.spaces_by_type(ACCOUNT, "savings")) == 2
    assert [s.id for s in await ledger.spaces_by_type(ACCOUNT, SpaceType.MAIN)] == [main.id]


@pytest.mark.asyncio
async def test_update_space_changes_only_given_fields(ledger, clock):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS, "40", description="old")
    clock.advance(hours=1)

    updated = await ledger.update_space(
        space.id,
        SpaceUpdateInput(name="Nest egg", description=None, target_amount=Decimal("500")),
    )

    assert updated.name == "Nest egg"
    assert updated.description is None
    assert updated.target_amount == Decimal("500")
    assert updated.balance == Decimal("40")
    assert updated.account_id == ACCOUNT
    assert updated.kind is SpaceType.SAVINGS
    assert updated.updated_at == clock.now
    assert (await ledger.get_space(space.id)).name == "Nest egg"


@pytest.mark.asyncio
async def test_update_space_cannot_change_kind(ledger):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS)

    with pytest.raises(ValidationError):
        await ledger.update_space(space.id, SpaceUpdateInput(kind=SpaceType.GOAL))

    unchanged = await ledger.update_space(space.id, SpaceUpdateInput(kind="SAVINGS"))
    assert unchanged.version == space.version


@pytest.mark.asyncio
async def test_update_space_validates_fields(ledger, clock):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS)

    with pytest.raises(ValidationError):
        await ledger.update_space(space.id, SpaceUpdateInput(name=""))
    with pytest.raises(ValidationError):
        await ledger.update_space(space.id, SpaceUpdateInput(target_date=clock.now - timedelta(days=2)))
    with pytest.raises(SpaceNotFoundError):
        await ledger.update_space("nope", SpaceUpdateInput(name="x"))


@pytest.mark.asyncio
async def test_delete_empty_space(ledger):
    await make_main(ledger)
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS)

    await ledger.delete_space(space.id)

    with pytest.raises(SpaceNotFoundError):
        await ledger.get_space(space.id)


@pytest.mark.asyncio
async def test_delete_space_with_funds_fails(ledger):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS, "0.01")

    with pytest.raises(InvalidStateError):
        await ledger.delete_space(space.id)

    assert (await ledger.get_space(space.id)).balance == Decimal("0.01")


@pytest.mark.asyncio
async def test_main_space_cannot_be_deleted(ledger):
    main = await make_main(ledger, "0")

    with pytest.raises(InvalidStateError):
        await ledger.delete_space(main.id)


@pytest.mark.asyncio
async def test_freeze_and_unfreeze(ledger, clock):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS)

    frozen = await ledger.freeze(space.id)
    assert frozen.is_frozen is True
    assert frozen.frozen_at == clock.now
    assert [s.id for s in await ledger.frozen_spaces(ACCOUNT)] == [space.id]

    with pytest.raises(InvalidStateError):
        await ledger.freeze(space.id)

    clock.advance(days=1)
    thawed = await ledger.unfreeze(space.id)
    assert thawed.is_frozen is False
    assert thawed.unfrozen_at == clock.now
    assert thawed.frozen_at == frozen.frozen_at
    assert await ledger.frozen_spaces(ACCOUNT) == []

    with pytest.raises(InvalidStateError):
        await ledger.unfreeze(space.id)


@pytest.mark.asyncio
async def test_set_balance_records_snapshot_and_reason(ledger, clock):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS, "10")

    updated = await ledger.set_balance(space.id, Decimal("75.50"), " reconciliation ")

    assert updated.balance == Decimal("75.50")
    assert updated.last_balance_update_reason == "reconciliation"
    assert updated.last_balance_update_at == clock.now
    history = await ledger.balance_history(space.id)
    assert [s.amount for s in history] == [Decimal("75.50")]


@pytest.mark.asyncio
async def test_set_balance_validation(ledger):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS, "10")

    with pytest.raises(ValidationError):
        await ledger.set_balance(space.id, Decimal("-1"), "oops")
    with pytest.raises(ValidationError):
        await ledger.set_balance(space.id, Decimal("5"), "   ")

    await ledger.freeze(space.id)
    with pytest.raises(SpaceFrozenError):
        await ledger.set_balance(space.id, Decimal("5"), "correction")

    assert (await ledger.get_space(space.id)).balance == Decimal("10")
    assert await ledger.balance_history(space.id) == []


@pytest.mark.asyncio
async def test_nineteen_digit_balance_round_trips_exactly(ledger):
    space = await make_space(ledger, "Main", SpaceType.MAIN, "123456789012345.6789")

    stored = await ledger.get_space(space.id)

    assert stored.balance == Decimal("123456789012345.6789")
    assert await ledger.total_balance(ACCOUNT) == Decimal("123456789012345.6789")


@pytest.mark.asyncio
async def test_set_balance_rejects_non_finite_and_sub_precision_values(ledger):
    space = await make_space(ledger, "Savings", SpaceType.SAVINGS, "10")

    for bad in (Decimal("NaN"), Decimal("Infinity"), Decimal("1e15"), Decimal("1.00001")):
        with pytest.raises(ValidationError):
            await ledger.set_balance(space.id, bad, "correction")

    assert (await ledger.get_space(space.id)).balance == Decimal("10")


@pytest.mark.asyncio
async def test_second_main_space_is_rejected(ledger):
    await make_main(ledger)

    with pytest.raises(InvalidStateError):
        await make_main(ledger, "5")

    assert len(await ledger.spaces_by_type(ACCOUNT, SpaceType.MAIN)) == 1
    # other accounts are unaffected
    await make_main(ledger, account_id=OTHER_ACCOUNT)


@pytest.mark.asyncio
async def test_concurrent_ensure_main_space_creates_one_main(ledger):
    outcomes = await asyncio.gather(
        *(ledger.ensure_main_space(ACCOUNT) for _ in range(4)),
        return_exceptions=True,
    )

    mains = await ledger.spaces_by_type(ACCOUNT, SpaceType.MAIN)
    assert len(mains) == 1
    errors = [o for o in outcomes if isinstance(o, BaseException)]
    assert all(isinstance(error, (IntegrityError, InvalidStateError)) for error in errors)
    assert all(o.id == mains[0].id for o in outcomes if not isinstance(o, BaseException))
    assert (await ledger.ensure_main_space(ACCOUNT)).id == mains[0].id
