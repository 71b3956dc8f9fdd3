import itertools
import threading

import pytest

from app.core.exceptions import BookingValidationError, SlotConflictError
from app.models.domain import BookingStatus
from app.services.ledger import (
    BookingLedger,
    never_occupied,
    parse_slot,
    pseudo_random_occupancy,
    validate_date,
)

EXPECTED_LABELS = ["09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"]


def fake_clock(start=1_700_000_000.0):
    counter = itertools.count()
    return lambda: start + next(counter)


def test_slots_cover_fixed_window(ledger):
    slots = ledger.compute_available_slots("2024-06-01", "r1")
    assert [s.time for s in slots] == EXPECTED_LABELS
    assert all(s.available for s in slots)


def test_slots_always_eight_with_mask():
    ledger = BookingLedger()  # default pseudo-random mask
    for date in ["2024-06-01", "2024-06-02", "2024-12-31", "2025-01-07"]:
        slots = ledger.compute_available_slots(date, "r4")
        assert [s.time for s in slots] == EXPECTED_LABELS


def test_slots_are_deterministic():
    ledger = BookingLedger()
    first = ledger.compute_available_slots("2024-06-03", "r2")
    second = ledger.compute_available_slots("2024-06-03", "r2")
    assert first == second
    assert len(ledger) == 0


def test_default_mask_blocks_hours():
    # ord('1') == 49, divisible by 7, so 14:00 is the masked hour
    ledger = BookingLedger(occupancy=pseudo_random_occupancy)
    slots = {s.time: s.available for s in ledger.compute_available_slots("2024-06-01", "r1")}
    assert slots["14:00"] is False
    assert slots["10:00"] is True


def test_custom_predicate_is_used():
    ledger = BookingLedger(occupancy=lambda date, resource_id, hour: resource_id == "r3" and hour >= 12)
    r3 = [s.available for s in ledger.compute_available_slots("2024-06-01", "r3")]
    r1 = [s.available for s in ledger.compute_available_slots("2024-06-01", "r1")]
    assert r3 == [True, True, True, False, False, False, False, False]
    assert all(r1)


def test_booking_marks_slot_unavailable(ledger):
    booking = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    assert booking.status == BookingStatus.CONFIRMED

    slots = {s.time: s.available for s in ledger.compute_available_slots("2024-06-01", "r1")}
    assert slots["10:00"] is False
    assert slots["11:00"] is True

    # Other resource and other date are unaffected
    assert all(s.available for s in ledger.compute_available_slots("2024-06-01", "r2"))
    assert all(s.available for s in ledger.compute_available_slots("2024-06-02", "r1"))


def test_cancelled_booking_frees_slot(ledger):
    booking = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    ledger.cancel_booking(booking.id)
    slots = {s.time: s.available for s in ledger.compute_available_slots("2024-06-01", "r1")}
    assert slots["10:00"] is True


def test_booking_ids_unique_and_timestamps_increase():
    ledger = BookingLedger(occupancy=never_occupied, clock=lambda: 1_700_000_000.0)
    a = ledger.create_booking("s1", "r1", "2024-06-01", "09:00", "A")
    b = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "B")
    c = ledger.create_booking("s1", "r1", "2024-06-01", "11:00", "C")
    assert len({a.id, b.id, c.id}) == 3
    assert a.created_at < b.created_at < c.created_at


def test_unknown_references_are_accepted(ledger):
    booking = ledger.create_booking("s-missing", "r-missing", "2024-06-01", "09:00", "Ghost")
    assert ledger.get_booking(booking.id) == booking


def test_double_booking_rejected(ledger):
    ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    with pytest.raises(SlotConflictError):
        ledger.create_booking("s4", "r1", "2024-06-01", "10:00", "Bob")
    assert len(ledger) == 1


@pytest.mark.parametrize("variant", ["+9:00", " 9:00", "9:00", "０９:00"])
def test_non_canonical_label_cannot_double_book(ledger, variant):
    ledger.create_booking("s1", "r1", "2024-06-01", "09:00", "Alice")
    with pytest.raises(BookingValidationError):
        ledger.create_booking("s1", "r1", "2024-06-01", variant, "Bob")
    assert [b.time_slot for b in ledger.list_bookings()] == ["09:00"]


def test_masked_slot_rejected():
    ledger = BookingLedger()
    with pytest.raises(SlotConflictError):
        ledger.create_booking("s1", "r1", "2024-06-01", "14:00", "Alice")


def test_lenient_mode_allows_double_booking():
    ledger = BookingLedger(occupancy=never_occupied, reject_conflicts=False)
    ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Bob")
    assert len(ledger) == 2


def test_rebooking_after_cancel(ledger):
    first = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    ledger.cancel_booking(first.id)
    second = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Bob")
    assert second.status == BookingStatus.CONFIRMED


def test_concurrent_creates_only_one_wins(ledger):
    wins, conflicts = [], []
    barrier = threading.Barrier(8)

    def book(n):
        barrier.wait()
        try:
            wins.append(ledger.create_booking("s1", "r1", "2024-06-01", "12:00", f"User {n}"))
        except SlotConflictError:
            conflicts.append(n)

    threads = [threading.Thread(target=book, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(wins) == 1
    assert len(conflicts) == 7


def test_cancel_is_idempotent(ledger):
    booking = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    assert ledger.cancel_booking(booking.id) is True
    assert ledger.cancel_booking(booking.id) is False
    assert ledger.get_booking(booking.id).status == BookingStatus.CANCELLED


def test_cancel_unknown_is_noop(ledger):
    booking = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    before = ledger.list_bookings()
    assert ledger.cancel_booking("nonexistent-id") is False
    assert ledger.list_bookings() == before
    assert ledger.get_booking(booking.id).status == BookingStatus.CONFIRMED


def test_returned_bookings_are_copies(ledger):
    booking = ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "Alice")
    booking.status = BookingStatus.CANCELLED
    assert ledger.get_booking(booking.id).status == BookingStatus.CONFIRMED


def test_list_newest_first():
    ledger = BookingLedger(occupancy=never_occupied, clock=fake_clock())
    a = ledger.create_booking("s1", "r1", "2024-06-01", "09:00", "A")
    b = ledger.create_booking("s2", "r3", "2024-06-01", "09:00", "B")
    assert [x.id for x in ledger.list_bookings()] == [b.id, a.id]


def test_list_filters_by_user(ledger):
    mine = ledger.create_booking("s1", "r1", "2024-06-01", "09:00", "A", user_id="USER-001")
    ledger.create_booking("s1", "r1", "2024-06-01", "10:00", "B", user_id="USER-002")
    assert [b.id for b in ledger.list_bookings("USER-001")] == [mine.id]
    assert len(ledger.list_bookings()) == 2


def test_join_unknown_service_gives_none(ledger, catalog):
    ledger.create_booking("s-gone", "r1", "2024-06-01", "09:00", "A")
    details = ledger.list_booking_details(catalog.list_services(), catalog.resources_by_id)
    assert details[0].service is None
    assert details[0].resource.name == "Sarah Jenkins"


def test_join_resolves_records(ledger, catalog):
    ledger.create_booking("s3", "r4", "2024-06-01", "09:00", "A")
    detail = ledger.list_booking_details(catalog.list_services(), catalog.resources_by_id)[0]
    assert detail.service.name == "Tennis Court Rental"
    assert detail.resource.name == "Court A"


def test_seed_demo_booking(ledger):
    seeded = ledger.seed_demo_booking("2024-06-01", user_id="USER-001")
    assert seeded.id == "b_init_1"
    slots = {s.time: s.available for s in ledger.compute_available_slots("2024-06-01", "r1")}
    assert slots["14:00"] is False


@pytest.mark.parametrize("date", ["2024-6-1", "06/01/2024", "2024-02-30", "", "tomorrow"])
def test_malformed_dates_rejected(ledger, date):
    with pytest.raises(BookingValidationError):
        ledger.compute_available_slots(date, "r1")


@pytest.mark.parametrize("slot", ["9:00", "10:30", "25:00", "ten", "", "+9:00", " 9:00", "09:00 ", "０９:00", "9:0"])
def test_malformed_slots_rejected(slot):
    with pytest.raises(BookingValidationError):
        parse_slot(slot)


@pytest.mark.parametrize("slot", ["08:00", "17:00"])
def test_slots_outside_window_rejected(ledger, slot):
    with pytest.raises(BookingValidationError):
        ledger.create_booking("s1", "r1", "2024-06-01", slot, "Alice")


def test_custom_window():
    ledger = BookingLedger(occupancy=never_occupied, start_hour=8, end_hour=10)
    assert [s.time for s in ledger.compute_available_slots("2024-06-01", "r1")] == ["08:00", "09:00"]


def test_invalid_window():
    with pytest.raises(ValueError):
        BookingLedger(start_hour=17, end_hour=9)


def test_validate_date_returns_input():
    assert validate_date("2024-06-01") == "2024-06-01"
