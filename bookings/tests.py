import json
import threading
import uuid
from datetime import date, timedelta
from unittest import mock

from django.contrib.auth.models import User
from django.db import OperationalError, connection
from django.test import TestCase, TransactionTestCase, override_settings
from django.utils import timezone

from accounts.models import Customer
from events.models import EventBlock
from events.services import create_event_block
from grounds.exceptions import CapabilityDisabled, Conflict, InvalidRange, NotFound, Validation
from grounds.http import run_command
from grounds.models import Ground, Venue
from programs.models import Academy, Membership
from programs.registry import register_recurring_program

from .availability import available_slots, get_availability
from .claims import SOURCES
from .models import ActivityLog, Reservation, ReservationSlot, SlotBooking
from .reservations import (
    add_reservation_slot,
    cancel_reservation,
    cancel_reservation_slot,
    complete_reservation_slot,
    create_reservation,
    edit_reservation_slot,
    list_reservations,
    mutate_reservation_slot,
    remove_reservations,
    reservation_detail,
)
from .services import create_booking, customer_bookings, list_bookings, update_booking

WEDNESDAY = date(2024, 5, 1)
SATURDAY = date(2024, 5, 4)
MONDAY = date(2024, 5, 6)
TUESDAY = date(2024, 5, 7)


def availability_map(ground, day):
    return {row['slot_id']: row['available'] for row in available_slots(ground.pk, day)}


class GroundFixtureMixin:
    def setUp(self):
        self.venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(
            name='Arena 1',
            venue=self.venue,
            allows_academy=True,
            allows_membership=True,
        )
        self.other_ground = Ground.objects.create(name='Arena 2', venue=self.venue)
        self.s1, self.s2, self.s3 = self.ground.slot_times.order_by('start_time')[:3]
        self.customer = Customer.objects.create(first_name='Asha', last_name='Rao', mobile='9000000001')

    def book(self, day, *slots):
        return create_booking(self.ground.pk, day, [s.pk for s in slots], self.customer.pk)

    def reserve(self, day, *slots):
        return create_reservation(
            self.ground.pk,
            [{'date': day, 'slots': [s.pk for s in slots]}],
            {'mobile': '9000000002', 'first_name': 'Ravi'},
            total_amount=1000,
        )

    def academy(self, days, *slots):
        academy = Academy.objects.create(name='Juniors', ground=self.ground, active_days=days)
        academy.morning_slots.set(slots)
        return academy

    def membership(self, *slots):
        membership = Membership.objects.create(name='Regulars', ground=self.ground)
        membership.evening_slots.set(slots)
        return membership


@override_settings(BOOKING_HORIZON_DAYS=None, EVENT_OVERLAP_MODE='interval')
class AvailabilityTests(GroundFixtureMixin, TestCase):

    def test_fresh_ground_is_fully_available(self):
        rows = get_availability(self.ground.pk, WEDNESDAY)

        self.assertEqual(len(rows), 16)
        self.assertTrue(all(row['available'] for row in rows))
        self.assertEqual(rows[0]['label'], '06:00 AM - 07:00 AM')
        self.assertEqual(rows[0]['price'], 800)
        self.assertEqual(rows[0]['price_row']['sun'], 1300)

    def test_read_is_idempotent(self):
        self.book(WEDNESDAY, self.s1)

        self.assertEqual(available_slots(self.ground.pk, WEDNESDAY), available_slots(self.ground.pk, WEDNESDAY))

    def test_booked_and_completed_bookings_hold_slots(self):
        booking = self.book(WEDNESDAY, self.s1)
        self.assertFalse(availability_map(self.ground, WEDNESDAY)[self.s1.pk])
        self.assertTrue(availability_map(self.ground, date(2024, 5, 2))[self.s1.pk])

        update_booking(booking.pk, status=SlotBooking.COMPLETED)
        self.assertFalse(availability_map(self.ground, WEDNESDAY)[self.s1.pk])

    def test_cancelled_booking_releases_slot(self):
        booking = self.book(WEDNESDAY, self.s1)

        update_booking(booking.pk, status=SlotBooking.CANCELLED)

        self.assertTrue(availability_map(self.ground, WEDNESDAY)[self.s1.pk])

    def test_only_booked_reservation_dates_hold_slots(self):
        reservation = self.reserve(WEDNESDAY, self.s2)
        child = reservation.slot_dates.get()
        self.assertFalse(availability_map(self.ground, WEDNESDAY)[self.s2.pk])

        complete_reservation_slot(child.pk)
        self.assertTrue(availability_map(self.ground, WEDNESDAY)[self.s2.pk])

    def test_academy_holds_slots_on_its_weekdays_only(self):
        self.academy(['mon', 'wed'], self.s1)
        week = [date(2024, 5, 5) + timedelta(days=n) for n in range(7)]

        for day in week:
            held = day.weekday() in (0, 2)
            self.assertEqual(availability_map(self.ground, day)[self.s1.pk], not held, day)

    def test_membership_holds_slots_every_day(self):
        self.membership(self.s3)

        for n in range(7):
            self.assertFalse(availability_map(self.ground, MONDAY + timedelta(days=n))[self.s3.pk])

    def test_inactive_programs_hold_nothing(self):
        academy = self.academy(['mon'], self.s1)
        membership = self.membership(self.s2)
        academy.set_status(Academy.INACTIVE)
        membership.set_status(Membership.INACTIVE)

        available = availability_map(self.ground, MONDAY)
        self.assertTrue(available[self.s1.pk])
        self.assertTrue(available[self.s2.pk])

    def test_event_range_is_inclusive(self):
        create_event_block([self.ground.pk], [self.s1.pk], '2024-06-01', '2024-06-03', 'Cup')

        self.assertTrue(availability_map(self.ground, date(2024, 5, 31))[self.s1.pk])
        self.assertFalse(availability_map(self.ground, date(2024, 6, 1))[self.s1.pk])
        self.assertFalse(availability_map(self.ground, date(2024, 6, 3))[self.s1.pk])
        self.assertTrue(availability_map(self.ground, date(2024, 6, 4))[self.s1.pk])
        # only the listed slots show as taken
        self.assertTrue(availability_map(self.ground, date(2024, 6, 2))[self.s2.pk])

    def test_claims_on_other_grounds_are_ignored(self):
        other_slot = self.other_ground.slot_times.first()
        create_booking(self.other_ground.pk, WEDNESDAY, [other_slot.pk], self.customer.pk)

        self.assertTrue(all(availability_map(self.ground, WEDNESDAY).values()))

    def test_inactive_catalog_entries_are_not_listed(self):
        self.s1.is_active = False
        self.s1.save()

        self.assertNotIn(self.s1.pk, availability_map(self.ground, WEDNESDAY))

    def test_missing_or_disabled_ground(self):
        with self.assertRaises(NotFound):
            available_slots(9999, WEDNESDAY)

        self.ground.is_active = False
        self.ground.save()
        with self.assertRaises(NotFound):
            available_slots(self.ground.pk, WEDNESDAY)


@override_settings(BOOKING_HORIZON_DAYS=None, EVENT_OVERLAP_MODE='interval')
class CreateBookingTests(GroundFixtureMixin, TestCase):

    def test_booking_is_priced_by_weekday(self):
        booking = self.book(WEDNESDAY, self.s1)

        self.assertEqual(booking.status, SlotBooking.BOOKED)
        self.assertEqual(booking.total_amount, 800)
        self.assertEqual(booking.slot_ids(), {self.s1.pk})

        weekend = self.book(SATURDAY, self.s1, self.s2)
        self.assertEqual(weekend.total_amount, 2400)

    def test_second_identical_booking_conflicts(self):
        self.book(WEDNESDAY, self.s1)

        with self.assertRaises(Conflict) as ctx:
            self.book(WEDNESDAY, self.s1)
        self.assertEqual(ctx.exception.claim_kind, 'booking')
        self.assertEqual(SlotBooking.objects.count(), 1)

    def test_partial_overlap_conflicts(self):
        self.book(WEDNESDAY, self.s1)

        with self.assertRaises(Conflict):
            self.book(WEDNESDAY, self.s2, self.s1)

    def test_event_blocks_the_whole_ground(self):
        create_event_block([self.ground.pk], [self.s1.pk], '2024-06-01', '2024-06-03', 'Cup')

        with self.assertRaises(Conflict) as ctx:
            self.book(date(2024, 6, 2), self.s1)
        self.assertEqual(ctx.exception.claim_kind, 'event')
        with self.assertRaises(Conflict):
            self.book(date(2024, 6, 2), self.s3)

        booking = self.book(date(2024, 6, 4), self.s1)
        self.assertEqual(booking.status, SlotBooking.BOOKED)

    def test_inactive_event_does_not_block(self):
        event = create_event_block([self.ground.pk], [self.s1.pk], '2024-06-01', '2024-06-03', 'Cup')
        event.set_status(EventBlock.INACTIVE)

        self.assertEqual(self.book(date(2024, 6, 2), self.s1).total_amount, 800)

    def test_academy_and_membership_conflicts(self):
        self.academy(['mon'], self.s1)
        self.membership(self.s2)

        with self.assertRaises(Conflict) as ctx:
            self.book(MONDAY, self.s1)
        self.assertEqual(ctx.exception.claim_kind, 'academy')

        self.book(TUESDAY, self.s1)

        with self.assertRaises(Conflict) as ctx:
            self.book(TUESDAY, self.s2)
        self.assertEqual(ctx.exception.claim_kind, 'membership')

    def test_reservation_conflicts(self):
        self.reserve(WEDNESDAY, self.s1)

        with self.assertRaises(Conflict) as ctx:
            self.book(WEDNESDAY, self.s1)
        self.assertEqual(ctx.exception.claim_kind, 'reservation')

    def test_ground_and_customer_checks(self):
        with self.assertRaises(NotFound):
            create_booking(9999, WEDNESDAY, [self.s1.pk], self.customer.pk)
        with self.assertRaises(CapabilityDisabled):
            self.ground.allows_slot_booking = False
            self.ground.save()
            self.book(WEDNESDAY, self.s1)

    def test_inactive_customer_is_rejected(self):
        self.customer.is_active = False
        self.customer.save()

        with self.assertRaises(NotFound):
            self.book(WEDNESDAY, self.s1)

    def test_slot_checks(self):
        other_slot = self.other_ground.slot_times.first()

        with self.assertRaises(Validation):
            create_booking(self.ground.pk, WEDNESDAY, [], self.customer.pk)
        with self.assertRaises(Validation):
            create_booking(self.ground.pk, WEDNESDAY, [other_slot.pk], self.customer.pk)
        with self.assertRaises(Validation):
            create_booking(self.ground.pk, WEDNESDAY, [self.s1.pk], self.customer.pk, source='PHONE')

    @override_settings(BOOKING_HORIZON_DAYS=7)
    def test_booking_horizon(self):
        today = timezone.localdate()

        self.book(today + timedelta(days=7), self.s1)
        with self.assertRaises(InvalidRange):
            self.book(today + timedelta(days=8), self.s1)
        with self.assertRaises(InvalidRange):
            self.book(today - timedelta(days=1), self.s1)

    def test_creation_is_logged(self):
        booking = self.book(WEDNESDAY, self.s1)

        log = ActivityLog.objects.get(claim_id=str(booking.pk))
        self.assertEqual(log.action, ActivityLog.CREATED)
        self.assertEqual(log.claim_kind, 'booking')
        self.assertEqual(log.meta['amount'], 800)


@override_settings(BOOKING_HORIZON_DAYS=None)
class UpdateBookingTests(GroundFixtureMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.booking = self.book(WEDNESDAY, self.s1)

    def test_cancel_is_terminal(self):
        booking = update_booking(self.booking.pk, status=SlotBooking.CANCELLED)

        self.assertEqual(booking.status, SlotBooking.CANCELLED)
        self.assertIsNotNone(booking.cancelled_at)
        with self.assertRaises(Validation):
            update_booking(self.booking.pk, date=TUESDAY)
        with self.assertRaises(Validation):
            update_booking(self.booking.pk, status=SlotBooking.COMPLETED)

    def test_complete_is_terminal_and_keeps_slot(self):
        booking = update_booking(self.booking.pk, status=SlotBooking.COMPLETED)

        self.assertIsNotNone(booking.completed_at)
        with self.assertRaises(Conflict):
            self.book(WEDNESDAY, self.s1)
        with self.assertRaises(Validation):
            update_booking(self.booking.pk, status=SlotBooking.CANCELLED)

    def test_extending_a_booking_ignores_its_own_claim(self):
        booking = update_booking(self.booking.pk, slot_ids=[self.s1.pk, self.s2.pk])

        self.assertEqual(booking.slot_ids(), {self.s1.pk, self.s2.pk})
        self.assertEqual(booking.total_amount, 1600)

    def test_moving_reprices(self):
        booking = update_booking(self.booking.pk, date=SATURDAY)

        self.assertEqual(booking.date, SATURDAY)
        self.assertEqual(booking.total_amount, 1200)
        self.assertTrue(availability_map(self.ground, WEDNESDAY)[self.s1.pk])

    def test_moving_into_a_conflict_changes_nothing(self):
        self.book(SATURDAY, self.s1)

        with self.assertRaises(Conflict):
            update_booking(self.booking.pk, date=SATURDAY)

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.date, WEDNESDAY)

    def test_unknown_booking_or_status(self):
        with self.assertRaises(NotFound):
            update_booking(uuid.uuid4(), status=SlotBooking.CANCELLED)
        with self.assertRaises(NotFound):
            update_booking('not-a-uuid', status=SlotBooking.CANCELLED)
        with self.assertRaises(Validation):
            update_booking(self.booking.pk, status='LOST')


@override_settings(BOOKING_HORIZON_DAYS=None)
class ReservationTests(GroundFixtureMixin, TestCase):

    def test_batch_creates_header_and_children(self):
        reservation = create_reservation(
            self.ground.pk,
            [
                {'date': '2024-05-01', 'slots': [self.s1.pk, self.s2.pk]},
                {'date': '2024-05-02', 'slots': [self.s1.pk]},
            ],
            {'mobile': '98765 43210', 'first_name': 'Meera'},
            total_amount=2400,
            discount=200,
            payment_mode='cash',
        )

        self.assertEqual(reservation.slot_dates.count(), 2)
        self.assertEqual(reservation.customer.mobile, '9876543210')
        self.assertEqual(reservation.discount, 200)
        self.assertFalse(availability_map(self.ground, date(2024, 5, 2))[self.s1.pk])

    def test_existing_customer_is_reused_and_renamed(self):
        create_reservation(
            self.ground.pk,
            [(WEDNESDAY, [self.s1.pk])],
            {'mobile': self.customer.mobile, 'first_name': 'Asha', 'last_name': 'Kulkarni'},
        )

        self.assertEqual(Customer.objects.filter(mobile=self.customer.mobile).count(), 1)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.last_name, 'Kulkarni')

    def test_conflict_with_stored_claim_persists_nothing(self):
        self.book(date(2024, 5, 2), self.s1)

        with self.assertRaises(Conflict):
            create_reservation(
                self.ground.pk,
                [(WEDNESDAY, [self.s1.pk]), (date(2024, 5, 2), [self.s1.pk])],
                {'mobile': '9000000003', 'first_name': 'Kiran'},
            )

        self.assertEqual(Reservation.objects.count(), 0)
        self.assertEqual(ReservationSlot.objects.count(), 0)

    def test_duplicate_within_batch_is_rejected(self):
        with self.assertRaises(Conflict) as ctx:
            create_reservation(
                self.ground.pk,
                [(WEDNESDAY, [self.s1.pk, self.s2.pk]), (WEDNESDAY, [self.s2.pk])],
                {'mobile': '9000000003', 'first_name': 'Kiran'},
            )

        self.assertEqual(ctx.exception.claim_kind, 'reservation')
        self.assertEqual(Reservation.objects.count(), 0)

    def test_same_slot_on_different_dates_is_fine(self):
        reservation = create_reservation(
            self.ground.pk,
            [(WEDNESDAY, [self.s1.pk]), (date(2024, 5, 2), [self.s1.pk])],
            {'mobile': '9000000003', 'first_name': 'Kiran'},
        )

        self.assertEqual(reservation.slot_dates.count(), 2)

    def test_customer_and_amount_validation(self):
        with self.assertRaises(Validation):
            create_reservation(self.ground.pk, [(WEDNESDAY, [self.s1.pk])], {'first_name': 'Kiran'})
        with self.assertRaises(Validation):
            create_reservation(self.ground.pk, [(WEDNESDAY, [self.s1.pk])], {'mobile': '9000000003'})
        with self.assertRaises(Validation):
            create_reservation(
                self.ground.pk, [(WEDNESDAY, [self.s1.pk])],
                {'mobile': '9000000003', 'first_name': 'Kiran'}, total_amount=-5,
            )
        with self.assertRaises(Validation):
            create_reservation(self.ground.pk, [], {'mobile': '9000000003', 'first_name': 'Kiran'})

    def test_add_slot_checks_siblings_already_stored(self):
        reservation = self.reserve(WEDNESDAY, self.s1)

        with self.assertRaises(Conflict):
            add_reservation_slot(reservation.pk, WEDNESDAY, [self.s1.pk])

        child = add_reservation_slot(reservation.pk, '2024-05-02', [self.s1.pk])
        self.assertEqual(child.reservation_id, reservation.pk)
        self.assertEqual(reservation.slot_dates.count(), 2)

    def test_edit_slot_ignores_itself(self):
        child = self.reserve(WEDNESDAY, self.s1).slot_dates.get()

        edited = edit_reservation_slot(child.pk, slot_ids=[self.s1.pk, self.s2.pk])
        self.assertEqual(edited.slot_ids(), {self.s1.pk, self.s2.pk})

        moved = edit_reservation_slot(child.pk, date=TUESDAY)
        self.assertEqual(moved.date, TUESDAY)
        self.assertTrue(availability_map(self.ground, WEDNESDAY)[self.s1.pk])

    def test_edit_into_booking_conflicts(self):
        child = self.reserve(WEDNESDAY, self.s1).slot_dates.get()
        self.book(TUESDAY, self.s1)

        with self.assertRaises(Conflict):
            edit_reservation_slot(child.pk, date=TUESDAY)

    def test_terminal_children_cannot_change(self):
        child = self.reserve(WEDNESDAY, self.s1).slot_dates.get()
        cancel_reservation_slot(child.pk)

        with self.assertRaises(Validation):
            edit_reservation_slot(child.pk, date=TUESDAY)
        with self.assertRaises(Validation):
            complete_reservation_slot(child.pk)
        with self.assertRaises(Validation):
            cancel_reservation_slot(child.pk)

    def test_cancel_reservation_cascades_to_booked_children(self):
        reservation = create_reservation(
            self.ground.pk,
            [(WEDNESDAY, [self.s1.pk]), (date(2024, 5, 2), [self.s1.pk])],
            {'mobile': '9000000003', 'first_name': 'Kiran'},
        )
        first, second = reservation.slot_dates.order_by('date')
        complete_reservation_slot(first.pk)

        cancel_reservation(reservation.pk)

        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, ReservationSlot.COMPLETED)
        self.assertEqual(second.status, ReservationSlot.CANCELLED)
        self.assertTrue(availability_map(self.ground, date(2024, 5, 2))[self.s1.pk])

    def test_mutate_dispatches_actions(self):
        child = self.reserve(WEDNESDAY, self.s1).slot_dates.get()

        moved = mutate_reservation_slot(child.pk, 'edit', date=TUESDAY)
        self.assertEqual(moved.date, TUESDAY)

        done = mutate_reservation_slot(child.pk, 'complete')
        self.assertEqual(done.status, ReservationSlot.COMPLETED)

        with self.assertRaises(Validation):
            mutate_reservation_slot(child.pk, 'archive')

    def test_remove_deletes_regardless_of_status(self):
        reservation = self.reserve(WEDNESDAY, self.s1)
        cancel_reservation(reservation.pk)

        self.assertEqual(remove_reservations([reservation.pk]), 1)
        self.assertFalse(Reservation.objects.exists())
        self.assertFalse(ReservationSlot.objects.exists())

        with self.assertRaises(NotFound):
            remove_reservations([reservation.pk])
        with self.assertRaises(Validation):
            remove_reservations([])


@override_settings(BOOKING_HORIZON_DAYS=None, EVENT_OVERLAP_MODE='interval', RECURRING_OVERLAP_SCOPE='global')
class NoDoubleClaimTests(GroundFixtureMixin, TestCase):

    def holders(self, slot, day):
        count = 0
        for source in SOURCES:
            for claim in source.live_claims(ground_ids=[self.ground.pk]):
                if slot.pk in claim.covers(self.ground.pk, day):
                    count += 1
        return count

    def attempt(self, func, *args, **kwargs):
        try:
            func(*args, **kwargs)
        except Conflict:
            pass

    def test_mixed_operations_never_double_claim(self):
        monday = timezone.localdate() + timedelta(days=(7 - timezone.localdate().weekday()) or 7)
        days = [monday + timedelta(days=n) for n in range(7)]

        self.attempt(self.book, days[0], self.s1)
        self.attempt(self.book, days[0], self.s1, self.s2)
        self.attempt(self.reserve, days[1], self.s1)
        self.attempt(self.reserve, days[0], self.s2)
        self.attempt(register_recurring_program, 'academy', self.ground.pk, [self.s1.pk], [], 'Juniors', active_days=['mon'])
        self.attempt(register_recurring_program, 'academy', self.ground.pk, [self.s3.pk], [], 'Seniors', active_days=['sat'])
        self.attempt(register_recurring_program, 'membership', self.ground.pk, [], [self.s3.pk], 'Regulars')
        self.attempt(create_event_block, [self.ground.pk], [self.s2.pk], days[2], days[4], 'Cup')
        self.attempt(self.book, days[3], self.s2)
        self.attempt(self.book, days[5], self.s3)

        for day in days:
            for slot in (self.s1, self.s2, self.s3):
                self.assertLessEqual(self.holders(slot, day), 1, (slot.label, day))


@override_settings(BOOKING_HORIZON_DAYS=None)
class BookingViewTests(GroundFixtureMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.staff = User.objects.create_user(username='staff', password='password123')

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def test_availability_endpoint(self):
        response = self.client.get('/api/availability/', {'ground': self.ground.pk, 'date': '2024-05-01'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(len(data['slots']), 16)

    def test_availability_requires_ground_and_date(self):
        response = self.client.get('/api/availability/', {'ground': self.ground.pk})

        self.assertEqual(response.status_code, 400)
        self.assertIn('date', response.json()['errors'])

    def test_booking_requires_login(self):
        response = self.post_json('/api/bookings/', {})

        self.assertEqual(response.status_code, 302)

    def test_create_and_cancel_booking(self):
        self.client.force_login(self.staff)
        payload = {
            'ground': self.ground.pk,
            'date': '2024-05-01',
            'slots': [self.s1.pk],
            'customer': self.customer.pk,
            'source': 'MANUAL',
        }

        response = self.post_json('/api/bookings/', payload)
        self.assertEqual(response.status_code, 201)
        booking = response.json()['booking']
        self.assertEqual(booking['total_amount'], 800)
        self.assertEqual(booking['booking_source'], 'MANUAL')

        response = self.post_json('/api/bookings/', payload)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'conflict')
        self.assertEqual(response.json()['claim_kind'], 'booking')

        response = self.post_json(f"/api/bookings/{booking['id']}/", {'status': 'CANCELLED'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['booking']['status'], 'CANCELLED')

    def test_malformed_body(self):
        self.client.force_login(self.staff)

        response = self.client.post('/api/bookings/', data='not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)

        response = self.post_json('/api/bookings/', {'ground': self.ground.pk, 'date': 'soon', 'customer': 1})
        self.assertEqual(response.status_code, 400)

    def test_reservation_endpoints(self):
        self.client.force_login(self.staff)

        response = self.post_json('/api/reservations/', {
            'ground': self.ground.pk,
            'slot_dates': [{'date': '2024-05-01', 'slots': [self.s1.pk]}],
            'customer': {'mobile': '9000000009', 'first_name': 'Nisha'},
            'total_amount': 800,
        })
        self.assertEqual(response.status_code, 201)
        reservation = response.json()['reservation']
        child_id = reservation['slot_dates'][0]['id']

        response = self.post_json(f"/api/reservations/{reservation['id']}/slots/", {
            'date': '2024-05-02',
            'slots': [self.s1.pk],
        })
        self.assertEqual(response.status_code, 201)

        response = self.post_json(f'/api/reservation-slots/{child_id}/', {'action': 'edit', 'date': '2024-05-07'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['slot_date']['date'], '2024-05-07')

        response = self.post_json(f"/api/reservations/{reservation['id']}/cancel/", {})
        self.assertEqual(response.status_code, 200)
        statuses = {c['status'] for c in response.json()['reservation']['slot_dates']}
        self.assertEqual(statuses, {'CANCELLED'})

        response = self.post_json('/api/reservations/remove/', {'reservations': [reservation['id']]})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['removed'], 1)

    def test_reservation_endpoint_rejects_bad_slot_dates(self):
        self.client.force_login(self.staff)

        response = self.post_json('/api/reservations/', {
            'ground': self.ground.pk,
            'slot_dates': {'date': '2024-05-01'},
            'customer': {'mobile': '9000000009', 'first_name': 'Nisha'},
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('slot_dates', response.json()['errors'])


@override_settings(BOOKING_HORIZON_DAYS=None)
class ClaimListingTests(GroundFixtureMixin, TestCase):

    def ids(self, claims):
        return {claim.pk for claim in claims}

    def test_list_bookings_filters(self):
        first = self.book(WEDNESDAY, self.s1)
        second = self.book(SATURDAY, self.s2)
        other = Customer.objects.create(first_name='Ravi', mobile='9000000003')
        third = create_booking(self.ground.pk, SATURDAY, [self.s3.pk], other.pk)
        update_booking(second.pk, status=SlotBooking.CANCELLED)

        self.assertEqual(self.ids(list_bookings()), {first.pk, second.pk, third.pk})
        self.assertEqual(self.ids(list_bookings(date=SATURDAY)), {second.pk, third.pk})
        self.assertEqual(self.ids(list_bookings(customer_id=self.customer.pk)), {first.pk, second.pk})
        self.assertEqual(self.ids(list_bookings(status=SlotBooking.CANCELLED)), {second.pk})
        self.assertEqual(self.ids(list_bookings(booking_id=first.pk)), {first.pk})
        self.assertEqual(list_bookings(ground_ids=[self.other_ground.pk]), [])
        self.assertEqual(len(list_bookings(ground_ids=[self.ground.pk, self.other_ground.pk])), 3)

    def test_list_bookings_rejects_bad_filters(self):
        with self.assertRaises(Validation):
            list_bookings(status='LOST')
        with self.assertRaises(Validation):
            list_bookings(booking_id='not-a-uuid')
        with self.assertRaises(Validation):
            list_bookings(ground_ids=['north'])

    def test_customer_bookings(self):
        booking = self.book(WEDNESDAY, self.s1)

        self.assertEqual(self.ids(customer_bookings(self.customer.pk)), {booking.pk})
        self.assertEqual(customer_bookings(self.customer.pk, status=SlotBooking.COMPLETED), [])
        with self.assertRaises(NotFound):
            customer_bookings(9999)

    def test_list_reservations_and_detail(self):
        reservation = self.reserve(WEDNESDAY, self.s1)
        add_reservation_slot(reservation.pk, SATURDAY, [self.s2.pk])
        cancel_reservation_slot(reservation.slot_dates.get(date=WEDNESDAY).pk)
        later = create_reservation(
            self.ground.pk,
            [{'date': MONDAY, 'slots': [self.s3.pk]}],
            {'mobile': '9000000004', 'first_name': 'Nisha'},
        )

        self.assertEqual(self.ids(list_reservations(date=SATURDAY)), {reservation.pk})
        self.assertEqual(self.ids(list_reservations(status=ReservationSlot.CANCELLED)), {reservation.pk})
        self.assertEqual(self.ids(list_reservations(status=ReservationSlot.BOOKED)), {reservation.pk, later.pk})
        self.assertEqual(self.ids(list_reservations(customer_id=later.customer_id)), {later.pk})
        self.assertEqual(list_reservations(ground_ids=[self.other_ground.pk]), [])

        detail = reservation_detail(reservation.pk)
        self.assertEqual([c.date for c in detail.slot_dates.all()], [WEDNESDAY, SATURDAY])

        with self.assertRaises(NotFound):
            reservation_detail(9999)
        with self.assertRaises(Validation):
            list_reservations(status='LOST')


@override_settings(BOOKING_HORIZON_DAYS=None)
class SlotIdInputTests(GroundFixtureMixin, TestCase):

    def test_non_numeric_slot_ids_are_validation_errors(self):
        with self.assertRaises(Validation):
            create_booking(self.ground.pk, WEDNESDAY, ['a'], self.customer.pk)

        with self.assertRaises(Validation) as ctx:
            create_reservation(
                self.ground.pk,
                [{'date': WEDNESDAY, 'slots': ['a']}],
                {'mobile': '9000000002', 'first_name': 'Ravi'},
            )
        self.assertEqual(ctx.exception.field, 'slot_dates')
        self.assertFalse(Reservation.objects.exists())

    def test_malformed_reservation_entry(self):
        with self.assertRaises(Validation):
            create_reservation(self.ground.pk, [(WEDNESDAY,)], {'mobile': '9000000002', 'first_name': 'Ravi'})
        with self.assertRaises(Validation):
            remove_reservations(['first'])

    def test_numeric_strings_are_accepted(self):
        booking = create_booking(self.ground.pk, WEDNESDAY, [str(self.s1.pk)], self.customer.pk)

        self.assertEqual(booking.slot_ids(), {self.s1.pk})


@override_settings(BOOKING_HORIZON_DAYS=None)
class ListingViewTests(GroundFixtureMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.staff = User.objects.create_user(username='staff', password='password123')

    def test_listing_requires_login(self):
        response = self.client.get('/api/bookings/list/')

        self.assertEqual(response.status_code, 302)

    def test_list_bookings_endpoint(self):
        self.client.force_login(self.staff)
        booking = self.book(WEDNESDAY, self.s1)
        self.book(SATURDAY, self.s1)

        response = self.client.get('/api/bookings/list/', {'date': '2024-05-01', 'grounds': str(self.ground.pk)})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([b['id'] for b in response.json()['bookings']], [str(booking.pk)])

        response = self.client.get('/api/bookings/list/', {'status': 'LOST'})
        self.assertEqual(response.status_code, 400)

        response = self.client.get(f'/api/customers/{self.customer.pk}/bookings/')
        self.assertEqual(len(response.json()['bookings']), 2)

        response = self.client.get('/api/customers/9999/bookings/')
        self.assertEqual(response.status_code, 404)

    def test_reservation_listing_endpoints(self):
        self.client.force_login(self.staff)
        reservation = self.reserve(WEDNESDAY, self.s1)

        response = self.client.get('/api/reservations/list/', {'status': 'BOOKED'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r['id'] for r in response.json()['reservations']], [reservation.pk])

        response = self.client.get(f'/api/reservations/{reservation.pk}/')
        self.assertEqual(response.json()['reservation']['slot_dates'][0]['slots'], [self.s1.pk])

        response = self.client.get('/api/reservations/9999/')
        self.assertEqual(response.status_code, 404)


@override_settings(BOOKING_HORIZON_DAYS=None, EVENT_OVERLAP_MODE='interval')
class ConcurrentBookingTests(GroundFixtureMixin, TransactionTestCase):
    workers = 4

    def race(self, func):
        barrier = threading.Barrier(self.workers, timeout=10)
        outcomes = []

        def worker():
            try:
                barrier.wait()
                outcomes.append(func())
            except Exception as exc:
                outcomes.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(self.workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes

    def booked_rows(self):
        return SlotBooking.objects.filter(
            ground=self.ground, date=WEDNESDAY, slots=self.s1, status=SlotBooking.BOOKED,
        ).count()

    def test_racing_bookings_never_share_a_slot(self):
        outcomes = self.race(lambda: self.book(WEDNESDAY, self.s1))

        landed = [o for o in outcomes if isinstance(o, SlotBooking)]
        self.assertLessEqual(len(landed), 1)
        self.assertEqual(self.booked_rows(), len(landed))
        for outcome in outcomes:
            if not isinstance(outcome, SlotBooking):
                self.assertIsInstance(outcome, (Conflict, OperationalError))

    @mock.patch('grounds.http.RETRY_ATTEMPTS', 10)
    def test_racing_requests_settle_as_one_booking_and_conflicts(self):
        outcomes = self.race(
            lambda: run_command(create_booking, self.ground.pk, WEDNESDAY, [self.s1.pk], self.customer.pk)
        )

        booked = [result for result, error in outcomes if error is None]
        statuses = [error.status_code for result, error in outcomes if error is not None]
        self.assertEqual(len(booked), 1)
        self.assertEqual(statuses, [409] * (self.workers - 1))
        self.assertEqual(self.booked_rows(), 1)
