import json
from datetime import date, time

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.utils import timezone

from accounts.models import Customer
from bookings.services import create_booking
from grounds.exceptions import Conflict, InvalidRange, NotFound, Validation
from grounds.models import Ground, Venue
from programs.models import Academy

from .models import EventBlock
from .services import (
    create_event_block,
    deactivate_event_block,
    event_availability,
    list_events,
    reactivate_event_block,
    update_event_block,
)


@override_settings(EVENT_OVERLAP_MODE='interval', BOOKING_HORIZON_DAYS=None)
class EventBlockTests(TestCase):
    def setUp(self):
        self.venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(name='Arena 1', venue=self.venue)
        self.other = Ground.objects.create(name='Arena 2', venue=self.venue)
        self.s1, self.s2 = self.ground.slot_times.order_by('start_time')[:2]
        self.o1 = self.other.slot_times.order_by('start_time').first()
        self.customer = Customer.objects.create(first_name='Asha', mobile='9000000001')

    def cup(self, start='2024-06-01', end='2024-06-03', slots=None, grounds=None, name='Cup'):
        return create_event_block(
            [g.pk for g in (grounds or [self.ground])],
            [s.pk for s in (slots or [self.s1])],
            start,
            end,
            name,
        )

    def test_range_is_normalized_to_whole_days(self):
        event = self.cup()

        start = timezone.localtime(event.start_date)
        end = timezone.localtime(event.end_date)
        self.assertEqual((start.date(), start.time()), (date(2024, 6, 1), time(0, 0)))
        self.assertEqual((end.date(), end.time()), (date(2024, 6, 3), time(23, 59, 59, 999000)))
        self.assertTrue(event.is_active)

    def test_single_day_event(self):
        event = self.cup(start='2024-06-01', end='2024-06-01')

        self.assertEqual(event.first_day, event.last_day)

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(InvalidRange):
            self.cup(start='2024-06-03', end='2024-06-01')

    def test_ground_and_slot_checks(self):
        with self.assertRaises(Validation):
            create_event_block([], [self.s1.pk], '2024-06-01', '2024-06-03', 'Cup')
        with self.assertRaises(NotFound):
            create_event_block([9999], [self.s1.pk], '2024-06-01', '2024-06-03', 'Cup')
        with self.assertRaises(Validation):
            self.cup(slots=[self.o1])
        with self.assertRaises(Validation):
            self.cup(name='')

    def test_multi_ground_event(self):
        event = self.cup(grounds=[self.ground, self.other], slots=[self.s1, self.o1])

        self.assertEqual(event.ground_ids(), {self.ground.pk, self.other.pk})
        self.assertTrue(event.blocks_ground_on(self.other.pk, date(2024, 6, 2)))
        self.assertFalse(event.blocks_ground_on(self.other.pk, date(2024, 6, 4)))

    def test_overlapping_event_on_shared_slot_conflicts(self):
        self.cup()

        with self.assertRaises(Conflict) as ctx:
            self.cup(start='2024-06-03', end='2024-06-05', name='League')
        self.assertEqual(ctx.exception.claim_kind, 'event')

        self.cup(start='2024-06-04', end='2024-06-05', name='League')
        self.cup(start='2024-06-02', end='2024-06-02', slots=[self.s2], name='Clinic')

    @override_settings(EVENT_OVERLAP_MODE='exact')
    def test_exact_mode_only_rejects_identical_events(self):
        self.cup()

        with self.assertRaises(Conflict):
            self.cup(name='Cup again')

        league = self.cup(start='2024-06-02', end='2024-06-05', name='League')
        self.assertTrue(league.is_active)

    @override_settings(EVENT_OVERLAP_MODE='sometimes')
    def test_unknown_mode_is_a_configuration_error(self):
        from django.core.exceptions import ImproperlyConfigured

        with self.assertRaises(ImproperlyConfigured):
            self.cup()

    def test_existing_booking_in_range_conflicts(self):
        create_booking(self.ground.pk, date(2024, 6, 2), [self.s1.pk], self.customer.pk)

        with self.assertRaises(Conflict) as ctx:
            self.cup()
        self.assertEqual(ctx.exception.claim_kind, 'booking')

        self.assertTrue(self.cup(slots=[self.s2]).is_active)

    def test_academy_on_a_covered_weekday_conflicts(self):
        academy = Academy.objects.create(name='Juniors', ground=self.ground, active_days=['sun'])
        academy.morning_slots.add(self.s1)

        # 2024-06-01 is a Saturday, 2024-06-02 a Sunday
        self.assertTrue(self.cup(start='2024-06-01', end='2024-06-01').is_active)
        with self.assertRaises(Conflict):
            self.cup(start='2024-06-01', end='2024-06-02', name='Weekend')

    def test_update_ignores_itself(self):
        event = self.cup()

        event = update_event_block(event.pk, end_date='2024-06-04', slot_ids=[self.s1.pk, self.s2.pk])

        self.assertEqual(event.last_day, date(2024, 6, 4))
        self.assertEqual(event.slot_ids(), {self.s1.pk, self.s2.pk})

    def test_update_into_conflict_changes_nothing(self):
        event = self.cup()
        create_booking(self.ground.pk, date(2024, 6, 5), [self.s1.pk], self.customer.pk)

        with self.assertRaises(Conflict):
            update_event_block(event.pk, end_date='2024-06-05')
        with self.assertRaises(InvalidRange):
            update_event_block(event.pk, end_date='2024-05-01')

        event.refresh_from_db()
        self.assertEqual(event.last_day, date(2024, 6, 3))

    def test_deactivate_and_reactivate(self):
        event = self.cup()

        event = deactivate_event_block(event.pk)
        self.assertEqual(event.status, EventBlock.INACTIVE)
        self.assertIsNotNone(event.status_changed_at)
        with self.assertRaises(Validation):
            deactivate_event_block(event.pk)

        booking = create_booking(self.ground.pk, date(2024, 6, 2), [self.s1.pk], self.customer.pk)
        with self.assertRaises(Conflict):
            reactivate_event_block(event.pk)

        booking.cancel()
        self.assertTrue(reactivate_event_block(event.pk).is_active)

    def test_missing_event(self):
        with self.assertRaises(NotFound):
            deactivate_event_block(9999)

    def test_event_availability(self):
        self.cup()
        self.cup(start='2024-07-01', end='2024-07-01', slots=[self.s2], name='Later')

        rows = {r['slot_id']: r['available'] for r in event_availability(self.ground.pk, '2024-06-03', '2024-06-10')}

        self.assertFalse(rows[self.s1.pk])
        self.assertTrue(rows[self.s2.pk])
        with self.assertRaises(InvalidRange):
            event_availability(self.ground.pk, '2024-06-10', '2024-06-03')

    def test_list_events(self):
        cup = self.cup()
        league = self.cup(start='2024-06-10', end='2024-06-12', slots=[self.o1], grounds=[self.other], name='League')
        deactivate_event_block(league.pk)

        def names(**filters):
            return sorted(e.name for e in list_events(**filters))

        self.assertEqual(names(), ['Cup', 'League'])
        self.assertEqual(names(ground_ids=[self.other.pk]), ['League'])
        self.assertEqual(names(status=EventBlock.ACTIVE), ['Cup'])
        self.assertEqual(names(start_date='2024-06-03', end_date='2024-06-05'), ['Cup'])
        self.assertEqual(names(start_date='2024-06-04'), ['League'])
        self.assertEqual(names(end_date='2024-06-01'), ['Cup'])
        self.assertEqual(list_events(ground_ids=[self.ground.pk])[0].pk, cup.pk)

        with self.assertRaises(InvalidRange):
            list_events(start_date='2024-06-05', end_date='2024-06-01')
        with self.assertRaises(Validation):
            list_events(status='CLOSED')


@override_settings(EVENT_OVERLAP_MODE='interval')
class EventViewTests(TestCase):
    def setUp(self):
        venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(name='Arena 1', venue=venue)
        self.s1 = self.ground.slot_times.order_by('start_time').first()
        self.staff = User.objects.create_user(username='staff', password='password123')

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def test_create_requires_login(self):
        response = self.post_json('/api/events/', {})

        self.assertEqual(response.status_code, 302)

    def test_create_update_and_deactivate(self):
        self.client.force_login(self.staff)

        response = self.post_json('/api/events/', {
            'name': 'Cup',
            'grounds': [self.ground.pk],
            'slots': [self.s1.pk],
            'start_date': '2024-06-01',
            'end_date': '2024-06-03',
        })
        self.assertEqual(response.status_code, 201)
        event = response.json()['event']
        self.assertEqual((event['start_date'], event['end_date']), ('2024-06-01', '2024-06-03'))

        response = self.post_json(f"/api/events/{event['id']}/", {'description': 'Inter-school final'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['event']['description'], 'Inter-school final')

        response = self.post_json(f"/api/events/{event['id']}/deactivate/", {})
        self.assertEqual(response.json()['event']['status'], 'INACTIVE')

        response = self.post_json(f"/api/events/{event['id']}/reactivate/", {})
        self.assertEqual(response.json()['event']['status'], 'ACTIVE')

    def test_invalid_range_is_406(self):
        self.client.force_login(self.staff)

        response = self.post_json('/api/events/', {
            'name': 'Cup',
            'grounds': [self.ground.pk],
            'slots': [self.s1.pk],
            'start_date': '2024-06-03',
            'end_date': '2024-06-01',
        })

        self.assertEqual(response.status_code, 406)
        self.assertEqual(response.json()['code'], 'invalid_range')

    def test_event_availability_endpoint(self):
        response = self.client.get('/api/events/availability/', {
            'ground': self.ground.pk,
            'start_date': '2024-06-01',
            'end_date': '2024-06-03',
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['slots']), 16)

    def test_list_events_endpoint(self):
        self.client.force_login(self.staff)
        self.post_json('/api/events/', {
            'name': 'Cup',
            'grounds': [self.ground.pk],
            'slots': [self.s1.pk],
            'start_date': '2024-06-01',
            'end_date': '2024-06-03',
        })

        response = self.client.get('/api/events/list/', {'grounds': str(self.ground.pk), 'start_date': '2024-06-02'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([e['name'] for e in response.json()['events']], ['Cup'])

        response = self.client.get('/api/events/list/', {'start_date': '2024-07-01'})
        self.assertEqual(response.json()['events'], [])
