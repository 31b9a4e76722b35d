import json
from datetime import date, time
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase

from .catalog import add_slot, create_catalog, price_for, update_slot
from .dates import DateScope, as_date, weekday_code, weekday_index
from .exceptions import CapabilityDisabled, Conflict, NotFound, Validation
from .lookups import get_ground, get_slots, get_sport
from .models import Ground, SlotTime, Sport, Venue


class SlotCatalogTests(TestCase):
    def setUp(self):
        self.venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(name='Arena 1', venue=self.venue)

    def test_new_ground_gets_sixteen_hourly_slots(self):
        slots = list(self.ground.slot_times.order_by('start_time'))

        self.assertEqual(len(slots), 16)
        self.assertEqual(slots[0].label, '06:00 AM - 07:00 AM')
        self.assertEqual(slots[0].start_time, time(6, 0))
        self.assertEqual(slots[-1].label, '09:00 PM - 10:00 PM')
        self.assertEqual(slots[-1].end_time, time(22, 0))

    def test_create_catalog_is_idempotent(self):
        create_catalog(self.ground)
        create_catalog(self.ground)

        self.assertEqual(SlotTime.objects.filter(ground=self.ground).count(), 16)

    def test_catalog_uses_default_price_table(self):
        slot = self.ground.slot_times.first()

        self.assertEqual(slot.price_row, {
            'sun': 1300,
            'mon': 800,
            'tue': 800,
            'wed': 800,
            'thu': 800,
            'fri': 1000,
            'sat': 1200,
        })
        self.assertEqual(slot.prices[0], 1300)

    def test_price_for_indexes_weekdays_from_sunday(self):
        slot = self.ground.slot_times.first()

        self.assertEqual(price_for(slot, date(2024, 5, 1)), 800)    # Wednesday
        self.assertEqual(price_for(slot, date(2024, 5, 3)), 1000)   # Friday
        self.assertEqual(price_for(slot, date(2024, 5, 4)), 1200)   # Saturday
        self.assertEqual(price_for(slot, date(2024, 5, 5)), 1300)   # Sunday
        self.assertEqual(price_for(slot, '2024-05-06'), 800)        # Monday

    def test_add_slot_appends_entry_with_prices(self):
        slot = add_slot(self.ground.pk, '10:00 PM - 11:00 PM', time(22, 0), time(23, 0), prices={'sat': 1500})

        self.assertEqual(self.ground.slot_times.count(), 17)
        self.assertEqual(slot.price_sat, 1500)
        self.assertEqual(slot.price_sun, 1300)

    def test_add_slot_rejects_duplicate_label(self):
        with self.assertRaises(Conflict):
            add_slot(self.ground.pk, '06:00 AM - 07:00 AM', time(6, 0), time(7, 0))

    def test_add_slot_rejects_unknown_ground_and_weekday(self):
        with self.assertRaises(NotFound):
            add_slot(9999, 'Late', time(22, 0), time(23, 0))
        with self.assertRaises(Validation):
            add_slot(self.ground.pk, 'Late', time(22, 0), time(23, 0), prices={'someday': 10})

    def test_update_slot_reprices_and_toggles(self):
        slot = self.ground.slot_times.first()

        update_slot(slot.pk, prices={'mon': 900}, is_active=False)

        slot.refresh_from_db()
        self.assertEqual(slot.price_mon, 900)
        self.assertEqual(slot.price_tue, 800)
        self.assertFalse(slot.is_active)

    def test_update_slot_rejects_backwards_window(self):
        slot = self.ground.slot_times.order_by('start_time').first()

        with self.assertRaises(Validation):
            update_slot(slot.pk, start_time=time(9, 0), end_time=time(7, 0))
        with self.assertRaises(Validation):
            update_slot(slot.pk, end_time=time(5, 0))
        with self.assertRaises(Validation):
            add_slot(self.ground.pk, 'Backwards', time(23, 0), time(22, 0))

        slot.refresh_from_db()
        self.assertEqual((slot.start_time, slot.end_time), (time(6, 0), time(7, 0)))

    def test_update_slot_rejects_bad_input(self):
        first, second = self.ground.slot_times.order_by('start_time')[:2]

        with self.assertRaises(Conflict):
            update_slot(first.pk, label=second.label)
        with self.assertRaises(Validation):
            update_slot(first.pk, ground=None)
        with self.assertRaises(NotFound):
            update_slot(9999, label='Nope')


class CreateSlotCatalogCommandTests(TestCase):
    def setUp(self):
        venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(name='Arena 1', venue=venue)
        self.ground.slot_times.all().delete()

    def test_backfills_grounds_without_catalog(self):
        out = StringIO()
        call_command('create_slot_catalog', stdout=out)

        self.assertEqual(self.ground.slot_times.count(), 16)
        self.assertIn('Created 16 slots', out.getvalue())

    def test_dry_run_creates_nothing(self):
        out = StringIO()
        call_command('create_slot_catalog', '--dry-run', stdout=out)

        self.assertEqual(self.ground.slot_times.count(), 0)
        self.assertIn('Would create catalog', out.getvalue())

    def test_unknown_ground(self):
        out = StringIO()
        call_command('create_slot_catalog', '--ground', '9999', stdout=out)

        self.assertIn('Ground not found', out.getvalue())


class DateScopeTests(TestCase):
    def test_weekday_index_starts_on_sunday(self):
        self.assertEqual(weekday_index(date(2024, 5, 5)), 0)
        self.assertEqual(weekday_index(date(2024, 5, 11)), 6)
        self.assertEqual(weekday_code(date(2024, 5, 6)), 'mon')

    def test_contains_respects_bounds_and_weekdays(self):
        scope = DateScope(date(2024, 6, 1), date(2024, 6, 3))
        self.assertTrue(scope.contains(date(2024, 6, 1)))
        self.assertTrue(scope.contains(date(2024, 6, 3)))
        self.assertFalse(scope.contains(date(2024, 5, 31)))
        self.assertFalse(scope.contains(date(2024, 6, 4)))

        mondays = DateScope(weekdays=['mon'])
        self.assertTrue(mondays.contains(date(2024, 5, 6)))
        self.assertFalse(mondays.contains(date(2024, 5, 7)))

    def test_intersects(self):
        wed_thu = DateScope(date(2024, 5, 1), date(2024, 5, 2))

        self.assertFalse(wed_thu.intersects(DateScope(weekdays=['mon'])))
        self.assertTrue(wed_thu.intersects(DateScope(weekdays=['thu'])))
        self.assertTrue(wed_thu.intersects(DateScope()))
        self.assertFalse(wed_thu.intersects(DateScope.on(date(2024, 5, 3))))
        self.assertFalse(DateScope(weekdays=['mon']).intersects(DateScope(weekdays=['tue'])))
        self.assertTrue(DateScope(first=date(2024, 5, 1)).intersects(DateScope(weekdays=['sun'])))

    def test_as_date(self):
        self.assertEqual(as_date('2024-05-01'), date(2024, 5, 1))
        with self.assertRaises(Validation):
            as_date('01/05/2024')
        with self.assertRaises(Validation):
            as_date(None)


class LookupTests(TestCase):
    def setUp(self):
        self.venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(name='Arena 1', venue=self.venue)
        self.other = Ground.objects.create(name='Arena 2', venue=self.venue)

    def test_get_ground_requires_active_ground_and_venue(self):
        self.assertEqual(get_ground(self.ground.pk), self.ground)

        self.venue.is_active = False
        self.venue.save()
        with self.assertRaises(NotFound):
            get_ground(self.ground.pk)

    def test_get_ground_checks_capability(self):
        with self.assertRaises(CapabilityDisabled):
            get_ground(self.ground.pk, capability='allows_academy')

    def test_get_slots(self):
        mine = self.ground.slot_times.first()
        theirs = self.other.slot_times.first()

        self.assertEqual(get_slots([mine.pk], [self.ground.pk]), [mine])
        with self.assertRaises(Validation):
            get_slots([], [self.ground.pk])
        with self.assertRaises(Validation):
            get_slots([theirs.pk], [self.ground.pk])

        with self.assertRaises(Validation) as ctx:
            get_slots(['a'], [self.ground.pk], field='slot_dates')
        self.assertEqual(ctx.exception.field, 'slot_dates')
        self.assertEqual(get_slots([str(mine.pk)], [self.ground.pk]), [mine])

        mine.is_active = False
        mine.save()
        with self.assertRaises(NotFound):
            get_slots([mine.pk], [self.ground.pk])

    def test_get_sport(self):
        football = Sport.objects.create(name='Football')
        cricket = Sport.objects.create(name='Cricket')
        self.ground.supported_sports.add(football)

        self.assertEqual(get_sport(football.pk, self.ground), football)
        with self.assertRaises(CapabilityDisabled):
            get_sport(cricket.pk, self.ground)


class CatalogViewTests(TestCase):
    def setUp(self):
        venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(name='Arena 1', venue=venue)
        self.staff = User.objects.create_user(username='staff', password='password123')

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def test_ground_slots_lists_catalog(self):
        response = self.client.get(f'/api/grounds/{self.ground.pk}/slots/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['slots']), 16)

    def test_unknown_ground_is_404(self):
        response = self.client.get('/api/grounds/9999/slots/')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['code'], 'not_found')

    def test_add_slot_requires_login(self):
        response = self.post_json(f'/api/grounds/{self.ground.pk}/slots/add/', {})

        self.assertEqual(response.status_code, 302)

    def test_add_and_update_slot(self):
        self.client.force_login(self.staff)

        response = self.post_json(f'/api/grounds/{self.ground.pk}/slots/add/', {
            'label': '10:00 PM - 11:00 PM',
            'start_time': '22:00',
            'end_time': '23:00',
        })
        self.assertEqual(response.status_code, 201)
        slot_id = response.json()['slot']['slot_id']

        response = self.post_json(f'/api/slots/{slot_id}/', {'is_active': False, 'prices': {'fri': 1100}})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()['slot']['is_active'])
        self.assertEqual(response.json()['slot']['price_row']['fri'], 1100)

    def test_add_slot_rejects_malformed_payload(self):
        self.client.force_login(self.staff)

        response = self.post_json(f'/api/grounds/{self.ground.pk}/slots/add/', {
            'label': 'Backwards',
            'start_time': '23:00',
            'end_time': '22:00',
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_update_endpoint_rejects_backwards_window(self):
        self.client.force_login(self.staff)
        slot = self.ground.slot_times.order_by('start_time').first()

        response = self.post_json(f'/api/slots/{slot.pk}/', {'end_time': '05:00'})

        self.assertEqual(response.status_code, 406)
        self.assertEqual(response.json()['field'], 'end_time')
