import json
from datetime import date, timedelta
from io import StringIO

from django.contrib.auth.models import User
from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from accounts.models import Customer
from bookings.availability import available_slots
from bookings.services import create_booking
from grounds.dates import WEEKDAY_CODES, weekday_index
from grounds.exceptions import CapabilityDisabled, Conflict, NotFound, Validation
from grounds.models import Ground, Sport, Venue

from .models import Academy, Membership
from .registry import (
    deactivate_recurring_program,
    list_programs,
    reactivate_recurring_program,
    recurring_availability,
    register_recurring_program,
    update_recurring_program,
)


def next_weekday(code):
    today = timezone.localdate()
    return today + timedelta(days=(WEEKDAY_CODES.index(code) - weekday_index(today)) % 7 or 7)


@override_settings(RECURRING_OVERLAP_SCOPE='global', BOOKING_HORIZON_DAYS=None)
class RegistryTests(TestCase):
    def setUp(self):
        self.venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(
            name='Arena 1',
            venue=self.venue,
            allows_academy=True,
            allows_membership=True,
        )
        self.s1, self.s2, self.s3, self.s4 = self.ground.slot_times.order_by('start_time')[:4]
        self.customer = Customer.objects.create(first_name='Asha', mobile='9000000001')

    def register_academy(self, days=('mon', 'wed'), morning=None, evening=None, name='Juniors'):
        return register_recurring_program(
            'academy',
            self.ground.pk,
            [s.pk for s in (morning or [self.s1])],
            [s.pk for s in (evening or [])],
            name,
            active_days=list(days),
        )

    def test_register_academy(self):
        academy = self.register_academy(days=('wed', 'mon', 'wed'), evening=[self.s4])

        self.assertIsInstance(academy, Academy)
        self.assertTrue(academy.is_active)
        self.assertEqual(academy.active_days, ['mon', 'wed'])
        self.assertEqual(academy.slot_ids(), {self.s1.pk, self.s4.pk})

    def test_register_membership_ignores_active_days(self):
        membership = register_recurring_program('membership', self.ground.pk, [], [self.s2.pk], 'Regulars')

        self.assertIsInstance(membership, Membership)
        self.assertEqual(membership.slot_ids(), {self.s2.pk})

    def test_ground_and_capability_checks(self):
        with self.assertRaises(NotFound):
            register_recurring_program('academy', 9999, [self.s1.pk], [], 'Juniors', active_days=['mon'])

        self.ground.allows_academy = False
        self.ground.save()
        with self.assertRaises(CapabilityDisabled):
            self.register_academy()

        with self.assertRaises(Validation):
            register_recurring_program('camp', self.ground.pk, [self.s1.pk], [], 'Camp')

    def test_sport_checks(self):
        football = Sport.objects.create(name='Football')
        cricket = Sport.objects.create(name='Cricket', is_active=False)
        self.ground.supported_sports.add(football, cricket)
        tennis = Sport.objects.create(name='Tennis')

        academy = register_recurring_program(
            'academy', self.ground.pk, [self.s1.pk], [], 'Juniors', active_days=['mon'], sport_id=football.pk,
        )
        self.assertEqual(academy.sport, football)

        with self.assertRaises(NotFound):
            register_recurring_program('membership', self.ground.pk, [self.s2.pk], [], 'A', sport_id=cricket.pk)
        with self.assertRaises(CapabilityDisabled):
            register_recurring_program('membership', self.ground.pk, [self.s2.pk], [], 'B', sport_id=tennis.pk)

    def test_shape_checks(self):
        other = Ground.objects.create(name='Arena 2', venue=self.venue, allows_academy=True)

        with self.assertRaises(Validation):
            register_recurring_program('academy', self.ground.pk, [], [], 'Juniors', active_days=['mon'])
        with self.assertRaises(Validation):
            register_recurring_program(
                'academy', self.ground.pk, [other.slot_times.first().pk], [], 'Juniors', active_days=['mon'],
            )
        with self.assertRaises(Validation):
            self.register_academy(days=())
        with self.assertRaises(Validation):
            self.register_academy(days=('funday',))
        with self.assertRaises(Validation):
            self.register_academy(morning=[self.s1], evening=[self.s1])
        with self.assertRaises(Validation):
            self.register_academy(name='  ')

    def test_programs_never_share_a_slot(self):
        self.register_academy(days=('mon',))

        with self.assertRaises(Conflict) as ctx:
            self.register_academy(days=('tue',), name='Seniors')
        self.assertEqual(str(ctx.exception), 'Slot already reserved')
        self.assertEqual(ctx.exception.claim_kind, 'academy')

        with self.assertRaises(Conflict):
            register_recurring_program('membership', self.ground.pk, [self.s1.pk], [], 'Regulars')

        self.register_academy(days=('tue',), morning=[self.s2], name='Seniors')

    @override_settings(RECURRING_OVERLAP_SCOPE='ground')
    def test_ground_scope_still_rejects_same_ground(self):
        self.register_academy(days=('mon',))

        with self.assertRaises(Conflict):
            register_recurring_program('membership', self.ground.pk, [self.s1.pk], [], 'Regulars')

    def test_scopes_allow_programs_on_other_grounds(self):
        other = Ground.objects.create(name='Arena 2', venue=self.venue, allows_academy=True)
        self.register_academy(days=('mon',))

        for scope in ('global', 'ground'):
            with self.settings(RECURRING_OVERLAP_SCOPE=scope):
                academy = register_recurring_program(
                    'academy', other.pk, [other.slot_times.order_by('start_time')[0].pk], [], f'Other {scope}',
                    active_days=['mon'],
                )
                academy.set_status(Academy.INACTIVE)

    @override_settings(RECURRING_OVERLAP_SCOPE='everywhere')
    def test_unknown_scope_is_a_configuration_error(self):
        with self.assertRaises(ImproperlyConfigured):
            self.register_academy()

    def test_upcoming_bookings_on_matching_weekdays_conflict(self):
        create_booking(self.ground.pk, next_weekday('mon'), [self.s1.pk], self.customer.pk)

        with self.assertRaises(Conflict) as ctx:
            self.register_academy(days=('mon',))
        self.assertEqual(ctx.exception.claim_kind, 'booking')

        with self.assertRaises(Conflict):
            register_recurring_program('membership', self.ground.pk, [self.s1.pk], [], 'Regulars')

        academy = self.register_academy(days=('tue',))
        self.assertTrue(academy.is_active)

    def test_past_bookings_do_not_conflict(self):
        create_booking(self.ground.pk, date(2024, 5, 6), [self.s1.pk], self.customer.pk)

        self.assertTrue(self.register_academy(days=('mon',)).is_active)

    def test_update_ignores_its_own_claim(self):
        academy = self.register_academy(days=('mon',))

        academy = update_recurring_program('academy', academy.pk, morning_slot_ids=[self.s1.pk, self.s2.pk])

        self.assertEqual(academy.slot_ids(), {self.s1.pk, self.s2.pk})
        self.assertEqual(academy.active_days, ['mon'])

    def test_update_into_another_program_conflicts(self):
        academy = self.register_academy(days=('mon',))
        register_recurring_program('membership', self.ground.pk, [], [self.s3.pk], 'Regulars')

        with self.assertRaises(Conflict):
            update_recurring_program('academy', academy.pk, evening_slot_ids=[self.s3.pk])

        self.assertEqual(Academy.objects.get(pk=academy.pk).slot_ids(), {self.s1.pk})

    def test_update_changes_days_and_name(self):
        academy = self.register_academy(days=('mon',))

        academy = update_recurring_program('academy', academy.pk, active_days=['fri', 'tue'], name='Weekday Juniors')

        self.assertEqual(academy.active_days, ['tue', 'fri'])
        self.assertEqual(academy.name, 'Weekday Juniors')

    def test_deactivate_releases_slots(self):
        academy = self.register_academy(days=('mon',))
        monday = date(2024, 5, 6)
        self.assertFalse({r['slot_id']: r['available'] for r in available_slots(self.ground.pk, monday)}[self.s1.pk])

        academy = deactivate_recurring_program('academy', academy.pk)

        self.assertEqual(academy.status, Academy.INACTIVE)
        self.assertIsNotNone(academy.status_changed_at)
        self.assertTrue({r['slot_id']: r['available'] for r in available_slots(self.ground.pk, monday)}[self.s1.pk])
        with self.assertRaises(Validation):
            deactivate_recurring_program('academy', academy.pk)

        membership = register_recurring_program('membership', self.ground.pk, [self.s1.pk], [], 'Regulars')
        self.assertTrue(membership.is_active)

    def test_inactive_program_edits_skip_overlap(self):
        academy = self.register_academy(days=('mon',))
        deactivate_recurring_program('academy', academy.pk)
        register_recurring_program('membership', self.ground.pk, [self.s2.pk], [], 'Regulars')

        academy = update_recurring_program('academy', academy.pk, morning_slot_ids=[self.s2.pk])
        self.assertEqual(academy.slot_ids(), {self.s2.pk})

        with self.assertRaises(Conflict):
            reactivate_recurring_program('academy', academy.pk)

    def test_reactivate(self):
        academy = self.register_academy(days=('mon',))
        deactivate_recurring_program('academy', academy.pk)

        academy = reactivate_recurring_program('academy', academy.pk)

        self.assertTrue(academy.is_active)
        with self.assertRaises(Validation):
            reactivate_recurring_program('academy', academy.pk)

    def test_missing_program(self):
        with self.assertRaises(NotFound):
            update_recurring_program('membership', 9999, name='Nope')
        with self.assertRaises(NotFound):
            deactivate_recurring_program('academy', 9999)

    def test_recurring_availability(self):
        self.register_academy(days=('mon',))
        register_recurring_program('membership', self.ground.pk, [], [self.s3.pk], 'Regulars')

        rows = {r['slot_id']: r['available'] for r in recurring_availability(self.ground.pk)}

        self.assertEqual(len(rows), 16)
        self.assertFalse(rows[self.s1.pk])
        self.assertTrue(rows[self.s2.pk])
        self.assertFalse(rows[self.s3.pk])

    def test_list_programs(self):
        juniors = self.register_academy()
        seniors = self.register_academy(morning=[self.s2], name='Seniors')
        deactivate_recurring_program('academy', seniors.pk)
        regulars = register_recurring_program('membership', self.ground.pk, [], [self.s3.pk], 'Regulars')

        self.assertEqual([a.pk for a in list_programs('academy')], [juniors.pk, seniors.pk])
        self.assertEqual([a.pk for a in list_programs('academy', status=Academy.ACTIVE)], [juniors.pk])
        self.assertEqual([m.pk for m in list_programs('membership', ground_id=self.ground.pk)], [regulars.pk])
        self.assertEqual(list_programs('membership', ground_id=9999), [])
        with self.assertRaises(Validation):
            list_programs('camp')
        with self.assertRaises(Validation):
            list_programs('academy', status='PAUSED')

    def test_non_numeric_slot_ids(self):
        with self.assertRaises(Validation) as ctx:
            register_recurring_program('membership', self.ground.pk, ['early'], [], 'Regulars')
        self.assertEqual(ctx.exception.field, 'morning_slots')


@override_settings(RECURRING_OVERLAP_SCOPE='global')
class ProgramViewTests(TestCase):
    def setUp(self):
        venue = Venue.objects.create(name='Turf Park', city='Pune')
        self.ground = Ground.objects.create(name='Arena 1', venue=venue, allows_academy=True, allows_membership=True)
        self.s1 = self.ground.slot_times.order_by('start_time').first()
        self.staff = User.objects.create_user(username='staff', password='password123')
        self.client.force_login(self.staff)

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def test_register_deactivate_and_reactivate(self):
        response = self.post_json('/api/programs/academy/', {
            'ground': self.ground.pk,
            'name': 'Juniors',
            'morning_slots': [self.s1.pk],
            'active_days': ['sat', 'sun'],
        })
        self.assertEqual(response.status_code, 201)
        program = response.json()['program']
        self.assertEqual(program['active_days'], ['sun', 'sat'])

        response = self.post_json('/api/programs/membership/', {
            'ground': self.ground.pk,
            'name': 'Regulars',
            'evening_slots': [self.s1.pk],
        })
        self.assertEqual(response.status_code, 409)

        response = self.post_json(f"/api/programs/academy/{program['id']}/deactivate/", {})
        self.assertEqual(response.json()['program']['status'], 'INACTIVE')

        response = self.post_json(f"/api/programs/academy/{program['id']}/reactivate/", {})
        self.assertEqual(response.json()['program']['status'], 'ACTIVE')

    def test_update_endpoint_keeps_missing_fields(self):
        academy = register_recurring_program('academy', self.ground.pk, [self.s1.pk], [], 'Juniors', active_days=['mon'])

        response = self.post_json(f'/api/programs/academy/{academy.pk}/', {'name': 'Seniors'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['program']['name'], 'Seniors')
        self.assertEqual(response.json()['program']['morning_slots'], [self.s1.pk])
        self.assertEqual(response.json()['program']['active_days'], ['mon'])

    def test_unknown_kind_and_bad_days(self):
        response = self.post_json('/api/programs/camp/', {'ground': self.ground.pk, 'name': 'Camp'})
        self.assertEqual(response.status_code, 406)
        self.assertEqual(response.json()['code'], 'validation')

        response = self.post_json('/api/programs/academy/', {
            'ground': self.ground.pk,
            'name': 'Juniors',
            'morning_slots': [self.s1.pk],
            'active_days': ['funday'],
        })
        self.assertEqual(response.status_code, 400)

    def test_program_availability(self):
        response = self.client.get(f'/api/programs/availability/{self.ground.pk}/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['slots']), 16)

    def test_list_programs_endpoint(self):
        self.post_json('/api/programs/membership/', {
            'ground': self.ground.pk,
            'name': 'Regulars',
            'evening_slots': [self.s1.pk],
        })

        response = self.client.get('/api/programs/membership/list/', {'ground': self.ground.pk, 'status': 'ACTIVE'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p['name'] for p in response.json()['programs']], ['Regulars'])

        response = self.client.get('/api/programs/academy/list/', {'status': 'PAUSED'})
        self.assertEqual(response.status_code, 400)


class MigrationTests(TestCase):
    def test_models_match_migrations(self):
        out = StringIO()

        call_command('makemigrations', '--check', '--dry-run', stdout=out)

        self.assertIn('No changes detected', out.getvalue())
