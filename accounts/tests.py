from django.test import TestCase

from .managers import normalize_mobile
from .models import Customer


class CustomerManagerTests(TestCase):
    def test_normalize_mobile_keeps_digits_and_plus(self):
        self.assertEqual(normalize_mobile('+91 98200-12345'), '+919820012345')

    def test_upsert_creates_then_refreshes_name(self):
        first = Customer.objects.upsert_by_mobile('98200 12345', 'Ravi')
        second = Customer.objects.upsert_by_mobile('9820012345', 'Ravi', 'Kumar')

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Customer.objects.count(), 1)
        second.refresh_from_db()
        self.assertEqual(second.full_name, 'Ravi Kumar')

    def test_upsert_requires_mobile(self):
        with self.assertRaises(ValueError):
            Customer.objects.upsert_by_mobile('  ', 'Ravi')

    def test_get_active_skips_disabled_customers(self):
        customer = Customer.objects.create(first_name='Ravi', mobile='9820012345', is_active=False)

        with self.assertRaises(Customer.DoesNotExist):
            Customer.objects.get_active(customer.pk)
