from django.db import models


def normalize_mobile(mobile):
    return ''.join(ch for ch in str(mobile) if ch.isdigit() or ch == '+')


class CustomerManager(models.Manager):

    def get_active(self, customer_id):
        return self.get(pk=customer_id, is_active=True)

    def upsert_by_mobile(self, mobile, first_name, last_name=''):
        """Find a customer by mobile number, refreshing the stored name, or create one."""
        mobile = normalize_mobile(mobile)
        if not mobile:
            raise ValueError('The mobile number must be set')

        customer, created = self.get_or_create(
            mobile=mobile,
            defaults={'first_name': first_name, 'last_name': last_name},
        )
        if not created and (customer.first_name, customer.last_name) != (first_name, last_name):
            customer.first_name = first_name
            customer.last_name = last_name
            customer.save(update_fields=['first_name', 'last_name'])
        return customer
