from django import forms

from grounds.forms import IntegerListField, PartialForm

from .models import ReservationSlot, SlotBooking
from .reservations import SLOT_ACTIONS


class AvailabilityForm(forms.Form):
    ground = forms.IntegerField()
    date = forms.DateField()


class BookingForm(forms.Form):
    ground = forms.IntegerField()
    date = forms.DateField()
    slots = IntegerListField(required=False)
    customer = forms.IntegerField()
    source = forms.ChoiceField(choices=SlotBooking.SOURCE, required=False)


class BookingUpdateForm(PartialForm):
    date = forms.DateField(required=False)
    slots = IntegerListField(required=False)
    status = forms.ChoiceField(choices=SlotBooking.STATUS, required=False)


class ReservationForm(forms.Form):
    ground = forms.IntegerField()
    slot_dates = forms.JSONField()
    customer = forms.JSONField()
    total_amount = forms.IntegerField(min_value=0, required=False)
    discount = forms.IntegerField(min_value=0, required=False)
    payment_mode = forms.CharField(max_length=30, required=False)
    payment_details = forms.JSONField(required=False)

    def clean_slot_dates(self):
        slot_dates = self.cleaned_data['slot_dates']
        if not isinstance(slot_dates, list):
            raise forms.ValidationError("Send a list of {date, slots} objects")

        field = IntegerListField(required=False)
        entries = []
        for item in slot_dates:
            if not isinstance(item, dict) or 'date' not in item:
                raise forms.ValidationError("Every entry needs a date and its slots")
            entries.append({'date': item['date'], 'slots': field.clean(item.get('slots'))})
        return entries

    def clean_customer(self):
        customer = self.cleaned_data['customer']
        if not isinstance(customer, dict):
            raise forms.ValidationError("Customer must be an object with mobile and names")
        return customer

    def clean_payment_details(self):
        details = self.cleaned_data.get('payment_details')
        if details is not None and not isinstance(details, dict):
            raise forms.ValidationError("Payment details must be an object")
        return details


class ReservationSlotForm(forms.Form):
    date = forms.DateField()
    slots = IntegerListField(required=False)


class ReservationSlotActionForm(PartialForm):
    action = forms.ChoiceField(choices=[(action, action) for action in SLOT_ACTIONS])
    date = forms.DateField(required=False)
    slots = IntegerListField(required=False)


class RemoveReservationsForm(forms.Form):
    reservations = IntegerListField()


class BookingQueryForm(forms.Form):
    booking = forms.UUIDField(required=False)
    customer = forms.IntegerField(required=False)
    grounds = IntegerListField(required=False)
    date = forms.DateField(required=False)
    status = forms.ChoiceField(choices=SlotBooking.STATUS, required=False)


class ReservationQueryForm(forms.Form):
    customer = forms.IntegerField(required=False)
    grounds = IntegerListField(required=False)
    date = forms.DateField(required=False)
    status = forms.ChoiceField(choices=ReservationSlot.STATUS, required=False)
