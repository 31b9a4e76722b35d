from django import forms

from grounds.forms import IntegerListField, PartialForm

from .models import EventBlock


class EventForm(forms.Form):
    name = forms.CharField(max_length=150)
    description = forms.CharField(required=False)
    grounds = IntegerListField(required=False)
    slots = IntegerListField(required=False)
    start_date = forms.DateField()
    end_date = forms.DateField()


class EventUpdateForm(PartialForm):
    name = forms.CharField(max_length=150, required=False)
    description = forms.CharField(required=False)
    grounds = IntegerListField(required=False)
    slots = IntegerListField(required=False)
    start_date = forms.DateField(required=False)
    end_date = forms.DateField(required=False)


class EventAvailabilityForm(forms.Form):
    ground = forms.IntegerField()
    start_date = forms.DateField()
    end_date = forms.DateField()


class EventQueryForm(forms.Form):
    grounds = IntegerListField(required=False)
    status = forms.ChoiceField(choices=EventBlock.STATUS, required=False)
    start_date = forms.DateField(required=False)
    end_date = forms.DateField(required=False)
