from django import forms

from grounds.claims import StandingClaim
from grounds.dates import WEEKDAY_CHOICES
from grounds.forms import IntegerListField, PartialForm


class ProgramForm(forms.Form):
    ground = forms.IntegerField()
    name = forms.CharField(max_length=100)
    sport = forms.IntegerField(required=False)
    morning_slots = IntegerListField(required=False)
    evening_slots = IntegerListField(required=False)
    active_days = forms.MultipleChoiceField(choices=WEEKDAY_CHOICES, required=False)


class ProgramUpdateForm(PartialForm):
    name = forms.CharField(max_length=100, required=False)
    sport = forms.IntegerField(required=False)
    morning_slots = IntegerListField(required=False)
    evening_slots = IntegerListField(required=False)
    active_days = forms.MultipleChoiceField(choices=WEEKDAY_CHOICES, required=False)


class ProgramQueryForm(forms.Form):
    ground = forms.IntegerField(required=False)
    status = forms.ChoiceField(choices=StandingClaim.STATUS, required=False)
