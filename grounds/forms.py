from django import forms


class IntegerListField(forms.Field):
    """A JSON list of ids, or a comma separated string of them."""

    default_error_messages = {'invalid': 'Enter a list of whole numbers.'}

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if isinstance(value, str):
            value = [part for part in value.split(',') if part.strip()]
        if not isinstance(value, (list, tuple)):
            raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
        try:
            return [int(item) for item in value]
        except (TypeError, ValueError):
            raise forms.ValidationError(self.error_messages['invalid'], code='invalid')


class PartialForm(forms.Form):
    """Form for edits where a missing key means "leave as is"."""

    def changes(self):
        return {name: value for name, value in self.cleaned_data.items() if name in self.data}


def clean_price_table(value):
    if value is not None and not isinstance(value, dict):
        raise forms.ValidationError('Prices must be an object keyed by weekday.')
    return value


class SlotForm(forms.Form):
    label = forms.CharField(max_length=40)
    start_time = forms.TimeField()
    end_time = forms.TimeField()
    prices = forms.JSONField(required=False)

    def clean_prices(self):
        return clean_price_table(self.cleaned_data.get('prices'))

    def clean(self):
        cleaned_data = super().clean()
        start_time = cleaned_data.get('start_time')
        end_time = cleaned_data.get('end_time')

        if start_time and end_time and end_time <= start_time:
            raise forms.ValidationError("End time must be after start time")

        return cleaned_data


class SlotUpdateForm(PartialForm):
    label = forms.CharField(max_length=40, required=False)
    start_time = forms.TimeField(required=False)
    end_time = forms.TimeField(required=False)
    is_active = forms.BooleanField(required=False)
    prices = forms.JSONField(required=False)

    def clean_prices(self):
        return clean_price_table(self.cleaned_data.get('prices'))

    def clean_label(self):
        label = self.cleaned_data.get('label')
        if 'label' in self.data and not label:
            raise forms.ValidationError("Label cannot be empty")
        return label
