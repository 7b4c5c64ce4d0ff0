from django import forms


class SubscribeForm(forms.Form):
    email = forms.EmailField(max_length=254, error_messages={"invalid": "Invalid email address"})

    def clean_email(self):
        return self.cleaned_data["email"].strip().lower()
