"""Forms for the assets app."""

from django import forms

from .services.images import ALLOWED_CONTENT_TYPES

INPUT_CLASS = "form-input w-full rounded-lg px-4 py-2.5"


class LocationForm(forms.Form):
    """Location creation/editing form.

    Name uniqueness is enforced by the location service, which reports
    duplicates as a form error.
    """

    name = forms.CharField(
        max_length=255,
        widget=forms.TextInput(
            attrs={"class": INPUT_CLASS, "placeholder": "Storage room"}
        ),
    )
    address = forms.CharField(
        max_length=500,
        required=False,
        widget=forms.TextInput(
            attrs={"class": INPUT_CLASS, "placeholder": "Street, city"}
        ),
    )
    description = forms.CharField(
        required=False,
        widget=forms.Textarea(
            attrs={
                "class": INPUT_CLASS,
                "rows": 3,
                "placeholder": "What is kept here?",
            }
        ),
    )


class LocationImageForm(forms.Form):
    image = forms.ImageField(
        widget=forms.ClearableFileInput(
            attrs={"accept": ",".join(sorted(ALLOWED_CONTENT_TYPES))}
        )
    )

    def clean_image(self):
        image = self.cleaned_data["image"]
        content_type = getattr(image, "content_type", None)
        if content_type and content_type not in ALLOWED_CONTENT_TYPES:
            raise forms.ValidationError(
                "Only JPEG, PNG and WebP images are allowed."
            )
        return image


class NoteForm(forms.Form):
    """New note on an asset's timeline."""

    content = forms.CharField(
        min_length=3,
        strip=True,
        error_messages={
            "required": "Content is required",
            "min_length": "Content is required",
        },
        widget=forms.Textarea(
            attrs={
                "class": INPUT_CLASS + " rounded-b-none",
                "rows": 4,
                "placeholder": "Leave a note",
            }
        ),
    )
