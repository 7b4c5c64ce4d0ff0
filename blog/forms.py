from django import forms
from django.core.exceptions import ValidationError

from blog.models import Blog
from utils.ids import is_valid_object_id


class ObjectIdField(forms.CharField):
    """Optional 24-character hex id; blank values clean to None."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("empty_value", None)
        super().__init__(*args, **kwargs)

    def validate(self, value):
        super().validate(value)
        if value not in self.empty_values and not is_valid_object_id(value):
            raise ValidationError("Enter a valid id.", code="invalid_id")


class PartialUpdateMixin:
    """For PATCH payloads: only the keys the client actually sent are applied."""

    def provided_data(self):
        return {name: value for name, value in self.cleaned_data.items() if name in self.data}


class BlogCreateForm(forms.Form):
    title = forms.CharField(min_length=3, max_length=300)
    description = forms.CharField(min_length=10, strip=False)
    image = forms.URLField(required=False, max_length=500, assume_scheme="https")
    category = forms.CharField(required=False, max_length=100)
    slug = forms.CharField(required=False, max_length=255)
    status = forms.ChoiceField(choices=Blog.STATUS_CHOICES, required=False)


class BlogUpdateForm(PartialUpdateMixin, forms.Form):
    id = ObjectIdField(required=True)
    title = forms.CharField(required=False, min_length=3, max_length=300)
    description = forms.CharField(required=False, strip=False)
    image = forms.URLField(required=False, max_length=500, assume_scheme="https")
    category = forms.CharField(required=False, max_length=100)
    slug = forms.CharField(required=False, max_length=255)
    status = forms.ChoiceField(choices=Blog.STATUS_CHOICES, required=False)

    def provided_data(self):
        data = super().provided_data()
        data.pop("id", None)
        return data


class BlogRecoverForm(PartialUpdateMixin, BlogCreateForm):
    id = ObjectIdField(required=True)


class BlogIdForm(forms.Form):
    id = ObjectIdField(required=True)


class DraftForm(forms.Form):
    blogId = ObjectIdField()
    title = forms.CharField(required=False, max_length=300)
    description = forms.CharField(required=False, strip=False)
    image = forms.CharField(required=False, max_length=500)
    category = forms.CharField(required=False, max_length=100)
    status = forms.ChoiceField(choices=Blog.STATUS_CHOICES, required=False)
    revision = forms.IntegerField(required=False, min_value=0)

    def draft_fields(self):
        data = self.cleaned_data
        return {name: data.get(name) or "" for name in ("title", "description", "image", "category", "status")}


class DraftPatchForm(PartialUpdateMixin, DraftForm):
    draftId = ObjectIdField(required=True)

    def draft_fields(self):
        provided = self.provided_data()
        fields = {name: provided[name] or "" for name in ("title", "description", "image", "category", "status") if name in provided}
        if "blogId" in provided:
            fields["blog_id"] = provided["blogId"]
        return fields


class PublishForm(PartialUpdateMixin, forms.Form):
    blogId = ObjectIdField()
    draftId = ObjectIdField()
    title = forms.CharField(required=False, max_length=300)
    description = forms.CharField(required=False, strip=False)
    image = forms.CharField(required=False, max_length=500)
    category = forms.CharField(required=False, max_length=100)


class DraftPublishForm(forms.Form):
    draftId = ObjectIdField(required=True)


class AuthorPromoteForm(forms.Form):
    userId = ObjectIdField()
    email = forms.EmailField(required=False)
    name = forms.CharField(required=False, max_length=200)
    bio = forms.CharField(required=False)
    profileImage = forms.CharField(required=False, max_length=500)
    slug = forms.CharField(required=False, max_length=255)

    def clean(self):
        cleaned_data = super().clean()
        has_user_id = bool(cleaned_data.get("userId"))
        has_email = bool(cleaned_data.get("email"))
        if has_user_id == has_email and not self.errors:
            raise ValidationError("Provide exactly one of userId or email.")
        return cleaned_data


class AuthorUpdateForm(PartialUpdateMixin, forms.Form):
    name = forms.CharField(required=False, max_length=200)
    bio = forms.CharField(required=False)
    profileImage = forms.CharField(required=False, max_length=500)
    slug = forms.CharField(required=False, max_length=255)

    def author_fields(self):
        renamed = {"profileImage": "profile_image"}
        return {renamed.get(name, name): value for name, value in self.provided_data().items()}


class PostActionForm(forms.Form):
    ACTION_CHOICES = [
        ("publish", "Publish"),
        ("unpublish", "Unpublish"),
        ("delete", "Delete"),
    ]

    id = ObjectIdField(required=True)
    action = forms.ChoiceField(choices=ACTION_CHOICES)


class LikeForm(forms.Form):
    slug = forms.CharField(max_length=255)


class CommentForm(forms.Form):
    """Public comment; the honeypot field is hidden from real users."""

    blogId = ObjectIdField(required=True)
    name = forms.CharField(max_length=100)
    message = forms.CharField(max_length=2000)
    website = forms.CharField(required=False)

    def clean_website(self):
        website = self.cleaned_data.get("website")
        if website:
            raise ValidationError("Bot detected.")
        return website
