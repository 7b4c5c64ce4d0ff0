from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models

from utils.ids import generate_object_id


class CustomUserManager(UserManager):
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", CustomUser.ROLE_ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class CustomUser(AbstractUser):
    """Identity record created by the sign-in provider on first login."""

    ROLE_USER = "user"
    ROLE_AUTHOR = "author"
    ROLE_ADMIN = "admin"
    ROLE_CHOICES = [
        (ROLE_USER, "User"),
        (ROLE_AUTHOR, "Author"),
        (ROLE_ADMIN, "Admin"),
    ]

    id = models.CharField(primary_key=True, max_length=24, default=generate_object_id, editable=False)
    email = models.EmailField("email address", unique=True)
    name = models.CharField(max_length=150, blank=True, help_text="Display name")
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_USER, db_index=True)
    image = models.CharField(max_length=500, blank=True, help_text="Avatar URL")

    objects = CustomUserManager()

    class Meta:
        db_table = "users"
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return self.email

    @property
    def created_at(self):
        return self.date_joined

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    def to_dict(self):
        return {
            "id": self.pk,
            "name": self.display_name,
            "email": self.email,
            "role": self.role,
            "image": self.image,
            "createdAt": self.date_joined,
        }
