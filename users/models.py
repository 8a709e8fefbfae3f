"""User model for storefront customers and back-office staff.

Extends Django's ``AbstractUser`` with a unique, normalized email and an
optional contact phone used on shipping labels.
"""

from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.db import models


class User(AbstractUser):
    """Custom user with unique email.

    Staff users (``is_staff``) operate the admin order endpoints.
    """

    email = models.EmailField(unique=True)
    phone = models.CharField(
        max_length=16,
        blank=True,
        validators=[RegexValidator(r"^\+?[1-9]\d{1,14}$", message="Use E.164 format (e.g., +919876543210)")],
        help_text="Contact number printed on shipping labels, E.164 format",
    )

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        if self.phone:
            self.phone = self.phone.strip()
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        full = self.get_full_name()
        return full or self.username
