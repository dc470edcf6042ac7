"""
Authentication models.

This module defines the identity used by the messaging subsystem:
- User: Custom user model with email-based authentication and a role

Roles form a closed set. Only authorization points (views, broadcast,
conversation start) and participant resolution read them; the
conversation store itself is role-agnostic.

Related files:
    - managers.py: Custom user manager for email-based creation
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        role: Back-office role (admin, executor, parent, child)
        first_name / last_name: Display name used in push titles
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created

    Usage:
        parent = User.objects.create_user(
            email="parent@example.com",
            password="securepassword",
            role=User.Role.PARENT,
        )
    """

    class Role(models.TextChoices):
        """
        Back-office roles.

        ADMIN is the staff counterparty of conversations and the only role
        allowed to broadcast. PARENT and CHILD are requesters.
        """

        ADMIN = "admin", "Administrator"
        EXECUTOR = "executor", "Executor"
        PARENT = "parent", "Parent"
        CHILD = "child", "Child"

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.PARENT,
        db_index=True,
        help_text="Back-office role of this user",
    )
    first_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's first name",
    )
    last_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's last name",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return "First Last", or the email when no name is set."""
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def get_short_name(self):
        return self.first_name or self.email.split("@")[0]

    @property
    def is_admin(self) -> bool:
        """Whether this user holds the admin role."""
        return self.role == self.Role.ADMIN

    @property
    def is_requester(self) -> bool:
        """Whether this user starts conversations with staff (parent or child)."""
        return self.role in (self.Role.PARENT, self.Role.CHILD)
