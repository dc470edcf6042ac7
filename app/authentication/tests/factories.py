"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory, AdminFactory

    parent = UserFactory()
    admin = AdminFactory()
    child = UserFactory(role=User.Role.CHILD)
"""

import factory

from authentication.models import User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active users with the parent role by default.

    Examples:
        user = UserFactory()
        executor = UserFactory(role=User.Role.EXECUTOR)
        inactive = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = User.Role.PARENT
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class AdminFactory(UserFactory):
    """Factory for users holding the admin role."""

    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    role = User.Role.ADMIN
    is_staff = True
