"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory

    user = UserFactory()
    staff = UserFactory(is_staff=True)
"""

import factory

from authentication.models import User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active users through UserManager.create_user() so the
    post_save signal assigns the default role exactly as in production.

    Examples:
        user = UserFactory()
        user = UserFactory(username="alice")
        user = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"user{n}")
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )
