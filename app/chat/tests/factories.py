"""
Factory Boy factories for chat models.

Provides test data generation for:
- Conversation: A requester and a staff member
- Message: Entries appended through the real sequence allocation

Usage:
    from chat.tests.factories import ConversationFactory, MessageFactory

    conversation = ConversationFactory()
    message = MessageFactory(conversation=conversation)  # sent by the requester
    reply = MessageFactory(conversation=conversation, sender=conversation.staff)
"""

import factory

from authentication.tests.factories import AdminFactory, UserFactory
from chat.models import Conversation, Message


class ConversationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Conversation model.

    Creates a parent requester talking to a new admin.

    Examples:
        conversation = ConversationFactory()
        conversation = ConversationFactory(requester=child, staff=admin)
    """

    class Meta:
        model = Conversation

    requester = factory.SubFactory(UserFactory)
    staff = factory.SubFactory(AdminFactory)
    last_sequence = 0
    last_message_at = None


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Messages are appended through MessageService._append so that sequence
    and the conversation's last_sequence/last_message_at stay consistent.
    The sender defaults to the conversation's requester.

    Examples:
        message = MessageFactory()
        read = MessageFactory(conversation=conversation, is_read=True)
        announcement = MessageFactory(sender=admin, is_announcement=True)
    """

    class Meta:
        model = Message

    conversation = factory.SubFactory(ConversationFactory)
    sender = factory.LazyAttribute(lambda o: o.conversation.requester)
    content = factory.Faker("sentence")
    is_read = False
    is_announcement = False
    client_token = None

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        from chat.services import MessageService

        is_read = kwargs.pop("is_read", False)
        message = MessageService._append(
            kwargs["conversation"].id,
            kwargs["sender"].id,
            kwargs["content"],
            client_token=kwargs.get("client_token"),
            is_announcement=kwargs.get("is_announcement", False),
        )
        if is_read:
            message.is_read = True
            message.save(update_fields=["is_read", "updated_at"])
        return message
