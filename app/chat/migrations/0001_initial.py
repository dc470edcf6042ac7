import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "last_sequence",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Ordering key of the latest message (0 when empty)",
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Timestamp of the latest message (for sorting)",
                        null=True,
                    ),
                ),
                (
                    "requester",
                    models.ForeignKey(
                        help_text="Participant who started the conversation (parent or child)",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="requester_conversations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        help_text="Designated staff participant of the conversation",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="staff_conversations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-last_message_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["staff", "-last_message_at"],
                        name="chat_conv_staff_recent_idx",
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("requester", "staff"),
                        name="unique_conversation_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("requester", models.F("staff")), _negated=True),
                        name="conversation_distinct_participants",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "sequence",
                    models.PositiveBigIntegerField(
                        help_text="Ordering key within the conversation (history cursor)"
                    ),
                ),
                ("content", models.TextField(help_text="Message text")),
                (
                    "is_read",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the recipient has read this message",
                    ),
                ),
                (
                    "is_announcement",
                    models.BooleanField(
                        default=False,
                        help_text="Whether this message was fanned out by an administrator broadcast",
                    ),
                ),
                (
                    "client_token",
                    models.CharField(
                        blank=True,
                        help_text="Client-supplied idempotency key (unique per conversation and sender)",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="messages",
                        to="chat.conversation",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["sequence"],
                "indexes": [
                    models.Index(
                        condition=models.Q(("is_read", False)),
                        fields=["conversation", "is_read"],
                        name="chat_msg_conv_unread_idx",
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("conversation", "sequence"),
                        name="unique_message_sequence",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("client_token__isnull", False)),
                        fields=("conversation", "sender", "client_token"),
                        name="unique_message_client_token",
                    ),
                ],
            },
        ),
    ]
