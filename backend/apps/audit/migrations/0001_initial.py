import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('category', models.CharField(choices=[('ORDER', 'Order'), ('BID', 'Bid'), ('ESCROW', 'Escrow'), ('SETTLEMENT', 'Settlement'), ('REVIEW', 'Review')], db_index=True, max_length=20)),
                ('action', models.CharField(db_index=True, max_length=100)),
                ('description', models.TextField()),
                ('order_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Additional context data')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Audit Log',
                'verbose_name_plural': 'Audit Logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['category', '-created_at'], name='audit_category_idx'),
                    models.Index(fields=['user', '-created_at'], name='audit_user_idx'),
                ],
            },
        ),
    ]
