# Generated migration for the append-only audit trail

import django.core.serializers.json
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
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=100)),
                ('resource_type', models.CharField(blank=True, choices=[('user', 'User'), ('subscription', 'Subscription'), ('content', 'Content'), ('admin', 'Admin'), ('system', 'System')], default='', max_length=20)),
                ('resource_id', models.CharField(blank=True, default='', max_length=100)),
                ('details', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('severity', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=10)),
                ('outcome', models.CharField(choices=[('success', 'Success'), ('failure', 'Failure'), ('warning', 'Warning')], default='success', max_length=10)),
                ('ip_address', models.CharField(blank=True, default='', max_length=45)),
                ('user_agent', models.CharField(blank=True, default='', max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'audit log',
                'verbose_name_plural': 'audit logs',
                'db_table': 'audit_log',
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='audit_log_action_4f1b2e_idx'),
                    models.Index(fields=['resource_type', 'resource_id'], name='audit_log_resourc_9c0d3a_idx'),
                    models.Index(fields=['severity'], name='audit_log_severit_2a6e51_idx'),
                    models.Index(fields=['created_at'], name='audit_log_created_8e7f04_idx'),
                ],
            },
        ),
    ]
