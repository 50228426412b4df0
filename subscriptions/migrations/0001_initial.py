# Generated migration for subscriptions and content access grants

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Subscription',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('plan_id', models.CharField(choices=[('premium_monthly', 'Premium Monthly'), ('premium_yearly', 'Premium Yearly'), ('enterprise_monthly', 'Enterprise Monthly'), ('enterprise_yearly', 'Enterprise Yearly')], max_length=40)),
                ('status', models.CharField(choices=[('active', 'Active'), ('cancelled', 'Cancelled'), ('expired', 'Expired'), ('past_due', 'Past Due')], default='active', max_length=20)),
                ('current_period_start', models.DateTimeField(default=django.utils.timezone.now)),
                ('current_period_end', models.DateTimeField(help_text='End of current billing period')),
                ('cancel_at_period_end', models.BooleanField(default=False, help_text='Whether subscription will cancel at period end')),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('trial_start', models.DateTimeField(blank=True, null=True)),
                ('trial_end', models.DateTimeField(blank=True, null=True)),
                ('amount', models.PositiveIntegerField(help_text='Price in minor currency units')),
                ('currency', models.CharField(default='usd', max_length=3)),
                ('interval', models.CharField(choices=[('month', 'Monthly'), ('year', 'Yearly')], max_length=10)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subscriptions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'subscription',
                'verbose_name_plural': 'subscriptions',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['user', 'status'], name='subscriptio_user_id_6a2c1e_idx'),
                    models.Index(fields=['status', 'current_period_end'], name='subscriptio_status_b81f3d_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'active')), fields=('user',), name='one_active_subscription_per_user'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ContentAccessGrant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content_type', models.CharField(choices=[('magazine', 'Magazine'), ('article', 'Article'), ('video', 'Video'), ('document', 'Document')], max_length=20)),
                ('content_id', models.CharField(max_length=100)),
                ('access_granted', models.BooleanField(default=True)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('access_reason', models.CharField(choices=[('subscription', 'Subscription'), ('manual_grant', 'Manual grant'), ('trial', 'Trial'), ('promotion', 'Promotion')], default='manual_grant', max_length=20)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('granted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='content_grants_given', to=settings.AUTH_USER_MODEL)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='content_grants', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'content access grant',
                'verbose_name_plural': 'content access grants',
                'db_table': 'subscriptions_content_access_grant',
                'indexes': [
                    models.Index(fields=['expires_at'], name='subscriptio_expires_0d5e7a_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'content_type', 'content_id'), name='unique_content_grant'),
                ],
            },
        ),
    ]
