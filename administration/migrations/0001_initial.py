# Generated migration for admin grants

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
            name='AdminGrant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('admin', 'Admin'), ('super_admin', 'Super admin')], default='admin', max_length=20)),
                ('permissions', models.JSONField(blank=True, default=list)),
                ('is_active', models.BooleanField(default=True)),
                ('last_admin_login', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admin_grants_created', to=settings.AUTH_USER_MODEL)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='admin_grant', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'admin grant',
                'verbose_name_plural': 'admin grants',
                'db_table': 'administration_admin_grant',
                'indexes': [
                    models.Index(fields=['role'], name='administrat_role_3e5a1c_idx'),
                    models.Index(fields=['is_active'], name='administrat_is_acti_7b2d90_idx'),
                ],
            },
        ),
    ]
