# Generated manually
# Initial migration for letters app

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
            name='Letter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('sender_name', models.CharField(max_length=255)),
                ('sender_address', models.TextField(blank=True)),
                ('attorney_name', models.CharField(max_length=255)),
                ('recipient_name', models.CharField(max_length=255)),
                ('matter', models.TextField()),
                ('resolution', models.TextField()),
                ('jurisdiction', models.CharField(blank=True, max_length=255)),
                ('content', models.TextField()),
                ('ai_meta', models.JSONField(blank=True, default=dict, help_text='Full structured output from the AI')),
                ('status', models.CharField(choices=[('received', 'Received'), ('under_review', 'Under Review'), ('posted', 'Posted')], default='received', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='letters', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
