import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('grounds', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Academy',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('INACTIVE', 'Inactive')], default='ACTIVE', max_length=10)),
                ('status_changed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('name', models.CharField(max_length=100)),
                ('active_days', models.JSONField(default=list)),
                ('ground', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='%(class)s_programs', to='grounds.ground')),
                ('sport', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_programs', to='grounds.sport')),
                ('morning_slots', models.ManyToManyField(blank=True, related_name='%(class)s_morning', to='grounds.slottime')),
                ('evening_slots', models.ManyToManyField(blank=True, related_name='%(class)s_evening', to='grounds.slottime')),
            ],
            options={
                'verbose_name_plural': 'academies',
            },
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('INACTIVE', 'Inactive')], default='ACTIVE', max_length=10)),
                ('status_changed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('name', models.CharField(max_length=100)),
                ('ground', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='%(class)s_programs', to='grounds.ground')),
                ('sport', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_programs', to='grounds.sport')),
                ('morning_slots', models.ManyToManyField(blank=True, related_name='%(class)s_morning', to='grounds.slottime')),
                ('evening_slots', models.ManyToManyField(blank=True, related_name='%(class)s_evening', to='grounds.slottime')),
            ],
            options={
                'abstract': False,
            },
        ),
    ]
