import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Sport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50, unique=True)),
                ('is_active', models.BooleanField(default=True)),
            ],
        ),
        migrations.CreateModel(
            name='Venue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('city', models.CharField(max_length=100)),
                ('address', models.CharField(blank=True, max_length=200)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Ground',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('allows_slot_booking', models.BooleanField(default=True)),
                ('allows_academy', models.BooleanField(default=False)),
                ('allows_membership', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('supported_sports', models.ManyToManyField(blank=True, related_name='grounds', to='grounds.sport')),
                ('venue', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='grounds', to='grounds.venue')),
            ],
        ),
        migrations.CreateModel(
            name='SlotTime',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label', models.CharField(max_length=40)),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('price_sun', models.PositiveIntegerField(default=0)),
                ('price_mon', models.PositiveIntegerField(default=0)),
                ('price_tue', models.PositiveIntegerField(default=0)),
                ('price_wed', models.PositiveIntegerField(default=0)),
                ('price_thu', models.PositiveIntegerField(default=0)),
                ('price_fri', models.PositiveIntegerField(default=0)),
                ('price_sat', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('ground', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='slot_times', to='grounds.ground')),
            ],
            options={
                'ordering': ('ground', 'start_time'),
                'unique_together': {('ground', 'label')},
            },
        ),
    ]
