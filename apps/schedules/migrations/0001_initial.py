import apps.schedules.models
import django.core.validators
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
            name='WeeklyTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('default_slot_duration', models.PositiveSmallIntegerField(default=30, help_text='Slot length in minutes', validators=[django.core.validators.MinValueValidator(5), django.core.validators.MaxValueValidator(120)])),
                ('break_start', models.TimeField(blank=True, null=True)),
                ('break_end', models.TimeField(blank=True, null=True)),
                ('max_occupancy_per_slot', models.PositiveSmallIntegerField(default=1, help_text='Simultaneous bookings a single slot tolerates', validators=[django.core.validators.MinValueValidator(1), apps.schedules.models.validate_max_occupancy])),
                ('clinician', models.OneToOneField(limit_choices_to={'role': 'doctor'}, on_delete=django.db.models.deletion.CASCADE, related_name='weekly_template', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(blank=True, editable=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_weeklytemplates', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, editable=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_weeklytemplates', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'weekly_templates',
                'ordering': ['clinician'],
            },
        ),
        migrations.CreateModel(
            name='DaySchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('day', models.CharField(choices=[('Monday', 'Monday'), ('Tuesday', 'Tuesday'), ('Wednesday', 'Wednesday'), ('Thursday', 'Thursday'), ('Friday', 'Friday'), ('Saturday', 'Saturday'), ('Sunday', 'Sunday')], max_length=9)),
                ('position', models.PositiveSmallIntegerField(editable=False)),
                ('is_working_day', models.BooleanField(default=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='days', to='schedules.weeklytemplate')),
                ('updated_by', models.ForeignKey(blank=True, editable=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_day_schedules', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'day_schedules',
                'ordering': ['template', 'position'],
            },
        ),
        migrations.CreateModel(
            name='TimeSlot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('is_available', models.BooleanField(default=True)),
                ('day_schedule', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='time_slots', to='schedules.dayschedule')),
            ],
            options={
                'db_table': 'day_schedule_time_slots',
                'ordering': ['day_schedule', 'start_time'],
            },
        ),
        migrations.AddConstraint(
            model_name='dayschedule',
            constraint=models.UniqueConstraint(fields=('template', 'day'), name='unique_template_day'),
        ),
    ]
