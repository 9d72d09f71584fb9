from datetime import time
from unittest import mock

from django.core.exceptions import ValidationError as ModelValidationError
from django.db import OperationalError
from django.test import TestCase, override_settings

from core.exceptions import NotFound, ScheduleConflict, ValidationError
from core.tests.factories import make_doctor, make_patient, monday_morning_payload, week_payload
from apps.schedules.models import DaySchedule, TimeSlot, WeeklyTemplate, validate_max_occupancy
from apps.schedules.services import get_template, lookup_template, patch_day, put_template


class GetTemplateTests(TestCase):

    def setUp(self):
        self.doctor = make_doctor()

    def test_creates_all_days_off_default_once(self):
        first = get_template(self.doctor.pk)
        second = get_template(str(self.doctor.pk))

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(WeeklyTemplate.objects.filter(clinician=self.doctor).count(), 1)
        days = list(first.days.all())
        self.assertEqual([d.day for d in days], [
            'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday'
        ])
        self.assertTrue(all(not d.is_working_day for d in days))
        self.assertEqual(first.default_slot_duration, 30)
        self.assertEqual(first.max_occupancy_per_slot, 1)
        self.assertEqual((first.break_start, first.break_end), (time(13, 0), time(14, 0)))

    def test_unknown_or_non_clinician_ids(self):
        with self.assertRaises(NotFound):
            get_template(999999)
        with self.assertRaises(NotFound):
            get_template(make_patient().pk)
        with self.assertRaises(NotFound):
            get_template('abc')

    def test_lookup_does_not_create(self):
        with self.assertRaises(NotFound):
            lookup_template(self.doctor.pk)
        self.assertFalse(WeeklyTemplate.objects.exists())


class PutTemplateTests(TestCase):

    def setUp(self):
        self.doctor = make_doctor()

    def test_replaces_whole_template(self):
        template = put_template(self.doctor.pk, monday_morning_payload(occupancy=3), user=self.doctor)

        self.assertEqual(template.max_occupancy_per_slot, 3)
        self.assertEqual((template.break_start, template.break_end), (time(10, 0), time(10, 30)))
        self.assertEqual(template.updated_by, self.doctor)
        monday = template.day('Monday')
        self.assertTrue(monday.is_working_day)
        self.assertEqual(
            [(s.start_time, s.end_time) for s in monday.time_slots.all()],
            [(time(9, 0), time(12, 0))]
        )

        template = put_template(self.doctor.pk, week_payload(working={'Friday': [('14:00', '16:00')]}))
        self.assertFalse(template.day('Monday').is_working_day)
        self.assertEqual(template.day('Monday').time_slots.count(), 0)
        self.assertTrue(template.day('Friday').is_working_day)
        self.assertIsNone(template.break_start)
        self.assertEqual(DaySchedule.objects.filter(template=template).count(), 7)

    def test_rejects_incomplete_week(self):
        payload = week_payload()
        payload['weekly_schedule'] = payload['weekly_schedule'][:6]
        with self.assertRaises(ValidationError):
            put_template(self.doctor.pk, payload)

    def test_rejects_duplicate_days(self):
        payload = week_payload()
        payload['weekly_schedule'][6]['day'] = 'Monday'
        with self.assertRaises(ValidationError):
            put_template(self.doctor.pk, payload)

    def test_rejects_out_of_range_values(self):
        for duration in [4, 121, '30', True]:
            with self.subTest(duration=duration), self.assertRaises(ValidationError):
                put_template(self.doctor.pk, week_payload(duration=duration))
        for occupancy in [0, 11]:
            with self.subTest(occupancy=occupancy), self.assertRaises(ValidationError):
                put_template(self.doctor.pk, week_payload(occupancy=occupancy))

    @override_settings(SCHEDULING={'MAX_OCCUPANCY_LIMIT': 20})
    def test_capacity_limit_comes_from_settings(self):
        template = put_template(self.doctor.pk, week_payload(occupancy=15))
        self.assertEqual(template.max_occupancy_per_slot, 15)
        validate_max_occupancy(20)
        with self.assertRaises(ValidationError):
            put_template(self.doctor.pk, week_payload(occupancy=21))
        with self.assertRaises(ModelValidationError):
            validate_max_occupancy(21)

    def test_model_validator_uses_default_limit(self):
        validate_max_occupancy(10)
        with self.assertRaises(ModelValidationError):
            validate_max_occupancy(11)

    def test_rejects_bad_intervals(self):
        bad = [
            [('9:00', '25:00')],
            [('10:00', '09:00')],
            [('09:00', '09:45')],
            [('09:00', '10:00'), ('09:30', '10:30')],
        ]
        for intervals in bad:
            with self.subTest(intervals=intervals), self.assertRaises(ValidationError):
                put_template(self.doctor.pk, week_payload(working={'Monday': intervals}))

    def test_rejects_inverted_break(self):
        with self.assertRaises(ValidationError):
            put_template(self.doctor.pk, week_payload(break_time=('14:00', '13:00')))

    def test_nothing_written_when_invalid(self):
        payload = week_payload(duration=500)
        with self.assertRaises(ValidationError):
            put_template(self.doctor.pk, payload)
        self.assertFalse(WeeklyTemplate.objects.exists())


class PatchDayTests(TestCase):

    def setUp(self):
        self.doctor = make_doctor()
        put_template(self.doctor.pk, monday_morning_payload())

    def test_replaces_only_that_day(self):
        template = patch_day(self.doctor.pk, 'tuesday', {
            'is_working_day': True,
            'time_slots': [{'start_time': '14:00', 'end_time': '15:00'}],
        })

        tuesday = template.day('Tuesday')
        self.assertTrue(tuesday.is_working_day)
        self.assertEqual([(s.start_time, s.end_time) for s in tuesday.time_slots.all()], [(time(14), time(15))])
        self.assertTrue(template.day('Monday').is_working_day)
        self.assertEqual(template.day('Monday').time_slots.count(), 1)

    def test_day_off_clears_intervals(self):
        template = patch_day(self.doctor.pk, 'Monday', {'is_working_day': False, 'time_slots': []})
        self.assertFalse(template.day('Monday').is_working_day)
        self.assertEqual(template.day('Monday').time_slots.count(), 0)

    def test_unknown_day(self):
        with self.assertRaises(NotFound):
            patch_day(self.doctor.pk, 'Funday', {'is_working_day': False})

    def test_validates_against_template_duration(self):
        with self.assertRaises(ValidationError):
            patch_day(self.doctor.pk, 'Monday', {
                'is_working_day': True,
                'time_slots': [{'start_time': '09:00', 'end_time': '09:20'}],
            })

    def test_storage_conflict_is_reported_and_rolled_back(self):
        with mock.patch.object(TimeSlot.objects, 'bulk_create', side_effect=OperationalError('database is locked')):
            with self.assertRaises(ScheduleConflict):
                patch_day(self.doctor.pk, 'Monday', {
                    'is_working_day': True,
                    'time_slots': [{'start_time': '14:00', 'end_time': '15:00'}],
                })

        monday = lookup_template(self.doctor.pk).day('Monday')
        self.assertEqual([(s.start_time, s.end_time) for s in monday.time_slots.all()], [(time(9), time(12))])

    def test_put_template_storage_conflict(self):
        with mock.patch.object(TimeSlot.objects, 'bulk_create', side_effect=OperationalError('database is locked')):
            with self.assertRaises(ScheduleConflict):
                put_template(self.doctor.pk, week_payload(working={'Friday': [('14:00', '16:00')]}))

        template = lookup_template(self.doctor.pk)
        self.assertTrue(template.day('Monday').is_working_day)
        self.assertFalse(template.day('Friday').is_working_day)
