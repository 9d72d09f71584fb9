from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from core.tests.factories import (
    make_admin, make_doctor, make_patient,
    monday_morning_payload, upcoming
)
from apps.appointments.models import Appointment


class ScheduleViewTests(APITestCase):

    def setUp(self):
        self.doctor = make_doctor()
        self.other_doctor = make_doctor()
        self.patient = make_patient()
        self.admin = make_admin()
        self.url = f'/api/schedules/schedule/{self.doctor.pk}/'

    def test_requires_authentication(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_clinician_reads_own_default_template(self):
        self.client.force_authenticate(self.doctor)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        data = response.data['data']
        self.assertEqual(len(data['weekly_schedule']), 7)
        self.assertEqual(data['break_time'], {'start': '13:00', 'end': '14:00'})

    def test_patient_may_read_but_not_write(self):
        self.client.force_authenticate(self.patient)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)

        response = self.client.put(self.url, monday_morning_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'not_authorized')

    def test_other_clinician_is_denied(self):
        self.client.force_authenticate(self.other_doctor)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.put(self.url, monday_morning_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_replaces_template(self):
        self.client.force_authenticate(self.admin)
        response = self.client.put(self.url, monday_morning_payload(occupancy=2), format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['max_occupancy_per_slot'], 2)
        monday = data['weekly_schedule'][0]
        self.assertEqual(monday['day'], 'Monday')
        self.assertEqual(monday['time_slots'][0]['start_time'], '09:00')

    def test_invalid_payload_returns_envelope(self):
        self.client.force_authenticate(self.doctor)
        payload = monday_morning_payload()
        payload['default_slot_duration'] = 200

        response = self.client.put(self.url, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error'], 'validation_error')
        self.assertIn('default_slot_duration', response.data['errors'])

    def test_capacity_limit_follows_settings(self):
        self.client.force_authenticate(self.doctor)
        response = self.client.put(self.url, monday_morning_payload(occupancy=15), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('max_occupancy_per_slot', response.data['errors'])

        with override_settings(SCHEDULING={'MAX_OCCUPANCY_LIMIT': 20}):
            response = self.client.put(self.url, monday_morning_payload(occupancy=15), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['max_occupancy_per_slot'], 15)

    def test_unknown_clinician(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/schedules/schedule/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'not_found')


class ScheduleDayViewTests(APITestCase):

    def setUp(self):
        self.doctor = make_doctor()
        self.client.force_authenticate(self.doctor)

    def test_patch_single_day(self):
        response = self.client.patch(
            f'/api/schedules/schedule/{self.doctor.pk}/Wednesday/',
            {'is_working_day': True, 'time_slots': [{'start_time': '08:00', 'end_time': '09:00'}]},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        wednesday = response.data['data']['weekly_schedule'][2]
        self.assertTrue(wednesday['is_working_day'])
        self.assertEqual(wednesday['time_slots'], [{'start_time': '08:00', 'end_time': '09:00', 'is_available': True}])

    def test_unknown_day_is_not_found(self):
        response = self.client.patch(
            f'/api/schedules/schedule/{self.doctor.pk}/Someday/',
            {'is_working_day': False},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_malformed_time(self):
        response = self.client.patch(
            f'/api/schedules/schedule/{self.doctor.pk}/Monday/',
            {'is_working_day': True, 'time_slots': [{'start_time': '8am', 'end_time': '09:00'}]},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AvailableSlotsViewTests(APITestCase):

    def setUp(self):
        self.doctor = make_doctor()
        self.patient = make_patient()
        self.monday = upcoming(0)
        self.client.force_authenticate(self.doctor)
        self.client.put(f'/api/schedules/schedule/{self.doctor.pk}/', monday_morning_payload(), format='json')
        self.client.force_authenticate(self.patient)

    def url(self, day):
        return f'/api/schedules/schedule/{self.doctor.pk}/available-slots/{day.isoformat()}/'

    def test_lists_free_slots_in_order(self):
        Appointment.objects.create(
            clinician=self.doctor, patient=self.patient,
            date=self.monday, time='11:00', end_time='11:30'
        )
        response = self.client.get(self.url(self.monday))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        starts = [slot['start_time'] for slot in response.data['data']['available_slots']]
        self.assertEqual(starts, ['09:00', '09:30', '10:30', '11:30'])
        self.assertEqual(response.data['data']['available_slots'][0]['duration'], 30)

    def test_bad_date(self):
        response = self.client.get(f'/api/schedules/schedule/{self.doctor.pk}/available-slots/2024-13-40/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_no_template_is_not_found(self):
        other = make_doctor()
        response = self.client.get(
            f'/api/schedules/schedule/{other.pk}/available-slots/{self.monday.isoformat()}/'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
