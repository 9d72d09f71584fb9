import threading

from django.db import connection
from django.test import TransactionTestCase

from core.exceptions import SlotUnavailable
from core.tests.factories import make_doctor, make_patient, monday_morning_payload, upcoming
from apps.appointments import scheduler
from apps.appointments.models import Appointment
from apps.schedules.services import put_template


class ConcurrentBookingTests(TransactionTestCase):
    """Simultaneous callers on one slot never overshoot its capacity"""

    callers = 8
    capacity = 3

    def setUp(self):
        self.doctor = make_doctor()
        self.patients = [make_patient() for _ in range(self.callers)]
        self.monday = upcoming(0)
        put_template(self.doctor.pk, monday_morning_payload(occupancy=self.capacity))

    def _race(self, action):
        barrier = threading.Barrier(self.callers)
        outcomes = []
        outcomes_lock = threading.Lock()

        def run(index):
            try:
                barrier.wait()
                try:
                    action(index)
                    result = 'ok'
                except SlotUnavailable:
                    result = 'unavailable'
                with outcomes_lock:
                    outcomes.append(result)
            finally:
                connection.close()

        threads = [threading.Thread(target=run, args=(i,)) for i in range(self.callers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes

    def test_exactly_capacity_bookings_succeed(self):
        def book(index):
            patient = self.patients[index]
            scheduler.book(patient, self.doctor.pk, patient.pk, self.monday, '09:00')

        outcomes = self._race(book)

        self.assertEqual(len(outcomes), self.callers)
        self.assertEqual(outcomes.count('ok'), self.capacity)
        self.assertEqual(outcomes.count('ok') + outcomes.count('unavailable'), self.callers)
        self.assertEqual(
            Appointment.objects.filter(clinician=self.doctor, date=self.monday, time='09:00').count(),
            self.capacity
        )

    def test_concurrent_reschedules_respect_capacity(self):
        appointments = [
            scheduler.book(patient, self.doctor.pk, patient.pk, self.monday, start)
            for patient, start in zip(self.patients, ['09:00'] * 3 + ['09:30'] * 3 + ['10:30'] * 2)
        ]

        def move(index):
            scheduler.clinician_reschedule(self.doctor, appointments[index].pk, self.monday, '11:00')

        outcomes = self._race(move)

        self.assertEqual(outcomes.count('ok'), self.capacity)
        self.assertEqual(
            Appointment.objects.filter(clinician=self.doctor, date=self.monday, time='11:00').count(),
            self.capacity
        )
