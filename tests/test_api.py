"""HTTP surface: status codes, error envelope and role scoping."""
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.appointments.models import Appointment
from apps.doctors.models import DoctorSchedule
from core.constants import AppointmentStatus

pytestmark = pytest.mark.django_db


def booking_payload(doctor, day, start='09:00', **extra):
    payload = {
        'doctor_id': doctor.pk,
        'appointment_date': day.isoformat(),
        'appointment_time': start,
        'type': 'clinic_visit',
    }
    payload.update(extra)
    return payload


@pytest.fixture
def booked(api_client, schedule, doctor, patient, monday):
    response = api_client(patient).post(
        '/api/appointments/', booking_payload(doctor, monday, reason='Checkup'), format='json'
    )
    assert response.status_code == 201
    return Appointment.objects.get(pk=response.data['id'])


class TestSlots:

    def test_lists_open_slots(self, api_client, schedule, doctor, patient, monday):
        response = api_client(patient).get(
            f'/api/appointments/slots/{doctor.pk}/', {'date': monday.isoformat()}
        )

        assert response.status_code == 200
        assert response.data['available_slots'] == ['09:00', '09:30', '10:00', '11:00', '11:30']
        assert response.data['count'] == 5

    def test_date_is_required(self, api_client, schedule, doctor, patient):
        response = api_client(patient).get(f'/api/appointments/slots/{doctor.pk}/')

        assert response.status_code == 400

    def test_unknown_doctor(self, api_client, patient, monday):
        response = api_client(patient).get(
            '/api/appointments/slots/9999/', {'date': monday.isoformat()}
        )

        assert response.status_code == 404
        assert response.data['code'] == 'not_found'

    def test_requires_authentication(self, api_client, doctor, monday):
        response = api_client().get(
            f'/api/appointments/slots/{doctor.pk}/', {'date': monday.isoformat()}
        )

        assert response.status_code == 401


class TestCreate:

    def test_patient_books_for_self(self, booked, patient):
        assert booked.patient == patient
        assert booked.status == AppointmentStatus.SCHEDULED
        assert booked.reason == 'Checkup'

    def test_double_booking_is_a_conflict(self, api_client, booked, doctor, other_patient, monday):
        response = api_client(other_patient).post(
            '/api/appointments/', booking_payload(doctor, monday), format='json'
        )

        assert response.status_code == 409
        assert response.data == {
            'error': 'This time slot is not available', 'code': 'slot_unavailable'
        }

    def test_past_date(self, api_client, schedule, doctor, patient):
        yesterday = timezone.localdate() - timedelta(days=1)
        response = api_client(patient).post(
            '/api/appointments/', booking_payload(doctor, yesterday), format='json'
        )

        assert response.status_code == 400
        assert response.data['code'] == 'past_date'

    def test_bad_time_format(self, api_client, schedule, doctor, patient, monday):
        response = api_client(patient).post(
            '/api/appointments/', booking_payload(doctor, monday, '9:00'), format='json'
        )

        assert response.status_code == 400
        assert response.data['code'] == 'invalid_request'

    def test_admin_must_name_the_patient(self, api_client, schedule, doctor, patient,
                                         admin_user, monday):
        client = api_client(admin_user)

        missing = client.post('/api/appointments/', booking_payload(doctor, monday), format='json')
        created = client.post(
            '/api/appointments/',
            booking_payload(doctor, monday, patient_id=patient.pk),
            format='json'
        )

        assert missing.status_code == 400
        assert created.status_code == 201
        assert created.data['patient']['id'] == patient.pk

    def test_patient_cannot_book_for_someone_else(self, api_client, schedule, doctor, patient,
                                                  other_patient, monday):
        response = api_client(patient).post(
            '/api/appointments/',
            booking_payload(doctor, monday, patient_id=other_patient.pk),
            format='json'
        )

        assert response.status_code == 403

    def test_doctor_cannot_book(self, api_client, schedule, doctor, monday):
        response = api_client(doctor).post(
            '/api/appointments/', booking_payload(doctor, monday), format='json'
        )

        assert response.status_code == 403


class TestListAndRetrieve:

    def test_list_is_role_scoped(self, api_client, booked, other_patient, doctor, admin_user):
        assert api_client(other_patient).get('/api/appointments/').data['count'] == 0
        assert api_client(doctor).get('/api/appointments/').data['count'] == 1
        assert api_client(admin_user).get('/api/appointments/').data['count'] == 1

    def test_filter_by_status_list(self, api_client, booked, patient):
        client = api_client(patient)

        active = client.get('/api/appointments/', {'status': 'scheduled,confirmed'})
        closed = client.get('/api/appointments/', {'status': 'cancelled'})

        assert active.data['count'] == 1
        assert closed.data['count'] == 0

    def test_filter_by_date_range(self, api_client, booked, patient, monday):
        client = api_client(patient)

        after = client.get('/api/appointments/', {'date_from': (monday + timedelta(days=1)).isoformat()})
        within = client.get('/api/appointments/', {'date_from': monday.isoformat(), 'date_to': monday.isoformat()})

        assert after.data['count'] == 0
        assert within.data['count'] == 1

    def test_retrieve(self, api_client, booked, patient, other_patient):
        own = api_client(patient).get(f'/api/appointments/{booked.pk}/')
        other = api_client(other_patient).get(f'/api/appointments/{booked.pk}/')

        assert own.status_code == 200
        assert own.data['appointment_time'] == '09:00'
        assert other.status_code == 403

    def test_missing_appointment(self, api_client, patient):
        response = api_client(patient).get('/api/appointments/424242/')

        assert response.status_code == 404

    def test_delete_is_not_allowed(self, api_client, booked, admin_user):
        response = api_client(admin_user).delete(f'/api/appointments/{booked.pk}/')

        assert response.status_code == 405
        assert Appointment.objects.filter(pk=booked.pk).exists()


class TestMutations:

    def test_update_notes(self, api_client, booked, doctor):
        response = api_client(doctor).patch(
            f'/api/appointments/{booked.pk}/', {'notes': 'Bring x-rays'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['notes'] == 'Bring x-rays'

    def test_update_cannot_move_the_slot(self, api_client, booked, patient):
        response = api_client(patient).patch(
            f'/api/appointments/{booked.pk}/', {'appointment_time': '10:00'}, format='json'
        )

        assert response.status_code == 400
        assert response.data['code'] == 'invalid_request'

    def test_cancel_round_trip(self, api_client, booked, patient, doctor, monday):
        client = api_client(patient)
        slots_url = f'/api/appointments/slots/{doctor.pk}/'

        assert '09:00' not in client.get(slots_url, {'date': monday.isoformat()}).data['available_slots']

        response = client.post(
            f'/api/appointments/{booked.pk}/cancel/', {'cancel_reason': 'Sick'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['appointment']['status'] == 'cancelled'
        assert response.data['appointment']['cancel_reason'] == 'Sick'
        assert '09:00' in client.get(slots_url, {'date': monday.isoformat()}).data['available_slots']

    def test_cancel_twice(self, api_client, booked, patient):
        client = api_client(patient)
        client.post(f'/api/appointments/{booked.pk}/cancel/', {'cancel_reason': 'Sick'}, format='json')

        response = client.post(
            f'/api/appointments/{booked.pk}/cancel/', {'cancel_reason': 'Other'}, format='json'
        )

        assert response.status_code == 409
        assert response.data['code'] == 'already_terminal'
        booked.refresh_from_db()
        assert booked.cancel_reason == 'Sick'

    def test_status_change_by_role(self, api_client, booked, patient, doctor):
        url = f'/api/appointments/{booked.pk}/status/'

        forbidden = api_client(patient).patch(url, {'status': 'confirmed'}, format='json')
        confirmed = api_client(doctor).patch(url, {'status': 'confirmed'}, format='json')
        unknown = api_client(doctor).patch(url, {'status': 'rescheduled'}, format='json')

        assert forbidden.status_code == 403
        assert forbidden.data['code'] == 'forbidden'
        assert confirmed.status_code == 200
        assert confirmed.data['appointment']['status'] == 'confirmed'
        assert unknown.status_code == 400
        assert unknown.data['code'] == 'invalid_status'

    def test_stats(self, api_client, booked, patient):
        response = api_client(patient).get('/api/appointments/stats/')

        assert response.status_code == 200
        assert response.data['total'] == 1
        assert response.data['scheduled'] == 1


class TestScheduleEndpoints:

    def test_doctor_reads_own_week(self, api_client, doctor):
        response = api_client(doctor).get('/api/doctors/schedules/')

        assert response.status_code == 200
        assert response.data['doctor_id'] == doctor.pk
        assert len(response.data['schedules']) == 7

    def test_patient_must_name_a_doctor(self, api_client, doctor, patient):
        missing = api_client(patient).get('/api/doctors/schedules/')
        named = api_client(patient).get('/api/doctors/schedules/', {'doctor_id': doctor.pk})

        assert missing.status_code == 400
        assert named.status_code == 200

    def test_doctor_upserts_a_day(self, api_client, doctor):
        response = api_client(doctor).put('/api/doctors/schedules/tuesday/', {
            'time_slots': [{'start_time': '10:00', 'end_time': '13:00'}],
            'slot_duration_minutes': 60,
        }, format='json')

        assert response.status_code == 200
        assert response.data['day_of_week'] == 'tuesday'
        assert response.data['slot_duration_minutes'] == 60

    def test_invalid_interval_rejected(self, api_client, doctor):
        response = api_client(doctor).put('/api/doctors/schedules/tuesday/', {
            'time_slots': [{'start_time': '13:00', 'end_time': '10:00'}],
        }, format='json')

        assert response.status_code == 400

    def test_admin_needs_doctor_id(self, api_client, doctor, admin_user):
        client = api_client(admin_user)

        missing = client.put('/api/doctors/schedules/friday/', {'notes': 'x'}, format='json')
        named = client.put(
            '/api/doctors/schedules/friday/', {'doctor_id': doctor.pk, 'notes': 'x'}, format='json'
        )

        assert missing.status_code == 400
        assert named.status_code == 200

    def test_doctor_cannot_edit_another_doctor(self, api_client, doctor, other_doctor):
        response = api_client(other_doctor).put(
            '/api/doctors/schedules/monday/', {'doctor_id': doctor.pk, 'notes': 'x'}, format='json'
        )

        assert response.status_code == 403

    def test_patient_cannot_write(self, api_client, patient):
        response = api_client(patient).put('/api/doctors/schedules/monday/', {}, format='json')

        assert response.status_code == 403

    def test_toggle(self, api_client, schedule, doctor):
        response = api_client(doctor).patch('/api/doctors/schedules/monday/toggle/')

        assert response.status_code == 200
        assert response.data['schedule']['is_available'] is False

    def test_patient_read_does_not_open_the_doctor(self, api_client, doctor, patient, monday):
        client = api_client(patient)

        week = client.get('/api/doctors/schedules/', {'doctor_id': doctor.pk})
        slots = client.get(f'/api/appointments/slots/{doctor.pk}/', {'date': monday.isoformat()})
        booking = client.post('/api/appointments/', booking_payload(doctor, monday), format='json')

        assert week.status_code == 200
        assert week.data['schedules'] == []
        assert not DoctorSchedule.objects.filter(doctor=doctor).exists()
        assert slots.data['available_slots'] == []
        assert booking.status_code == 409
        assert booking.data['code'] == 'slot_unavailable'

    def test_switched_off_interval_is_kept_and_not_offered(self, api_client, doctor, patient, monday):
        response = api_client(doctor).put('/api/doctors/schedules/monday/', {
            'time_slots': [{'start_time': '09:00', 'end_time': '10:00', 'is_available': False}],
        }, format='json')
        slots = api_client(patient).get(
            f'/api/appointments/slots/{doctor.pk}/', {'date': monday.isoformat()}
        )

        assert response.status_code == 200
        assert response.data['time_slots'][0]['is_available'] is False
        stored = DoctorSchedule.objects.get(doctor=doctor, day_of_week='monday')
        assert stored.time_slots[0]['is_available'] is False
        assert slots.data['available_slots'] == []
