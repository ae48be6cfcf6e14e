import pytest

from helpers import auth


@pytest.fixture
def finish(client):
    """Confirm and complete an appointment as its doctor."""
    async def _finish(doctor: dict, appointment: dict) -> dict:
        headers = auth(doctor["access_token"])
        await client.post(f"/api/doctor/appointments/{appointment['id']}/confirm", headers=headers)
        response = await client.post(
            f"/api/doctor/appointments/{appointment['id']}/notes",
            json={"doctor_notes": "Rest and fluids"},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _finish


async def _rate(client, patient, doctor, appointment, stars, comment=None):
    payload = {"doctor_id": doctor["user"]["id"], "appointment_id": appointment["id"], "stars": stars}
    if comment is not None:
        payload["comment"] = comment
    return await client.post("/api/ratings", json=payload, headers=auth(patient["access_token"]))


class TestSubmitRating:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("order", [(5, 3, 4), (3, 4, 5), (4, 5, 3), (3, 5, 4)])
    async def test_average_tracks_every_rating(
        self, client, register_patient, register_doctor, book, finish, order
    ) -> None:
        doctor = await register_doctor()
        body = None
        for stars in order:
            patient = await register_patient()
            appointment = await book(patient, doctor)
            await finish(doctor, appointment)
            response = await _rate(client, patient, doctor, appointment, stars)
            assert response.status_code == 201, response.text
            body = response.json()

        assert body["doctor_average_rating"] == 4.0
        assert body["doctor_total_ratings"] == 3

        directory = (await client.get("/api/doctors", headers=auth(doctor["access_token"]))).json()
        listed = next(d for d in directory if d["id"] == doctor["user"]["id"])
        assert listed["average_rating"] == 4.0
        assert listed["total_ratings"] == 3

    @pytest.mark.asyncio
    async def test_average_is_rounded_to_two_places(self, client, register_patient, register_doctor, book, finish) -> None:
        doctor = await register_doctor()
        body = None
        for stars in (5, 4, 4):
            patient = await register_patient()
            appointment = await book(patient, doctor)
            await finish(doctor, appointment)
            body = (await _rate(client, patient, doctor, appointment, stars)).json()

        assert body["doctor_average_rating"] == pytest.approx(4.33, abs=0.01)

    @pytest.mark.asyncio
    async def test_confirmed_appointment_can_be_rated(self, client, register_patient, register_doctor, book) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)
        await client.post(
            f"/api/doctor/appointments/{appointment['id']}/confirm", headers=auth(doctor["access_token"])
        )

        response = await _rate(client, patient, doctor, appointment, 4, comment="  Very kind  ")
        assert response.status_code == 201
        assert response.json()["rating"]["comment"] == "Very kind"

    @pytest.mark.asyncio
    async def test_pending_appointment_cannot_be_rated(self, client, register_patient, register_doctor, book) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)

        response = await _rate(client, patient, doctor, appointment, 5)
        assert response.status_code == 412
        assert response.json()["kind"] == "precondition_failed"

    @pytest.mark.asyncio
    async def test_second_rating_conflicts(self, client, register_patient, register_doctor, book, finish) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)
        await finish(doctor, appointment)

        assert (await _rate(client, patient, doctor, appointment, 5)).status_code == 201
        response = await _rate(client, patient, doctor, appointment, 1)
        assert response.status_code == 409

        directory = (await client.get("/api/doctors", headers=auth(patient["access_token"]))).json()
        listed = next(d for d in directory if d["id"] == doctor["user"]["id"])
        assert listed["total_ratings"] == 1
        assert listed["average_rating"] == 5.0

    @pytest.mark.asyncio
    async def test_wrong_doctor_is_not_found(self, client, register_patient, register_doctor, book, finish) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        other = await register_doctor()
        appointment = await book(patient, doctor)
        await finish(doctor, appointment)

        response = await _rate(client, patient, other, appointment, 5)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_someone_elses_appointment_is_not_found(self, client, register_patient, register_doctor, book, finish) -> None:
        patient = await register_patient()
        stranger = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)
        await finish(doctor, appointment)

        response = await _rate(client, stranger, doctor, appointment, 5)
        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stars", [-1, 6])
    async def test_stars_out_of_range(self, client, register_patient, register_doctor, book, finish, stars) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)
        await finish(doctor, appointment)

        response = await _rate(client, patient, doctor, appointment, stars)
        assert response.status_code == 400
        assert response.json()["kind"] == "validation_error"

    @pytest.mark.asyncio
    async def test_zero_stars_is_allowed(self, client, register_patient, register_doctor, book, finish) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)
        await finish(doctor, appointment)

        response = await _rate(client, patient, doctor, appointment, 0)
        assert response.status_code == 201
        assert response.json()["doctor_average_rating"] == 0.0

    @pytest.mark.asyncio
    async def test_doctors_cannot_rate(self, client, register_patient, register_doctor, book, finish) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)
        await finish(doctor, appointment)

        response = await _rate(client, doctor, doctor, appointment, 5)
        assert response.status_code == 403


class TestListRatings:
    @pytest.mark.asyncio
    async def test_ratings_are_anonymous_and_newest_first(self, client, register_patient, register_doctor, book, finish) -> None:
        doctor = await register_doctor()
        for stars, comment in ((2, "first"), (5, "second")):
            patient = await register_patient()
            appointment = await book(patient, doctor)
            await finish(doctor, appointment)
            await _rate(client, patient, doctor, appointment, stars, comment=comment)

        response = await client.get(f"/api/ratings/{doctor['user']['id']}", headers=auth(doctor["access_token"]))
        assert response.status_code == 200
        ratings = response.json()
        assert [r["comment"] for r in ratings] == ["second", "first"]
        for rating in ratings:
            assert rating["anonymous"] is True
            assert "patient_id" not in rating
            assert "patient" not in rating

    @pytest.mark.asyncio
    async def test_unrated_doctor_has_empty_list(self, client, register_patient, register_doctor) -> None:
        patient = await register_patient()
        doctor = await register_doctor()

        response = await client.get(f"/api/ratings/{doctor['user']['id']}", headers=auth(patient["access_token"]))
        assert response.status_code == 200
        assert response.json() == []


class TestConsultationLifecycle:
    @pytest.mark.asyncio
    async def test_book_pay_consult_rate(self, client, register_patient, register_doctor, book) -> None:
        patient = await register_patient()
        doctor = await register_doctor(consultation_fee=50)
        patient_headers = auth(patient["access_token"])
        doctor_headers = auth(doctor["access_token"])

        appointment = await book(patient, doctor)
        assert appointment["status"] == "pending"
        assert appointment["payment"]["amount"] == 50
        assert appointment["body_id"] == patient["user"]["body_id"]

        paid = await client.post(
            "/api/payments/fake-payment",
            json={"appointment_id": appointment["id"], "amount": 50},
            headers=patient_headers,
        )
        assert paid.json()["status"] == "paid"

        confirmed = await client.post(
            f"/api/doctor/appointments/{appointment['id']}/confirm", headers=doctor_headers
        )
        assert confirmed.json()["status"] == "confirmed"

        completed = await client.post(
            f"/api/doctor/appointments/{appointment['id']}/notes",
            json={"doctor_notes": "Follow up in two weeks", "prescription_url": "https://files.test/rx.pdf"},
            headers=doctor_headers,
        )
        body = completed.json()
        assert body["status"] == "completed"
        assert body["doctor_notes"] == "Follow up in two weeks"
        assert body["prescription_url"] == "https://files.test/rx.pdf"
        assert body["payment"]["paid"] is True

        rated = await _rate(client, patient, doctor, appointment, 5)
        assert rated.status_code == 201
        assert rated.json()["doctor_average_rating"] == 5.0
        assert rated.json()["doctor_total_ratings"] == 1

        again = await _rate(client, patient, doctor, appointment, 4)
        assert again.status_code == 409
