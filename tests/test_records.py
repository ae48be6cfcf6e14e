"""Medical records, history uploads, the doctor workspace and the doctors directory."""

import pytest

from helpers import auth

PDF = ("report.pdf", b"%PDF-1.4 lab results", "application/pdf")


@pytest.fixture
def upload_record(client):
    async def _upload(patient: dict, title="Blood work", tags="blood, lab ,,2024", **form) -> dict:
        data = {"title": title, "tags": tags, **form}
        response = await client.post(
            "/api/records", data=data, files={"file": PDF}, headers=auth(patient["access_token"])
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _upload


async def _share(client, patient, record, doctor):
    return await client.post(
        f"/api/records/{record['id']}/share",
        json={"doctor_license_id": doctor["user"]["license_id"]},
        headers=auth(patient["access_token"]),
    )


class TestUploadRecord:
    @pytest.mark.asyncio
    async def test_upload_stores_file_under_body_id(self, client, storage, register_patient, upload_record) -> None:
        patient = await register_patient()
        record = await upload_record(patient, description="  Annual checkup  ")

        assert record["title"] == "Blood work"
        assert record["description"] == "Annual checkup"
        assert record["tags"] == ["blood", "lab", "2024"]
        assert record["file_type"] == "application/pdf"
        assert record["patient_id"] == patient["user"]["id"]
        assert record["shared_with"] == []
        assert storage.uploads[0][0] == f"bodyid/{patient['user']['body_id']}/records"
        assert record["file_url"].startswith("https://files.test/")

    @pytest.mark.asyncio
    async def test_blank_title_gets_default(self, client, register_patient, upload_record) -> None:
        patient = await register_patient()
        record = await upload_record(patient, title="   ", tags="")
        assert record["title"] == "Untitled Record"
        assert record["tags"] == []

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, client, register_patient) -> None:
        patient = await register_patient()
        response = await client.post(
            "/api/records",
            files={"file": ("empty.pdf", b"", "application/pdf")},
            headers=auth(patient["access_token"]),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_file_rejected(self, client, register_patient) -> None:
        patient = await register_patient()
        response = await client.post(
            "/api/records", data={"title": "No file"}, headers=auth(patient["access_token"])
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_storage_outage(self, client, storage, register_patient) -> None:
        patient = await register_patient()
        storage.fail = True
        response = await client.post("/api/records", files={"file": PDF}, headers=auth(patient["access_token"]))
        assert response.status_code == 502
        assert response.json()["kind"] == "upstream_failure"

    @pytest.mark.asyncio
    async def test_doctors_cannot_upload(self, client, register_doctor) -> None:
        doctor = await register_doctor()
        response = await client.post("/api/records", files={"file": PDF}, headers=auth(doctor["access_token"]))
        assert response.status_code == 403


class TestReadRecords:
    @pytest.mark.asyncio
    async def test_list_own_records_newest_first(self, client, register_patient, upload_record) -> None:
        patient = await register_patient()
        other = await register_patient()
        first = await upload_record(patient, title="First")
        second = await upload_record(patient, title="Second")
        await upload_record(other, title="Not mine")

        response = await client.get("/api/records", headers=auth(patient["access_token"]))
        assert [r["id"] for r in response.json()] == [second["id"], first["id"]]

    @pytest.mark.asyncio
    async def test_owner_and_shared_doctor_can_read(self, client, register_patient, register_doctor, upload_record) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        record = await upload_record(patient)

        before = await client.get(f"/api/records/{record['id']}", headers=auth(doctor["access_token"]))
        assert before.status_code == 403

        await _share(client, patient, record, doctor)
        for user in (patient, doctor):
            response = await client.get(f"/api/records/{record['id']}", headers=auth(user["access_token"]))
            assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_other_patient_denied(self, client, register_patient, upload_record) -> None:
        patient = await register_patient()
        other = await register_patient()
        record = await upload_record(patient)

        response = await client.get(f"/api/records/{record['id']}", headers=auth(other["access_token"]))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_record(self, client, register_patient) -> None:
        patient = await register_patient()
        response = await client.get("/api/records/999", headers=auth(patient["access_token"]))
        assert response.status_code == 404


class TestSharing:
    @pytest.mark.asyncio
    async def test_share_and_list_shared(self, client, register_patient, register_doctor, upload_record) -> None:
        patient = await register_patient()
        other_patient = await register_patient()
        doctor = await register_doctor()
        record = await upload_record(patient)
        other_record = await upload_record(other_patient)

        response = await _share(client, patient, record, doctor)
        assert response.status_code == 200
        assert response.json()["message"] == "Record shared"
        assert [d["id"] for d in response.json()["shared_with"]] == [doctor["user"]["id"]]
        await _share(client, other_patient, other_record, doctor)

        shared = await client.get("/api/records/shared", headers=auth(doctor["access_token"]))
        assert {r["id"] for r in shared.json()} == {record["id"], other_record["id"]}

        filtered = await client.get(
            "/api/records/shared",
            params={"patient_id": patient["user"]["id"]},
            headers=auth(doctor["access_token"]),
        )
        assert [r["id"] for r in filtered.json()] == [record["id"]]

    @pytest.mark.asyncio
    async def test_share_twice_conflicts(self, client, register_patient, register_doctor, upload_record) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        record = await upload_record(patient)

        await _share(client, patient, record, doctor)
        response = await _share(client, patient, record, doctor)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_license(self, client, register_patient, upload_record) -> None:
        patient = await register_patient()
        record = await upload_record(patient)

        response = await client.post(
            f"/api/records/{record['id']}/share",
            json={"doctor_license_id": "LIC-NOPE"},
            headers=auth(patient["access_token"]),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_only_owner_shares(self, client, register_patient, register_doctor, upload_record) -> None:
        patient = await register_patient()
        other = await register_patient()
        doctor = await register_doctor()
        record = await upload_record(patient)

        response = await _share(client, other, record, doctor)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unshare(self, client, register_patient, register_doctor, upload_record) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        record = await upload_record(patient)
        await _share(client, patient, record, doctor)

        response = await client.delete(
            f"/api/records/{record['id']}/share/{doctor['user']['id']}", headers=auth(patient["access_token"])
        )
        assert response.status_code == 200
        assert response.json()["shared_with"] == []

        again = await client.delete(
            f"/api/records/{record['id']}/share/{doctor['user']['id']}", headers=auth(patient["access_token"])
        )
        assert again.status_code == 404

        denied = await client.get(f"/api/records/{record['id']}", headers=auth(doctor["access_token"]))
        assert denied.status_code == 403


class TestDeleteRecord:
    @pytest.mark.asyncio
    async def test_delete_removes_record_and_file(self, client, storage, register_patient, upload_record) -> None:
        patient = await register_patient()
        record = await upload_record(patient)

        response = await client.delete(f"/api/records/{record['id']}", headers=auth(patient["access_token"]))
        assert response.status_code == 200
        assert response.json() == {"message": "Record deleted"}
        assert len(storage.deleted) == 1

        missing = await client.get(f"/api/records/{record['id']}", headers=auth(patient["access_token"]))
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_storage_failure_does_not_block_delete(self, client, storage, register_patient, upload_record) -> None:
        patient = await register_patient()
        record = await upload_record(patient)
        storage.fail = True

        response = await client.delete(f"/api/records/{record['id']}", headers=auth(patient["access_token"]))
        assert response.status_code == 200

        listed = await client.get("/api/records", headers=auth(patient["access_token"]))
        assert listed.json() == []

    @pytest.mark.asyncio
    async def test_attached_record_can_be_deleted(self, client, register_patient, register_doctor, upload_record, book) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        record = await upload_record(patient)
        appointment = await book(patient, doctor, attached_record_ids=[record["id"]])
        assert [r["id"] for r in appointment["attached_records"]] == [record["id"]]

        response = await client.delete(f"/api/records/{record['id']}", headers=auth(patient["access_token"]))
        assert response.status_code == 200

        fetched = await client.get(f"/api/appointments/{appointment['id']}", headers=auth(patient["access_token"]))
        assert fetched.json()["attached_records"] == []

    @pytest.mark.asyncio
    async def test_only_owner_deletes(self, client, register_patient, upload_record) -> None:
        patient = await register_patient()
        other = await register_patient()
        record = await upload_record(patient)

        response = await client.delete(f"/api/records/{record['id']}", headers=auth(other["access_token"]))
        assert response.status_code == 403


class TestMedicalHistory:
    @pytest.mark.asyncio
    async def test_upload_list_and_get(self, client, storage, register_patient) -> None:
        patient = await register_patient()
        headers = auth(patient["access_token"])

        created = await client.post(
            "/api/patient/history",
            data={"description": " Childhood asthma "},
            files={"file": PDF},
            headers=headers,
        )
        assert created.status_code == 201
        history = created.json()
        assert history["description"] == "Childhood asthma"
        assert storage.uploads[0][0] == "medical_history"

        listed = await client.get("/api/patient/history", headers=headers)
        assert [h["id"] for h in listed.json()] == [history["id"]]

        fetched = await client.get(f"/api/patient/history/{history['id']}", headers=headers)
        assert fetched.json()["file_url"] == history["file_url"]

    @pytest.mark.asyncio
    async def test_other_patient_denied(self, client, register_patient) -> None:
        patient = await register_patient()
        other = await register_patient()
        created = await client.post(
            "/api/patient/history", files={"file": PDF}, headers=auth(patient["access_token"])
        )

        response = await client.get(
            f"/api/patient/history/{created.json()['id']}", headers=auth(other["access_token"])
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_history(self, client, register_patient) -> None:
        patient = await register_patient()
        response = await client.get("/api/patient/history/42", headers=auth(patient["access_token"]))
        assert response.status_code == 404


class TestDoctorWorkspace:
    @pytest.mark.asyncio
    async def test_records_by_body_id_after_booking(self, client, register_patient, register_doctor, upload_record, book) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        record = await upload_record(patient)
        body_id = patient["user"]["body_id"]

        denied = await client.get(f"/api/doctor/patients/{body_id}/records", headers=auth(doctor["access_token"]))
        assert denied.status_code == 403

        await book(patient, doctor)
        response = await client.get(f"/api/doctor/patients/{body_id}/records", headers=auth(doctor["access_token"]))
        assert response.status_code == 200
        body = response.json()
        assert body["patient"] == patient["user"]["name"]
        assert body["body_id"] == body_id
        assert [r["id"] for r in body["records"]] == [record["id"]]

    @pytest.mark.asyncio
    async def test_unknown_body_id(self, client, register_doctor) -> None:
        doctor = await register_doctor()
        response = await client.get(
            "/api/doctor/patients/BID-20240101-ZZZZZZ/records", headers=auth(doctor["access_token"])
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_reject_appointment(self, client, register_patient, register_doctor, book) -> None:
        patient = await register_patient()
        doctor = await register_doctor()
        appointment = await book(patient, doctor)

        response = await client.post(
            f"/api/doctor/appointments/{appointment['id']}/reject", headers=auth(doctor["access_token"])
        )
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

        listed = await client.get("/api/doctor/appointments", headers=auth(doctor["access_token"]))
        assert [a["status"] for a in listed.json()] == ["rejected"]

    @pytest.mark.asyncio
    async def test_patients_cannot_use_workspace(self, client, register_patient) -> None:
        patient = await register_patient()
        response = await client.get("/api/doctor/appointments", headers=auth(patient["access_token"]))
        assert response.status_code == 403


class TestDirectoryAndUploads:
    @pytest.mark.asyncio
    async def test_doctors_directory(self, client, register_patient, register_doctor) -> None:
        patient = await register_patient()
        await register_doctor(name="Zed Doctor", specialty="Cardiology")
        await register_doctor(name="Amy Doctor", specialty="Dermatology")

        response = await client.get("/api/doctors", headers=auth(patient["access_token"]))
        assert response.status_code == 200
        doctors = response.json()
        assert [d["name"] for d in doctors] == ["Amy Doctor", "Zed Doctor"]
        assert doctors[0]["average_rating"] == 0
        assert doctors[0]["total_ratings"] == 0
        assert "password" not in doctors[0]

    @pytest.mark.asyncio
    async def test_single_upload(self, client, storage, register_doctor) -> None:
        doctor = await register_doctor()
        response = await client.post(
            "/api/upload/single",
            files={"file": ("rx.pdf", b"%PDF prescription", "application/pdf")},
            headers=auth(doctor["access_token"]),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["url"].startswith("https://files.test/")
        assert storage.uploads[0][0] == f"bodyid/uploads/{doctor['user']['id']}"

    @pytest.mark.asyncio
    async def test_single_upload_requires_token(self, client) -> None:
        response = await client.post("/api/upload/single", files={"file": PDF})
        assert response.status_code == 401
