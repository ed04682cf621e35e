import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import (
    AdmissionNotActiveError,
    BedUnavailableError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.models.admission import Admission, Transfer
from app.models.ward import Bed, BedStatus
from app.schemas.admission import AdmissionCreate, TransferCreate
from app.services import admission_service, bed_service, transfer_service


@pytest.fixture
def icu(make_ward):
    return make_ward("ICU", {"101": ["101-A"], "102": ["102-A", "102-B"]})


@pytest.fixture
def admitted(db, icu, make_patient):
    _, beds = icu
    return admission_service.admit_patient(
        db, AdmissionCreate(patient_id=make_patient().id, bed_id=beds["101-A"].id)
    )


def _transfer(db, admission, ward, bed, **kwargs):
    return transfer_service.transfer_patient(
        db,
        TransferCreate(
            admission_id=admission.id,
            to_ward_id=ward.id,
            to_bed_id=bed.id,
            authorized_by=kwargs.pop("authorized_by", 1),
            **kwargs,
        ),
    )


def test_transfer_moves_patient_between_beds(db, icu, admitted):
    ward, beds = icu

    transfer = _transfer(db, admitted, ward, beds["102-A"], reason="Needs isolation")

    assert transfer.from_bed_id == beds["101-A"].id
    assert transfer.to_bed_id == beds["102-A"].id
    assert transfer.from_ward_id == transfer.to_ward_id == ward.id
    assert transfer.reason == "Needs isolation"

    admission = db.get(Admission, admitted.id)
    assert admission.bed_id == beds["102-A"].id
    assert db.get(Bed, beds["101-A"].id).status == BedStatus.AVAILABLE
    assert db.get(Bed, beds["102-A"].id).status == BedStatus.OCCUPIED


def test_transfer_across_wards(db, icu, admitted, make_ward):
    general, general_beds = make_ward("General", {"201": ["201-A"]})

    transfer = _transfer(db, admitted, general, general_beds["201-A"])

    assert transfer.to_ward_id == general.id
    assert db.get(Admission, admitted.id).ward_id == general.id


def test_transfer_to_occupied_bed_rejected(db, icu, admitted, make_patient):
    ward, beds = icu
    admission_service.admit_patient(
        db, AdmissionCreate(patient_id=make_patient("Other").id, bed_id=beds["102-A"].id)
    )

    with pytest.raises(BedUnavailableError):
        _transfer(db, admitted, ward, beds["102-A"])

    assert db.query(Transfer).count() == 0
    assert db.get(Admission, admitted.id).bed_id == beds["101-A"].id


def test_transfer_to_maintenance_bed_rejected(db, icu, admitted):
    ward, beds = icu
    beds["102-B"].status = BedStatus.MAINTENANCE
    db.commit()

    with pytest.raises(BedUnavailableError):
        _transfer(db, admitted, ward, beds["102-B"])


def test_transfer_to_current_bed_rejected(db, icu, admitted):
    ward, beds = icu

    with pytest.raises(BedUnavailableError):
        _transfer(db, admitted, ward, beds["101-A"])


def test_transfer_bed_must_belong_to_ward(db, icu, admitted, make_ward):
    _, beds = icu
    general, _ = make_ward("General", {})

    with pytest.raises(ValidationError):
        _transfer(db, admitted, general, beds["102-A"])

    assert db.get(Bed, beds["102-A"].id).status == BedStatus.AVAILABLE


def test_discharged_admission_cannot_transfer(db, icu, admitted):
    ward, beds = icu
    admission_service.discharge_patient(db, admitted.id)

    with pytest.raises(AdmissionNotActiveError):
        _transfer(db, admitted, ward, beds["102-A"])


def test_transfer_unknown_admission(db, icu):
    ward, beds = icu

    with pytest.raises(NotFoundError):
        transfer_service.transfer_patient(
            db,
            TransferCreate(admission_id=999, to_ward_id=ward.id, to_bed_id=beds["102-A"].id, authorized_by=1),
        )


def test_transfer_rolls_back_when_a_bed_update_fails(db, fresh_session, icu, admitted, monkeypatch):
    ward, beds = icu
    calls = {"n": 0}
    real_set_bed_status = bed_service._set_bed_status

    def _fail_on_destination(session, bed, status):
        calls["n"] += 1
        if calls["n"] == 2:
            raise SQLAlchemyError("simulated write failure")
        real_set_bed_status(session, bed, status)

    monkeypatch.setattr(transfer_service, "_set_bed_status", _fail_on_destination)

    with pytest.raises(StorageError):
        _transfer(db, admitted, ward, beds["102-A"])

    check = fresh_session()
    assert check.query(Transfer).count() == 0
    assert check.get(Admission, admitted.id).bed_id == beds["101-A"].id
    assert check.get(Bed, beds["101-A"].id).status == BedStatus.OCCUPIED
    assert check.get(Bed, beds["102-A"].id).status == BedStatus.AVAILABLE


def test_list_transfers_for_admission(db, icu, admitted):
    ward, beds = icu
    first = _transfer(db, admitted, ward, beds["102-A"])
    second = _transfer(db, admitted, ward, beds["102-B"])

    history = transfer_service.list_transfers(db, admission_id=admitted.id)

    assert [t.id for t in history] == [second.id, first.id]
    assert transfer_service.list_transfers(db, admission_id=999) == []
