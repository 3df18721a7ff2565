"""
MongoDB implementation of MedicalRecordRepository.
"""

from typing import List, Optional

from .....application.ports.repositories.medical_record_repo import MedicalRecordRepository
from .....domain.entities.medical_record import MedicalRecord
from .....domain.value_objects.allergy import Allergy
from .....domain.value_objects.assessment import Assessment
from .....domain.value_objects.diagnosis import Diagnosis
from .....domain.value_objects.identifiers import ClinicId, MedicalRecordId, PatientId, UserId
from .....domain.value_objects.medication import Medication
from .....domain.value_objects.progress_note import ProgressNote
from .....domain.value_objects.treatment_history import TreatmentHistory
from ..models.medical_record_m import MedicalRecordMongo


class MongoMedicalRecordRepository(MedicalRecordRepository):
    """MongoDB implementation of MedicalRecordRepository bound to one clinic."""

    def __init__(self, clinic_id: ClinicId):
        self._clinic_id = clinic_id

    @property
    def clinic_id(self) -> ClinicId:
        return self._clinic_id

    async def create(self, record: MedicalRecord) -> MedicalRecord:
        await self._domain_to_mongo(record).insert()
        return record

    async def find_by_id(self, record_id: MedicalRecordId) -> Optional[MedicalRecord]:
        record_mongo = await MedicalRecordMongo.find_one(
            {"clinic_id": self._clinic_id.value, "record_id": record_id.value}
        )
        if not record_mongo:
            return None
        return self._mongo_to_domain(record_mongo)

    async def find_by_patient_id(self, patient_id: PatientId) -> List[MedicalRecord]:
        records_mongo = (
            await MedicalRecordMongo.find(
                {"clinic_id": self._clinic_id.value, "patient_id": patient_id.value}
            )
            .sort("+created_at")
            .to_list()
        )
        return [self._mongo_to_domain(r) for r in records_mongo]

    async def update(self, record: MedicalRecord) -> MedicalRecord:
        existing = await MedicalRecordMongo.find_one(
            {"clinic_id": self._clinic_id.value, "record_id": record.id.value}
        )
        record_mongo = self._domain_to_mongo(record)
        if existing is None:
            await record_mongo.insert()
        else:
            record_mongo.id = existing.id
            await record_mongo.replace()
        return record

    async def delete(self, record_id: MedicalRecordId) -> bool:
        result = await MedicalRecordMongo.find(
            {"clinic_id": self._clinic_id.value, "record_id": record_id.value}
        ).delete()
        return bool(result and result.deleted_count)

    def _domain_to_mongo(self, record: MedicalRecord) -> MedicalRecordMongo:
        """Convert domain entity to MongoDB model."""
        return MedicalRecordMongo(
            record_id=record.id.value,
            patient_id=record.patient_id.value,
            clinic_id=record.clinic_id.value,
            diagnosis=[d.to_dict() for d in record.diagnosis],
            medications=[m.to_dict() for m in record.medications],
            allergies=[a.to_dict() for a in record.allergies],
            progress_notes=[n.to_dict() for n in record.progress_notes],
            assessments=[a.to_dict() for a in record.assessments],
            treatment_history=[t.to_dict() for t in record.treatment_history],
            created_by=record.created_by.value if record.created_by else None,
            updated_by=record.updated_by.value if record.updated_by else None,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _mongo_to_domain(self, record_mongo: MedicalRecordMongo) -> MedicalRecord:
        """Convert MongoDB model to domain entity."""
        return MedicalRecord(
            id=MedicalRecordId(record_mongo.record_id),
            patient_id=PatientId(record_mongo.patient_id),
            clinic_id=ClinicId(record_mongo.clinic_id),
            diagnosis=[Diagnosis.from_dict(d) for d in record_mongo.diagnosis],
            medications=[Medication.from_dict(m) for m in record_mongo.medications],
            allergies=[Allergy.from_dict(a) for a in record_mongo.allergies],
            progress_notes=[ProgressNote.from_dict(n) for n in record_mongo.progress_notes],
            assessments=[Assessment.from_dict(a) for a in record_mongo.assessments],
            treatment_history=[TreatmentHistory.from_dict(t) for t in record_mongo.treatment_history],
            created_by=UserId(record_mongo.created_by) if record_mongo.created_by else None,
            updated_by=UserId(record_mongo.updated_by) if record_mongo.updated_by else None,
            created_at=record_mongo.created_at,
            updated_at=record_mongo.updated_at,
        )
