"""
Patient registry: registration, updates, search, status changes and
duplicate handling for the patients of one clinic.
"""

import logging
import unicodedata
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Union

from rapidfuzz.distance import Levenshtein

from ...core.utils.datetime_utils import add_years, utc_now
from ...domain.entities.patient import Patient, PatientUpdate
from ...domain.errors import (
    DuplicatePatientError,
    PatientNotFoundError,
    ValidationFailedError,
)
from ...domain.value_objects.contact_information import ContactInformation
from ...domain.value_objects.identifiers import PatientId, UserId
from ...domain.value_objects.patient_status import PatientStatus
from ...domain.value_objects.personal_information import PersonalInformation
from ...observability.audit import audit_log_event
from ..dto.common import PaginatedResult, Pagination
from ..dto.patient_dto import (
    PATIENT_SORT_FIELDS,
    CreatePatientRequest,
    DuplicateCheckResult,
    DuplicateConfidence,
    DuplicateMatch,
    MergeSource,
    MergeStrategy,
    PatientSearchCriteria,
    UpdatePatientRequest,
    section_to_dict,
)
from ..ports.repositories.patient_repo import PatientFilter, PatientRepository
from .errors import repository_errors

logger = logging.getLogger("evolua")

# A name is "similar" when this share of its words is within
# MAX_WORD_DISTANCE edits of a word in the other name.
SIMILAR_WORD_RATIO = 0.7
MAX_WORD_DISTANCE = 2


def _name_words(name: str) -> List[str]:
    decomposed = unicodedata.normalize("NFKD", name.casefold())
    plain = "".join(c for c in decomposed if not unicodedata.combining(c))
    return plain.split()


def is_similar_name(first: str, second: str) -> bool:
    words_a = _name_words(first)
    words_b = _name_words(second)
    if not words_a or not words_b:
        return False
    matching = sum(
        1
        for word in words_a
        if any(Levenshtein.distance(word, other) <= MAX_WORD_DISTANCE for other in words_b)
    )
    return matching / max(len(words_a), len(words_b)) >= SIMILAR_WORD_RATIO


def _as_user(user: Union[str, UserId, None]) -> Optional[UserId]:
    if user is None or isinstance(user, UserId):
        return user
    return UserId(user)


class PatientRegistry:
    """Application service for the patient aggregate."""

    def __init__(
        self,
        patient_repository: PatientRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._patient_repository = patient_repository
        self._clock = clock

    @property
    def _clinic(self) -> str:
        return self._patient_repository.clinic_id.value

    async def create_patient(
        self, request: CreatePatientRequest, created_by: Union[str, UserId]
    ) -> Patient:
        """Validate, reject high-confidence duplicates, then persist."""
        author = _as_user(created_by)
        patient = Patient.create(
            clinic_id=self._patient_repository.clinic_id,
            personal_info=section_to_dict(request.personal_info),
            contact_info=section_to_dict(request.contact_info),
            emergency_contact=section_to_dict(request.emergency_contact),
            insurance_info=section_to_dict(request.insurance_info),
            medical_history=request.medical_history,
            status=request.status,
            created_by=author,
            now=self._clock(),
        )

        duplicates = await self._analyze_duplicates(patient.personal_info)
        if duplicates.is_duplicate:
            logger.info(
                "Rejected duplicate patient registration in clinic %s (%d matches)",
                self._clinic,
                len(duplicates.high_confidence),
            )
            raise DuplicatePatientError([m.to_dict() for m in duplicates.high_confidence])

        with repository_errors("create patient"):
            saved = await self._patient_repository.create(patient)

        logger.info("Patient %s created in clinic %s", saved.id.value, self._clinic)
        await audit_log_event(
            event="patient.created",
            patient_id=saved.id.value,
            user_id=author.value,
            clinic_id=self._clinic,
            payload={
                "status": saved.status.value,
                "possible_duplicates": [m.patient.id.value for m in duplicates.matches],
            },
        )
        return saved

    async def update_patient(
        self,
        patient_id: str,
        request: UpdatePatientRequest,
        updated_by: Union[str, UserId],
    ) -> Patient:
        patient = await self._require(patient_id)
        previous_cpf = patient.personal_info.cpf

        patient.update(
            PatientUpdate(
                personal_info=section_to_dict(request.personal_info),
                contact_info=section_to_dict(request.contact_info),
                emergency_contact=section_to_dict(request.emergency_contact),
                insurance_info=section_to_dict(request.insurance_info),
                medical_history=request.medical_history,
            ),
            now=self._clock(),
        )

        if patient.personal_info.cpf != previous_cpf:
            duplicates = await self._analyze_duplicates(patient.personal_info, exclude=patient.id)
            if duplicates.is_duplicate:
                raise DuplicatePatientError([m.to_dict() for m in duplicates.high_confidence])

        with repository_errors("update patient"):
            saved = await self._patient_repository.update(patient)

        sections = [
            name
            for name in ("personal_info", "contact_info", "emergency_contact", "insurance_info", "medical_history")
            if getattr(request, name) is not None
        ]
        await audit_log_event(
            event="patient.updated",
            patient_id=saved.id.value,
            user_id=_as_user(updated_by).value,
            clinic_id=self._clinic,
            payload={"sections": sections},
        )
        return saved

    async def get_patient(self, patient_id: str) -> Optional[Patient]:
        """Return the patient, or None for an unknown or malformed id."""
        try:
            pid = PatientId(patient_id)
        except ValueError:
            return None
        with repository_errors("load patient"):
            return await self._patient_repository.find_by_id(pid)

    async def delete_patient(self, patient_id: str, deleted_by: Union[str, UserId]) -> None:
        patient = await self._require(patient_id)
        with repository_errors("delete patient"):
            await self._patient_repository.delete(patient.id)

        logger.info("Patient %s deleted from clinic %s", patient.id.value, self._clinic)
        await audit_log_event(
            event="patient.deleted",
            patient_id=patient.id.value,
            user_id=_as_user(deleted_by).value,
            clinic_id=self._clinic,
        )

    async def search_patients(
        self,
        criteria: Optional[PatientSearchCriteria] = None,
        pagination: Optional[Pagination] = None,
    ) -> PaginatedResult[Patient]:
        criteria = criteria or PatientSearchCriteria()
        pagination = pagination or Pagination()
        pagination.validate(PATIENT_SORT_FIELDS)
        patient_filter = self._build_filter(criteria)

        with repository_errors("search patients"):
            return await self._patient_repository.search(patient_filter, pagination)

    def _build_filter(self, criteria: PatientSearchCriteria) -> PatientFilter:
        field_errors = {}
        status = None
        if criteria.status:
            try:
                status = PatientStatus(criteria.status).value
            except ValueError as exc:
                field_errors["status"] = [str(exc)]
        for name in ("min_age", "max_age"):
            value = getattr(criteria, name)
            if value is not None and value < 0:
                field_errors[name] = ["Age cannot be negative"]
        if (
            criteria.min_age is not None
            and criteria.max_age is not None
            and criteria.min_age > criteria.max_age
        ):
            field_errors["min_age"] = ["Minimum age cannot exceed maximum age"]
        if field_errors:
            raise ValidationFailedError(field_errors, "Invalid search criteria")

        current = self._clock().date()
        born_on_or_before: Optional[date] = None
        born_on_or_after: Optional[date] = None
        if criteria.min_age is not None:
            born_on_or_before = add_years(current, -criteria.min_age)
        if criteria.max_age is not None:
            born_on_or_after = add_years(current, -(criteria.max_age + 1)) + timedelta(days=1)

        return PatientFilter(
            query=criteria.query.strip() if criteria.query and criteria.query.strip() else None,
            status=status,
            born_on_or_after=born_on_or_after,
            born_on_or_before=born_on_or_before,
            created_after=criteria.created_after,
            created_before=criteria.created_before,
        )

    async def change_patient_status(
        self,
        patient_id: str,
        status: str,
        reason: Optional[str],
        changed_by: Union[str, UserId],
    ) -> Patient:
        patient = await self._require(patient_id)
        author = _as_user(changed_by)
        change = patient.change_status(status, reason=reason, changed_by=author, now=self._clock())
        return await self._save_status_change(patient, change.to_dict(), author)

    async def discharge_patient(
        self, patient_id: str, reason: str, changed_by: Union[str, UserId]
    ) -> Patient:
        patient = await self._require(patient_id)
        author = _as_user(changed_by)
        change = patient.discharge(reason, changed_by=author, now=self._clock())
        return await self._save_status_change(patient, change.to_dict(), author)

    async def reactivate_patient(
        self, patient_id: str, reason: str, changed_by: Union[str, UserId]
    ) -> Patient:
        patient = await self._require(patient_id)
        author = _as_user(changed_by)
        change = patient.reactivate(reason, changed_by=author, now=self._clock())
        return await self._save_status_change(patient, change.to_dict(), author)

    async def _save_status_change(self, patient: Patient, change: dict, author: UserId) -> Patient:
        with repository_errors("update patient status"):
            saved = await self._patient_repository.update(patient)
        logger.info(
            "Patient %s status %s -> %s", saved.id.value, change["from_status"], change["to_status"]
        )
        await audit_log_event(
            event="patient.status_changed",
            patient_id=saved.id.value,
            user_id=author.value,
            clinic_id=self._clinic,
            payload={k: change[k] for k in ("from_status", "to_status", "reason")},
        )
        return saved

    async def check_duplicates(self, request: CreatePatientRequest) -> DuplicateCheckResult:
        """Run the duplicate analysis for a prospective patient without saving."""
        raw = section_to_dict(request.personal_info)
        try:
            personal = (
                raw if isinstance(raw, PersonalInformation) else PersonalInformation.from_dict(raw or {})
            )
        except ValidationFailedError as exc:
            raise exc.prefixed("personal_info") from exc
        return await self._analyze_duplicates(personal)

    async def merge_patients(
        self,
        primary_id: str,
        duplicate_id: str,
        strategy: Optional[MergeStrategy] = None,
        merged_by: Union[str, UserId, None] = None,
    ) -> Patient:
        """Fold ``duplicate_id`` into ``primary_id`` and delete the duplicate."""
        if primary_id == duplicate_id:
            raise ValidationFailedError.single("duplicate_id", "Cannot merge a patient with itself")
        strategy = strategy or MergeStrategy()
        author = _as_user(merged_by)
        primary = await self._require(primary_id)
        duplicate = await self._require(duplicate_id)

        changes = PatientUpdate(
            personal_info=self._merge_personal(primary, duplicate, strategy.personal_info),
            contact_info=self._merge_contact(primary, duplicate, strategy.contact_info),
            emergency_contact=self._pick(
                primary.emergency_contact, duplicate.emergency_contact, strategy.emergency_contact
            ),
            insurance_info=self._pick(
                primary.insurance_info, duplicate.insurance_info, strategy.insurance_info
            ),
            medical_history=self._merge_history(primary, duplicate, strategy.medical_history),
        )
        primary.update(changes, now=self._clock())

        # The duplicate goes first so a CPF taken from it does not collide
        # with the (clinic_id, cpf) unique index. A failed update restores it.
        with repository_errors("merge patients"):
            await self._patient_repository.delete(duplicate.id)
            try:
                saved = await self._patient_repository.update(primary)
            except Exception:
                logger.warning("Merge into %s failed, restoring patient %s",
                               primary.id.value, duplicate.id.value)
                await self._patient_repository.create(duplicate)
                raise

        logger.info("Patient %s merged into %s", duplicate.id.value, primary.id.value)
        await audit_log_event(
            event="patient.merged",
            patient_id=primary.id.value,
            resource_id=duplicate.id.value,
            user_id=author.value if author else None,
            clinic_id=self._clinic,
            payload={
                "strategy": {k: v.value for k, v in vars(strategy).items()},
            },
        )
        return saved

    @staticmethod
    def _pick(primary, duplicate, source: MergeSource):
        if source == MergeSource.DUPLICATE:
            return duplicate
        if source == MergeSource.MERGE:
            return primary if primary is not None else duplicate
        return primary

    @staticmethod
    def _merge_personal(primary: Patient, duplicate: Patient, source: MergeSource) -> PersonalInformation:
        if source == MergeSource.DUPLICATE:
            return duplicate.personal_info
        if source == MergeSource.MERGE and primary.personal_info.rg is None:
            p = primary.personal_info
            return PersonalInformation(
                full_name=p.full_name,
                date_of_birth=p.date_of_birth,
                gender=p.gender,
                cpf=p.cpf,
                rg=duplicate.personal_info.rg,
            )
        return primary.personal_info

    @staticmethod
    def _merge_contact(primary: Patient, duplicate: Patient, source: MergeSource) -> ContactInformation:
        if source == MergeSource.DUPLICATE:
            return duplicate.contact_info
        if source == MergeSource.PRIMARY:
            return primary.contact_info
        p, d = primary.contact_info, duplicate.contact_info
        secondary = p.secondary_phone
        if secondary is None:
            for candidate in (d.primary_phone, d.secondary_phone):
                if candidate is not None and candidate != p.primary_phone:
                    secondary = candidate
                    break
        return ContactInformation(
            primary_phone=p.primary_phone,
            address=p.address,
            secondary_phone=secondary,
            email=p.email or d.email,
        )

    @staticmethod
    def _merge_history(primary: Patient, duplicate: Patient, source: MergeSource) -> dict:
        if source == MergeSource.DUPLICATE:
            return dict(duplicate.medical_history)
        if source == MergeSource.MERGE:
            return {**duplicate.medical_history, **primary.medical_history}
        return dict(primary.medical_history)

    async def _require(self, patient_id: str) -> Patient:
        patient = await self.get_patient(patient_id)
        if patient is None:
            raise PatientNotFoundError(patient_id)
        return patient

    async def _analyze_duplicates(
        self, personal: PersonalInformation, exclude: Optional[PatientId] = None
    ) -> DuplicateCheckResult:
        with repository_errors("look up potential duplicates"):
            candidates = await self._patient_repository.find_potential_duplicates(
                personal.cpf, personal.full_name.value, personal.date_of_birth
            )

        result = DuplicateCheckResult()
        name = personal.full_name.value
        for candidate in candidates:
            if exclude is not None and candidate.id == exclude:
                continue
            other = candidate.personal_info
            same_birth = other.date_of_birth == personal.date_of_birth
            if other.cpf == personal.cpf:
                result.matches.append(
                    DuplicateMatch(candidate, DuplicateConfidence.HIGH, ["cpf"])
                )
            elif same_birth and other.full_name.value.casefold() == name.casefold():
                result.matches.append(
                    DuplicateMatch(candidate, DuplicateConfidence.HIGH, ["name", "date_of_birth"])
                )
            elif same_birth and is_similar_name(other.full_name.value, name):
                result.matches.append(
                    DuplicateMatch(candidate, DuplicateConfidence.MEDIUM, ["similar_name", "date_of_birth"])
                )
        return result
